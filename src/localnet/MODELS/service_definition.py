"""
Models for defining devnet services, their port bindings and volume mounts.
"""
import re
from typing import List, Dict, Optional
from pydantic import BaseModel, ConfigDict
from enum import Enum

DEFAULT_BRIDGE_COUNT = 2

_NATURAL = re.compile(r"[0-9]+")


class ServiceRole(str, Enum):
    """
    The part a service plays in the devnet.
    """
    VALIDATOR = "validator"
    BRIDGE = "bridge"
    OTHER = "other"


class PortBinding(BaseModel):
    """
    Publishes a container port on a host port.
    """
    model_config = ConfigDict(frozen=True)

    host: int
    container: int
    host_ip: Optional[str] = None
    protocol: str = "tcp"

    def __str__(self) -> str:
        prefix = f"{self.host_ip}:" if self.host_ip else ""
        return f"{prefix}{self.host}:{self.container}/{self.protocol}"


class VolumeMount(BaseModel):
    """
    Mounts a named volume (or host path) at a path inside the container.
    """
    model_config = ConfigDict(frozen=True)

    source: str
    target: str
    read_only: bool = False

    @property
    def is_named(self) -> bool:
        """True when ``source`` refers to a top-level volume rather than a host path."""
        return not (self.source.startswith((".", "/", "~")) or "\\" in self.source)


class ServiceDefinition(BaseModel):
    """
    The full definition of a single devnet service, as declared in the compose file.
    """
    model_config = ConfigDict(frozen=True)

    name: str
    image_name: str
    platform: Optional[str] = None
    build_context: Optional[str] = None
    dockerfile_path: Optional[str] = None

    # Environment
    environment: Dict[str, str] = {}

    # Networking
    ports: List[PortBinding] = []

    # Storage
    volumes: List[VolumeMount] = []

    @property
    def role(self) -> ServiceRole:
        """
        Role derived from the service name: ``validator`` or ``bridge-<n>``.
        """
        if self.name == "validator":
            return ServiceRole.VALIDATOR
        if self.name == "bridge" or self.name.startswith("bridge-"):
            return ServiceRole.BRIDGE
        return ServiceRole.OTHER

    @property
    def node_id(self) -> Optional[int]:
        """
        ``NODE_ID`` of a bridge node, or None when unset or not a natural number.
        """
        raw = self.environment.get("NODE_ID")
        if raw is None or not _NATURAL.fullmatch(raw.strip()):
            return None
        return int(raw)

    @property
    def bridge_count(self) -> int:
        """
        Number of bridge nodes the validator provisions (``BRIDGE_COUNT``, default 2).
        Raises ValueError if the variable is set to something other than a natural number.
        """
        raw = self.environment.get("BRIDGE_COUNT")
        if raw is None or raw == "":
            return DEFAULT_BRIDGE_COUNT
        if not _NATURAL.fullmatch(raw.strip()):
            raise ValueError(f"BRIDGE_COUNT of service {self.name} is not a natural number: {raw!r}")
        return int(raw)

    @property
    def skip_auth(self) -> bool:
        return self.environment.get("SKIP_AUTH", "").lower() == "true"

    @property
    def has_build(self) -> bool:
        return self.build_context is not None

    def mounts(self, volume_name: str) -> bool:
        """
        Whether the service mounts the given named volume.
        """
        return any(v.source == volume_name for v in self.volumes)

    def host_port_for(self, container_port: int) -> Optional[int]:
        """
        Returns the host port bound to ``container_port``, if any.
        """
        for binding in self.ports:
            if binding.container == container_port:
                return binding.host
        return None
