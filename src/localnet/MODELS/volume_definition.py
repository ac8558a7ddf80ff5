"""
Models for top-level named volumes shared between devnet services.
"""
from typing import Dict, Optional
from pydantic import BaseModel, ConfigDict
from enum import Enum


class VolumeBacking(str, Enum):
    """
    What actually stores a volume's data.
    """
    BIND = "bind"          # local directory on the host, persists
    TMPFS = "tmpfs"        # in-memory, cleared when the stack is torn down
    MANAGED = "managed"    # plain docker-managed volume


class VolumeDefinition(BaseModel):
    """
    A named volume declared under the compose file's top-level ``volumes`` key.
    """
    model_config = ConfigDict(frozen=True)

    name: str
    driver: Optional[str] = None
    driver_opts: Dict[str, str] = {}

    @property
    def backing(self) -> VolumeBacking:
        kind = self.driver_opts.get("type", "")
        options = [o.strip() for o in self.driver_opts.get("o", "").split(",")]
        if kind == "tmpfs":
            return VolumeBacking.TMPFS
        if "bind" in options:
            return VolumeBacking.BIND
        return VolumeBacking.MANAGED

    @property
    def device(self) -> Optional[str]:
        return self.driver_opts.get("device")

    @property
    def persistent(self) -> bool:
        """
        False for tmpfs volumes, whose contents vanish on teardown.
        """
        return self.backing != VolumeBacking.TMPFS

    @classmethod
    def bind(cls, name: str, device: str) -> "VolumeDefinition":
        return cls(name=name, driver="local", driver_opts={"type": "none", "o": "bind", "device": device})

    @classmethod
    def tmpfs(cls, name: str) -> "VolumeDefinition":
        return cls(name=name, driver_opts={"type": "tmpfs", "device": "tmpfs"})
