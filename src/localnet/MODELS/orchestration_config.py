"""
Models for the overall devnet configuration.
"""
from typing import List, Dict, Optional
from pydantic import BaseModel, ConfigDict
from .service_definition import ServiceDefinition, ServiceRole
from .volume_definition import VolumeDefinition

CREDENTIALS_VOLUME = "credentials"
GENESIS_VOLUME = "genesis"
SHARED_VOLUMES = (CREDENTIALS_VOLUME, GENESIS_VOLUME)


class DevnetConfig(BaseModel):
    """
    Complete configuration for the devnet stack.
    Equivalent to a parsed docker-compose.yml file.
    """
    model_config = ConfigDict(frozen=True)

    services: Dict[str, ServiceDefinition]
    volumes: Dict[str, VolumeDefinition] = {}

    def validator(self) -> Optional[ServiceDefinition]:
        for svc in self.services.values():
            if svc.role == ServiceRole.VALIDATOR:
                return svc
        return None

    def bridges(self) -> List[ServiceDefinition]:
        """
        Bridge services ordered by node id; bridges without a valid id sort last by name.
        """
        found = [s for s in self.services.values() if s.role == ServiceRole.BRIDGE]
        return sorted(found, key=lambda s: (s.node_id is None, s.node_id or 0, s.name))

    def images(self) -> List[str]:
        """
        Distinct image names in declaration order.
        """
        seen: List[str] = []
        for svc in self.services.values():
            if svc.image_name and svc.image_name not in seen:
                seen.append(svc.image_name)
        return seen

    def buildable_services(self) -> List[ServiceDefinition]:
        return [s for s in self.services.values() if s.has_build]
