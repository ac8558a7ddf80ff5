"""
Volume preparation for the devnet's shared volumes.
"""
import os
from dataclasses import dataclass
from typing import List, Optional
from ..MODELS.orchestration_config import DevnetConfig
from ..MODELS.volume_definition import VolumeBacking, VolumeDefinition
from ..UTILS import console
from ..errors import LaunchError


@dataclass
class VolumeInfo:
    """Summary of a declared volume and the services mounting it."""
    name: str
    backing: str
    persistent: bool
    device: Optional[str]
    services: List[str]


class VolumeManager:
    """
    Makes sure bind-mounted volumes have a host directory before the stack starts.

    Docker refuses to create a bind volume whose device does not exist, so a
    fresh checkout without ``./credentials`` would fail to launch.
    """
    def __init__(self, base_dir: str = "."):
        """
        Initializes the volume manager.

        :param base_dir: Directory relative bind devices are resolved against;
                         compose resolves them against the compose file's directory.
        """
        self.base_dir = os.path.abspath(base_dir)

    def resolve_device(self, volume: VolumeDefinition) -> Optional[str]:
        """
        Absolute host path of a bind volume, None for other backings.
        """
        if volume.backing != VolumeBacking.BIND or not volume.device:
            return None
        device = os.path.expanduser(volume.device)
        return os.path.abspath(os.path.join(self.base_dir, device))

    def prepare(self, config: DevnetConfig, dry_run: bool = False) -> List[str]:
        """
        Creates missing host directories of bind volumes.

        :return: The directories that were (or would be) created.
        :raises LaunchError: If a directory cannot be created.
        """
        created = []
        for volume in config.volumes.values():
            path = self.resolve_device(volume)
            if path is None or os.path.isdir(path):
                continue
            if dry_run:
                console.info("volumes", f"would create {path} for volume '{volume.name}'")
            else:
                try:
                    os.makedirs(path, exist_ok=True)
                except OSError as e:
                    raise LaunchError(
                        f"cannot create {path} for volume '{volume.name}': {e.strerror or e}",
                        details={"volume": volume.name, "path": path},
                    ) from e
                console.info("volumes", f"created {path} for volume '{volume.name}'")
            created.append(path)
        return created

    def describe(self, config: DevnetConfig) -> List[VolumeInfo]:
        result = []
        for volume in config.volumes.values():
            users = [s.name for s in config.services.values() if s.mounts(volume.name)]
            result.append(VolumeInfo(
                name=volume.name,
                backing=volume.backing.value,
                persistent=volume.persistent,
                device=self.resolve_device(volume) or volume.device,
                services=users,
            ))
        return result
