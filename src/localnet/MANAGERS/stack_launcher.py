# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Launching and stopping the devnet stack with ``docker compose``.
"""
from typing import List, Optional
from ..CONFIG.settings import LocalnetSettings
from ..MODELS.orchestration_config import DevnetConfig
from ..MODELS.stage_result import Stage, StageResult
from ..RUNNERS.process_runner import CommandResult, ProcessRunner
from ..UTILS import console
from ..errors import LaunchError
from .volume_manager import VolumeManager


class StackLauncher:
    """
    Starts all services from images that already exist locally.

    Start order between validator and bridges is not enforced here; the
    nodes wait for the genesis hash on their own.
    """
    def __init__(self, settings: LocalnetSettings, runner: Optional[ProcessRunner] = None):
        """
        Initializes the launcher.

        :param settings: Paths and docker binary.
        :param runner: Runner for external commands.
        """
        self.settings = settings
        self.runner = runner or ProcessRunner(dry_run=settings.dry_run)
        self.volume_manager = VolumeManager(settings.compose_dir)

    def _compose(self, *args: str) -> List[str]:
        return [self.settings.docker_bin, "compose", "-f", self.settings.compose_path, *args]

    def missing_images(self, config: DevnetConfig) -> List[str]:
        """
        Images declared by the services that are not in the local image store.
        """
        missing = []
        for image in config.images():
            result = self.runner.run(
                [self.settings.docker_bin, "image", "inspect", "--format", "{{.Id}}", image],
                capture=True,
                stage="launch",
            )
            if not result.ok:
                missing.append(image)
        return missing

    def up(self, config: DevnetConfig) -> StageResult:
        """
        Starts the stack detached, never building or pulling.

        :param config: The parsed devnet configuration.
        :return: A failed result if an image is missing or compose fails.
        """
        unnamed = [s.name for s in config.services.values() if not s.image_name]
        if unnamed:
            return StageResult.failed(Stage.LAUNCH, f"services without an image: {', '.join(unnamed)}")

        missing = self.missing_images(config)
        if missing:
            return StageResult.failed(
                Stage.LAUNCH,
                f"image(s) not built: {', '.join(missing)}; run the build stage first",
            )

        try:
            self.volume_manager.prepare(config, dry_run=self.settings.dry_run)
        except LaunchError as e:
            return StageResult.failed(Stage.LAUNCH, e.message)

        command = self._compose("up", "--no-build", "--pull", "never", "-d")
        result = self.runner.run(command, stage="launch")
        if not result.ok:
            return StageResult.failed(
                Stage.LAUNCH,
                f"stack failed to start with exit code {result.returncode}",
                exit_code=result.returncode,
                command=command,
            )

        console.success("launch", f"started {len(config.services)} service(s)")
        return StageResult.ok(Stage.LAUNCH, f"started {', '.join(config.services)}", command=command)

    def down(self, remove_volumes: bool = False) -> CommandResult:
        """
        Stops and removes the containers. The tmpfs genesis volume is cleared
        either way; ``remove_volumes`` also drops the volume objects, while the
        host directory behind the credentials bind mount is left alone.
        """
        args = ["down"]
        if remove_volumes:
            args.append("--volumes")
        return self.runner.run(self._compose(*args), stage="down")

    def ps(self) -> CommandResult:
        return self.runner.run(self._compose("ps"), stage="ps")
