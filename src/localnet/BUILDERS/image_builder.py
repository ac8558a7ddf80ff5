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
Image build stage: builds every devnet image through ``docker buildx bake``
with per-service cache scopes and loads the results locally.
"""
import os
from typing import Optional
from ..CONFIG.settings import LocalnetSettings
from ..MODELS.orchestration_config import DevnetConfig
from ..MODELS.stage_result import Stage, StageResult
from ..RUNNERS.process_runner import ProcessRunner
from ..UTILS import console
from ..errors import BuildError
from .cache_config import CacheConfigBuilder


class ImageBuilder:
    """
    Builds the validator and bridge images from their build recipes.

    Bake reads the compose file for targets and the cache document for
    overrides; it may build independent targets in parallel.
    """
    def __init__(self, settings: LocalnetSettings, runner: Optional[ProcessRunner] = None):
        """
        Initializes the ImageBuilder.

        :param settings: Paths, cache backend and docker binary.
        :param runner: Runner for external commands.
        """
        self.settings = settings
        self.runner = runner or ProcessRunner(dry_run=settings.dry_run)
        self.cache_builder = CacheConfigBuilder(
            backend=settings.cache_backend,
            mode=settings.cache_mode,
            cache_dir=settings.cache_dir_path,
            ignore_error=settings.cache_ignore_error,
        )

    def bake_command(self, cache_path: str) -> list:
        return [
            self.settings.docker_bin, "buildx", "bake",
            "--file", os.path.basename(self.settings.compose_path),
            "--file", os.path.relpath(cache_path, self.settings.compose_dir),
            "--load",
        ]

    def build(self, config: DevnetConfig) -> StageResult:
        """
        Writes the cache document and runs bake.

        :param config: The parsed devnet configuration.
        :return: A failed result on any build error; nothing is started in that case.
        """
        targets = config.buildable_services()
        if not targets:
            return StageResult.failed(Stage.BUILD, "no service declares a build recipe")

        backend = self.cache_builder.resolve_backend()
        try:
            cache_path = self.cache_builder.write(config, self.settings.cache_path, backend)
        except BuildError as e:
            return StageResult.failed(Stage.BUILD, e.message)
        console.info("build", f"cache document for {', '.join(s.name for s in targets)} written to {cache_path}")

        command = self.bake_command(cache_path)
        result = self.runner.run(command, cwd=self.settings.compose_dir, stage="build")
        if not result.ok:
            return StageResult.failed(
                Stage.BUILD,
                f"image build failed with exit code {result.returncode}",
                exit_code=result.returncode,
                command=command,
            )

        console.success("build", f"built {len(targets)} image(s)")
        return StageResult.ok(Stage.BUILD, f"built {len(targets)} image(s)", command=command)
