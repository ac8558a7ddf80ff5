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
Sequencing of the build, launch and credential stages.
"""
from typing import Callable, List, Optional
from ..CONFIG.settings import LocalnetSettings
from ..MODELS.orchestration_config import DevnetConfig
from ..MODELS.stage_result import PipelineResult, PipelineState, StageResult
from ..BUILDERS.image_builder import ImageBuilder
from ..RUNNERS.process_runner import ProcessRunner
from ..UTILS import console
from .stack_launcher import StackLauncher
from .credential_initializer import CredentialInitializer


class DevnetPipeline:
    """
    Runs NotStarted -> Built -> Running -> Initialized, one stage at a time.

    The first failing stage moves the run to FAILED and nothing after it
    runs. A failed credential stage leaves the stack running.
    """
    def __init__(self, config: DevnetConfig, settings: LocalnetSettings,
                 runner: Optional[ProcessRunner] = None):
        """
        Initializes the pipeline.

        :param config: Configuration for all services.
        :param settings: Paths, cache backend and tools.
        :param runner: Runner shared by every stage.
        """
        self.config = config
        self.settings = settings
        runner = runner or ProcessRunner(dry_run=settings.dry_run)
        self.builder = ImageBuilder(settings, runner)
        self.launcher = StackLauncher(settings, runner)
        self.credentials = CredentialInitializer(settings, runner)
        self.result = PipelineResult()

    @property
    def state(self) -> PipelineState:
        return self.result.state

    def stages(self, skip_build: bool = False,
               skip_credentials: bool = False) -> List[tuple]:
        """
        The stages to run with the state each one leads to on success.
        A skipped stage still advances the state, as if it had already happened.
        """
        plan = [
            (PipelineState.BUILT, None if skip_build else lambda: self.builder.build(self.config)),
            (PipelineState.RUNNING, lambda: self.launcher.up(self.config)),
            (PipelineState.INITIALIZED, None if skip_credentials else self.credentials.initialize),
        ]
        return plan

    def run(self, skip_build: bool = False, skip_credentials: bool = False) -> PipelineResult:
        """
        Runs all stages in order, stopping at the first failure.

        :return: Final state and the result of every stage attempted.
        """
        if self.result.state != PipelineState.NOT_STARTED:
            raise RuntimeError(f"pipeline already ran (state: {self.result.state.value})")

        for next_state, stage in self.stages(skip_build, skip_credentials):
            if stage is not None and not self._run_stage(stage):
                return self.result
            self.result.state = next_state

        console.success("pipeline", "devnet is up and initialized")
        return self.result

    def _run_stage(self, stage: Callable[[], StageResult]) -> bool:
        outcome = stage()
        self.result.stages.append(outcome)
        if not outcome.success:
            self.result.state = PipelineState.FAILED
            console.error(outcome.stage.value, outcome.message)
            return False
        return True
