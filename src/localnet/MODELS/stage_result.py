"""
Models for pipeline stage outcomes and pipeline state.
"""
from typing import List, Optional
from pydantic import BaseModel, ConfigDict
from enum import Enum


class PipelineState(str, Enum):
    """
    Linear lifecycle of a devnet bootstrap run. FAILED is terminal.
    """
    NOT_STARTED = "not-started"
    BUILT = "built"
    RUNNING = "running"
    INITIALIZED = "initialized"
    FAILED = "failed"


class Stage(str, Enum):
    BUILD = "build"
    LAUNCH = "launch"
    CREDENTIALS = "credentials"


class StageResult(BaseModel):
    """
    Success or failure of one stage plus a short diagnostic.
    The external tool's own output is not captured here; it goes straight to the terminal.
    """
    model_config = ConfigDict(frozen=True)

    stage: Stage
    success: bool
    message: str = ""
    exit_code: Optional[int] = None
    command: List[str] = []

    @classmethod
    def ok(cls, stage: Stage, message: str = "", command: Optional[List[str]] = None) -> "StageResult":
        return cls(stage=stage, success=True, message=message, exit_code=0, command=command or [])

    @classmethod
    def failed(cls, stage: Stage, message: str, exit_code: Optional[int] = None,
               command: Optional[List[str]] = None) -> "StageResult":
        return cls(stage=stage, success=False, message=message, exit_code=exit_code, command=command or [])


class PipelineResult(BaseModel):
    """
    Outcome of a full run: the final state and every stage that was attempted.
    """
    state: PipelineState = PipelineState.NOT_STARTED
    stages: List[StageResult] = []

    @property
    def success(self) -> bool:
        return self.state != PipelineState.FAILED

    @property
    def failed_stage(self) -> Optional[StageResult]:
        for result in self.stages:
            if not result.success:
                return result
        return None

    @property
    def exit_code(self) -> int:
        return 0 if self.success else 1
