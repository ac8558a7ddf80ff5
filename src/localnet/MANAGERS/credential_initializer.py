"""
Auth token generation for a running devnet.
"""
import os
from typing import Optional
from ..CONFIG.settings import LocalnetSettings
from ..MODELS.stage_result import Stage, StageResult
from ..RUNNERS.process_runner import ProcessRunner
from ..UTILS import console
from ..errors import CredentialError


class CredentialInitializer:
    """
    Runs the external token generation script exactly once.

    The script's exit code is authoritative. No readiness probing happens
    here; if the nodes need waiting for, the script does it.
    """
    def __init__(self, settings: LocalnetSettings, runner: Optional[ProcessRunner] = None):
        self.settings = settings
        self.runner = runner or ProcessRunner(dry_run=settings.dry_run)

    def _script(self) -> str:
        """
        :raises CredentialError: If the token script is missing or not executable.
        """
        script = self.settings.token_script_path
        if self.settings.dry_run:
            return script
        if not os.path.isfile(script):
            raise CredentialError(f"token script {script} not found", details={"script": script})
        if not os.access(script, os.X_OK):
            raise CredentialError(f"token script {script} is not executable", details={"script": script})
        return script

    def initialize(self) -> StageResult:
        try:
            script = self._script()
        except CredentialError as e:
            return StageResult.failed(Stage.CREDENTIALS, e.message)

        command = [script]
        result = self.runner.run(command, cwd=self.settings.project_path, stage="credentials")
        if not result.ok:
            return StageResult.failed(
                Stage.CREDENTIALS,
                f"token generation failed with exit code {result.returncode}; the stack is still running",
                exit_code=result.returncode,
                command=command,
            )

        console.success("credentials", "auth tokens generated")
        return StageResult.ok(Stage.CREDENTIALS, "auth tokens generated", command=command)
