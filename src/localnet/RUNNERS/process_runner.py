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
Execution of external tools (docker, the token script) in the foreground.
"""
import subprocess
import os
import shlex
from dataclasses import dataclass, field
from typing import List, Dict, Optional
from ..UTILS import console


@dataclass
class CommandResult:
    """
    Outcome of one external command.
    """
    command: List[str]
    returncode: int
    stdout: str = ""
    dry_run: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0


@dataclass
class ProcessRunner:
    """
    Runs external commands to completion, one at a time.

    Output is not captured unless asked for: the tool's own diagnostics are the
    only detail a user gets on failure, so they go straight to the terminal.

    Args:
        dry_run: Print commands instead of executing them.
        env: Extra environment variables layered over ``os.environ``.
    """
    dry_run: bool = False
    env: Dict[str, str] = field(default_factory=dict)

    def run(self,
            command: List[str],
            cwd: Optional[str] = None,
            capture: bool = False,
            stage: str = "run") -> CommandResult:
        """
        Runs a command and waits for it.

        Args:
            command: Command and arguments to execute.
            cwd: Directory to run in.
            capture: Capture stdout instead of streaming it; stderr always streams.
            stage: Prefix for status output.

        Returns:
            CommandResult: With the exit code. A command that cannot be spawned
            (e.g. the binary is not on PATH) yields exit code 127, like a shell would.
        """
        where = f" (in {cwd})" if cwd else ""
        if self.dry_run:
            console.info(stage, f"would run: {shlex.join(command)}{where}")
            return CommandResult(command=list(command), returncode=0, dry_run=True)

        console.info(stage, f"running: {shlex.join(command)}{where}")
        env = os.environ.copy()
        env.update(self.env)
        try:
            completed = subprocess.run(
                command,
                cwd=cwd,
                env=env,
                stdout=subprocess.PIPE if capture else None,
                text=True,
                check=False,
                # Avoid shell=True for security reasons (CWE-78)
                shell=False,
            )
        except OSError as e:
            console.error(stage, f"failed to start {command[0]}: {e}")
            return CommandResult(command=list(command), returncode=127)

        return CommandResult(
            command=list(command),
            returncode=completed.returncode,
            stdout=completed.stdout or "",
        )
