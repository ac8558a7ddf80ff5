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
Typed errors for localnet.

- LocalnetError: base for every error raised by this package
- ConfigurationError: compose file or settings are unusable or inconsistent
- BuildError: the image build stage failed
- LaunchError: the stack could not be started
- CredentialError: token generation failed
"""
from typing import Any, Dict, Optional


class LocalnetError(Exception):
    """
    Base exception for all localnet errors.

    Attributes:
        message: Human-readable error message
        code: Optional error code for programmatic handling
        details: Additional context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to a dictionary for serialization."""
        result: Dict[str, Any] = {
            "type": self.__class__.__name__,
            "message": self.message,
        }
        if self.code:
            result["code"] = self.code
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message


class ConfigurationError(LocalnetError):
    """
    Raised when the compose file or settings cannot be used.

    ``issues`` holds every individual problem found, so callers can
    report them all at once instead of one per run.
    """

    def __init__(self, message: str, issues: Optional[list] = None, code: str = "CONFIG"):
        self.issues = list(issues or [])
        details = {"issues": self.issues} if self.issues else None
        super().__init__(message, code=code, details=details)


class BuildError(LocalnetError):
    """Raised when building the devnet images fails."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="BUILD", details=details)


class LaunchError(LocalnetError):
    """Raised when the devnet stack cannot be started."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="LAUNCH", details=details)


class CredentialError(LocalnetError):
    """Raised when auth token generation fails."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="CREDENTIALS", details=details)

