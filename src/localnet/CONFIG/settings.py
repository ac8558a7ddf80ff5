"""
Settings for a devnet bootstrap run.

Values are layered, later sources winning: built-in defaults, a ``.env``
file, ``LOCALNET_*`` process environment variables, explicit overrides
(typically CLI options).
"""
import os
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from dotenv import dotenv_values
from pydantic import BaseModel, ValidationError

from ..errors import ConfigurationError

ENV_PREFIX = "LOCALNET_"
GHA_RUNTIME_VARS = ("ACTIONS_RUNTIME_TOKEN",)
GHA_CACHE_URL_VARS = ("ACTIONS_CACHE_URL", "ACTIONS_RESULTS_URL")


class CacheBackend(str, Enum):
    GHA = "gha"
    LOCAL = "local"
    NONE = "none"


class CacheMode(str, Enum):
    MAX = "max"
    MIN = "min"


class LocalnetSettings(BaseModel):
    """
    Everything the pipeline needs to know besides the compose file contents.
    """
    compose_file: str = "ci/docker-compose.yml"
    project_dir: str = "."
    cache_file: Optional[str] = None
    cache_backend: CacheBackend = CacheBackend.GHA
    cache_mode: CacheMode = CacheMode.MAX
    cache_dir: str = ".localnet/cache"
    cache_ignore_error: bool = True
    token_script: str = "./tools/gen_auth_tokens.sh"
    docker_bin: str = "docker"
    dry_run: bool = False

    @property
    def project_path(self) -> str:
        return os.path.abspath(self.project_dir)

    @property
    def compose_path(self) -> str:
        return os.path.join(self.project_path, self.compose_file)

    @property
    def compose_dir(self) -> str:
        return os.path.dirname(self.compose_path)

    @property
    def cache_path(self) -> str:
        """
        The cache document lives beside the compose file unless configured otherwise.
        """
        if self.cache_file:
            return os.path.join(self.project_path, self.cache_file)
        return os.path.join(self.compose_dir, "cache.json")

    @property
    def cache_dir_path(self) -> str:
        return os.path.join(self.project_path, self.cache_dir)

    @property
    def token_script_path(self) -> str:
        return os.path.join(self.project_path, self.token_script)

    @classmethod
    def load(cls,
             env_file: Optional[str] = None,
             environ: Optional[Mapping[str, str]] = None,
             **overrides: Any) -> "LocalnetSettings":
        """
        Builds settings from a ``.env`` file, the environment and explicit overrides.

        :param env_file: Path to a dotenv file; a missing file is ignored.
        :param environ: Environment mapping, defaults to ``os.environ``.
        :param overrides: Field values that win over every other source. None values are skipped.
        :raises ConfigurationError: If a value cannot be converted.
        """
        environ = os.environ if environ is None else environ
        values: Dict[str, Any] = {}

        if env_file and os.path.exists(env_file):
            values.update(_strip_prefix(dotenv_values(env_file)))
        values.update(_strip_prefix(environ))
        values.update({k: v for k, v in overrides.items() if v is not None})

        try:
            return cls(**values)
        except ValidationError as e:
            issues = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
            raise ConfigurationError("Invalid localnet settings", issues=issues) from e


def gha_cache_available(environ: Optional[Mapping[str, str]] = None) -> bool:
    """
    True when the GitHub Actions runtime variables the ``gha`` cache backend needs are exposed.
    """
    environ = os.environ if environ is None else environ
    has_token = all(environ.get(name) for name in GHA_RUNTIME_VARS)
    has_url = any(environ.get(name) for name in GHA_CACHE_URL_VARS)
    return has_token and has_url


def _strip_prefix(source: Mapping[str, Optional[str]]) -> Dict[str, str]:
    fields = LocalnetSettings.model_fields
    result = {}
    for key, value in source.items():
        if not key.startswith(ENV_PREFIX) or value is None:
            continue
        name = key[len(ENV_PREFIX):].lower()
        if name in fields:
            result[name] = value
    return result
