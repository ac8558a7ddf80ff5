"""
Generation of the bake override document that wires each service to its own
build cache scope and loads the result into the local docker image store.
"""
import json
import os
from typing import Dict, List, Optional

from ..CONFIG.settings import CacheBackend, CacheMode, gha_cache_available
from ..MODELS.cache_config import CacheConfig, CacheScope, CacheTarget
from ..MODELS.orchestration_config import DevnetConfig
from ..UTILS import console
from ..errors import BuildError

# Images are loaded into the local store, never pushed.
DOCKER_OUTPUT = "type=docker"


class CacheConfigBuilder:
    """
    Builds one bake target per service, each keyed to a cache scope named after the service.
    """
    def __init__(self,
                 backend: CacheBackend = CacheBackend.GHA,
                 mode: CacheMode = CacheMode.MAX,
                 cache_dir: str = ".localnet/cache",
                 ignore_error: bool = False):
        """
        :param backend: Where cache layers are read from and written to.
        :param mode: ``max`` exports all intermediate layers, ``min`` only the final ones.
        :param cache_dir: Root directory for the ``local`` backend.
        :param ignore_error: Tolerate cache export failures instead of failing the build.
        """
        self.backend = CacheBackend(backend)
        self.mode = CacheMode(mode)
        self.cache_dir = cache_dir
        self.ignore_error = ignore_error

    def resolve_backend(self, environ: Optional[Dict[str, str]] = None) -> CacheBackend:
        """
        The ``gha`` backend only works inside a runner that exposes its runtime
        token; anywhere else the build falls back to running without a cache.
        """
        if self.backend == CacheBackend.GHA and not gha_cache_available(environ):
            console.warn("cache", "GitHub Actions cache runtime not exposed, building without cache")
            return CacheBackend.NONE
        return self.backend

    def target_for(self, scope: CacheScope, backend: Optional[CacheBackend] = None) -> CacheTarget:
        backend = self.backend if backend is None else backend
        if backend == CacheBackend.NONE:
            return CacheTarget(output=[DOCKER_OUTPUT])

        if backend == CacheBackend.GHA:
            cache_from = f"type=gha,scope={scope.name}"
            cache_to = f"type=gha,mode={self.mode.value},scope={scope.name}"
        else:
            path = os.path.join(self.cache_dir, scope.name)
            cache_from = f"type=local,src={path}"
            cache_to = f"type=local,dest={path},mode={self.mode.value}"

        if self.ignore_error:
            cache_to += ",ignore-error=true"
        return CacheTarget(cache_from=[cache_from], cache_to=[cache_to], output=[DOCKER_OUTPUT])

    def build(self, config: DevnetConfig, backend: Optional[CacheBackend] = None) -> CacheConfig:
        """
        :param config: Devnet whose buildable services become bake targets.
        :param backend: Overrides the configured backend, e.g. with :meth:`resolve_backend`.
        """
        targets = {
            svc.name: self.target_for(CacheScope(service=svc.name), backend)
            for svc in config.buildable_services()
        }
        return CacheConfig(target=targets)

    def write(self, config: DevnetConfig, path: str, backend: Optional[CacheBackend] = None) -> str:
        """
        Writes the cache document as JSON.

        :return: The path written.
        :raises BuildError: If the file cannot be written.
        """
        document = self.build(config, backend).to_document()
        parent = os.path.dirname(path)
        try:
            if parent:
                os.makedirs(parent, exist_ok=True)
            with open(path, "w") as f:
                json.dump(document, f, indent=2)
                f.write("\n")
        except OSError as e:
            raise BuildError(f"cannot write cache document {path}: {e.strerror or e}",
                             details={"path": path}) from e
        return path

    @staticmethod
    def scopes(config: CacheConfig) -> List[str]:
        return sorted(config.target)
