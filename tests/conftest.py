import os
import pytest
from localnet.CONFIG.settings import LocalnetSettings, CacheBackend
from localnet.RUNNERS.process_runner import ProcessRunner, CommandResult

DEVNET_COMPOSE = """
services:
  validator:
    image: validator
    platform: "linux/amd64"
    build:
      context: .
      dockerfile: Dockerfile.validator
    environment:
      # provide amount of bridge nodes to provision (default: 2)
      - BRIDGE_COUNT=2
    ports:
      - 19090:9090
    volumes:
      - credentials:/credentials
      - genesis:/genesis

  bridge-0:
    image: bridge
    platform: "linux/amd64"
    build:
      context: .
      dockerfile: Dockerfile.bridge
    environment:
      - NODE_ID=0
      - SKIP_AUTH=true
      - CELESTIA_ENABLE_QUIC=1
    ports:
      - 26658:26658
    volumes:
      - credentials:/credentials
      - genesis:/genesis

  bridge-1:
    image: bridge
    platform: "linux/amd64"
    build:
      context: .
      dockerfile: Dockerfile.bridge
    environment:
      - NODE_ID=1
      - CELESTIA_ENABLE_QUIC=1
    ports:
      - 36658:26658
    volumes:
      - credentials:/credentials
      - genesis:/genesis

volumes:
  credentials:
    driver: local
    driver_opts:
      type: 'none'
      o: 'bind'
      device: './credentials'
  genesis:
    driver_opts:
      type: tmpfs
      device: tmpfs
"""


class FakeRunner(ProcessRunner):
    """
    Records commands instead of running them.

    ``failures`` maps a command prefix (tuple of leading arguments) to the exit code
    any command starting with it should return.
    """

    def __init__(self, failures=None):
        super().__init__()
        self.failures = dict(failures or {})
        self.commands = []

    def run(self, command, cwd=None, capture=False, stage="run"):
        self.commands.append(list(command))
        for prefix, code in self.failures.items():
            if tuple(command[:len(prefix)]) == tuple(prefix):
                return CommandResult(command=list(command), returncode=code)
        return CommandResult(command=list(command), returncode=0)

    def ran(self, *prefix):
        return [c for c in self.commands if tuple(c[:len(prefix)]) == prefix]


@pytest.fixture
def project(tmp_path):
    """A project dir with the devnet compose file and an executable token script."""
    ci = tmp_path / "ci"
    ci.mkdir()
    (ci / "docker-compose.yml").write_text(DEVNET_COMPOSE)
    tools = tmp_path / "tools"
    tools.mkdir()
    script = tools / "gen_auth_tokens.sh"
    script.write_text("#!/bin/sh\nexit 0\n")
    os.chmod(script, 0o755)
    return tmp_path


@pytest.fixture
def settings(project):
    return LocalnetSettings(project_dir=str(project), cache_backend=CacheBackend.GHA)


@pytest.fixture
def devnet(settings):
    from localnet.PARSERS.compose_parser import ComposeParser
    return ComposeParser(context={}).parse(settings.compose_path)


@pytest.fixture
def gha_env(monkeypatch):
    monkeypatch.setenv("ACTIONS_RUNTIME_TOKEN", "token")
    monkeypatch.setenv("ACTIONS_CACHE_URL", "https://cache.example/")


@pytest.fixture
def make_runner():
    return FakeRunner


@pytest.fixture
def compose_text():
    return DEVNET_COMPOSE
