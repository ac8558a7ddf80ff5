"""
Unit tests for the build, launch and credential stages.
"""
import json
import os
from localnet.BUILDERS.image_builder import ImageBuilder
from localnet.MANAGERS.stack_launcher import StackLauncher
from localnet.MANAGERS.credential_initializer import CredentialInitializer
from localnet.MODELS.stage_result import Stage


class TestImageBuilder:
    """Tests for ImageBuilder."""

    def test_build(self, devnet, settings, make_runner, gha_env):
        runner = make_runner()
        result = ImageBuilder(settings, runner).build(devnet)

        assert result.success
        assert result.stage == Stage.BUILD
        assert runner.commands == [[
            "docker", "buildx", "bake",
            "--file", "docker-compose.yml", "--file", "cache.json", "--load",
        ]]
        with open(settings.cache_path) as f:
            document = json.load(f)
        assert sorted(document["target"]) == ["bridge-0", "bridge-1", "validator"]
        assert document["target"]["validator"]["cache-to"] == ["type=gha,mode=max,scope=validator,ignore-error=true"]

    def test_build_never_pushes(self, devnet, settings, make_runner):
        runner = make_runner()
        ImageBuilder(settings, runner).build(devnet)
        assert "--push" not in runner.commands[0]
        with open(settings.cache_path) as f:
            for target in json.load(f)["target"].values():
                assert target["output"] == ["type=docker"]

    def test_build_without_gha_runtime(self, devnet, settings, make_runner, monkeypatch):
        monkeypatch.delenv("ACTIONS_RUNTIME_TOKEN", raising=False)
        ImageBuilder(settings, make_runner()).build(devnet)
        with open(settings.cache_path) as f:
            assert json.load(f)["target"]["bridge-0"]["cache-from"] == []

    def test_build_failure(self, devnet, settings, make_runner):
        runner = make_runner({("docker", "buildx"): 1})
        result = ImageBuilder(settings, runner).build(devnet)
        assert not result.success
        assert result.exit_code == 1
        assert "exit code 1" in result.message

    def test_unwritable_cache_document(self, devnet, project, make_runner):
        from localnet.CONFIG.settings import LocalnetSettings
        settings = LocalnetSettings(project_dir=str(project), cache_file="tools/gen_auth_tokens.sh/cache.json")
        runner = make_runner()
        result = ImageBuilder(settings, runner).build(devnet)
        assert not result.success
        assert "cannot write cache document" in result.message
        assert runner.commands == []

    def test_nothing_to_build(self, settings, make_runner):
        from localnet.MODELS.orchestration_config import DevnetConfig
        runner = make_runner()
        result = ImageBuilder(settings, runner).build(DevnetConfig(services={}))
        assert not result.success
        assert runner.commands == []


class TestStackLauncher:
    """Tests for StackLauncher."""

    def test_up(self, devnet, settings, make_runner, project):
        runner = make_runner()
        result = StackLauncher(settings, runner).up(devnet)

        assert result.success
        inspected = [c[-1] for c in runner.ran("docker", "image", "inspect")]
        assert inspected == ["validator", "bridge"]
        assert runner.commands[-1] == [
            "docker", "compose", "-f", settings.compose_path,
            "up", "--no-build", "--pull", "never", "-d",
        ]
        assert (project / "ci" / "credentials").is_dir()

    def test_missing_image_fails_fast(self, devnet, settings, make_runner):
        runner = make_runner({("docker", "image", "inspect", "--format", "{{.Id}}", "bridge"): 1})
        result = StackLauncher(settings, runner).up(devnet)

        assert not result.success
        assert "bridge" in result.message
        assert runner.ran("docker", "compose") == []

    def test_compose_failure(self, devnet, settings, make_runner):
        runner = make_runner({("docker", "compose"): 18})
        result = StackLauncher(settings, runner).up(devnet)
        assert not result.success
        assert result.exit_code == 18

    def test_down(self, settings, make_runner):
        runner = make_runner()
        launcher = StackLauncher(settings, runner)
        assert launcher.down().ok
        assert launcher.down(remove_volumes=True).ok
        assert runner.commands[0][-1] == "down"
        assert runner.commands[1][-2:] == ["down", "--volumes"]


    def test_blocked_credentials_directory(self, devnet, settings, make_runner, project):
        (project / "ci" / "credentials").write_text("not a directory")
        runner = make_runner()
        result = StackLauncher(settings, runner).up(devnet)
        assert not result.success
        assert "credentials" in result.message
        assert runner.ran("docker", "compose") == []


class TestCredentialInitializer:
    """Tests for CredentialInitializer."""

    def test_runs_script_once(self, settings, make_runner):
        runner = make_runner()
        result = CredentialInitializer(settings, runner).initialize()
        assert result.success
        assert runner.commands == [[settings.token_script_path]]

    def test_script_failure_is_authoritative(self, settings, make_runner):
        runner = make_runner({(settings.token_script_path,): 3})
        result = CredentialInitializer(settings, runner).initialize()
        assert not result.success
        assert result.exit_code == 3
        assert len(runner.commands) == 1

    def test_missing_script(self, settings, make_runner, project):
        os.remove(project / "tools" / "gen_auth_tokens.sh")
        runner = make_runner()
        result = CredentialInitializer(settings, runner).initialize()
        assert not result.success
        assert "not found" in result.message
        assert runner.commands == []

    def test_script_not_executable(self, settings, make_runner, project):
        os.chmod(project / "tools" / "gen_auth_tokens.sh", 0o644)
        runner = make_runner()
        result = CredentialInitializer(settings, runner).initialize()
        assert not result.success
        assert "not executable" in result.message
        assert runner.commands == []
