import sys
from localnet.RUNNERS.process_runner import ProcessRunner


def test_run_success():
    result = ProcessRunner().run([sys.executable, "-c", "print('hi')"], capture=True)
    assert result.ok
    assert result.stdout.strip() == "hi"


def test_exit_code_is_reported():
    result = ProcessRunner().run([sys.executable, "-c", "raise SystemExit(4)"])
    assert not result.ok
    assert result.returncode == 4


def test_extra_env(tmp_path):
    runner = ProcessRunner(env={"LOCALNET_TEST_VALUE": "42"})
    result = runner.run([sys.executable, "-c", "import os; print(os.environ['LOCALNET_TEST_VALUE'])"],
                        cwd=str(tmp_path), capture=True)
    assert result.stdout.strip() == "42"


def test_missing_binary():
    result = ProcessRunner().run(["localnet-no-such-binary-xyz"])
    assert result.returncode == 127


def test_dry_run(capsys):
    result = ProcessRunner(dry_run=True).run(["docker", "compose", "up"], stage="launch")
    assert result.ok and result.dry_run
    assert "[launch] would run: docker compose up" in capsys.readouterr().err
