import json
import pytest
from click.testing import CliRunner
from localnet.CLI.main import cli


def _invoke(project, *args, runner=None):
    base = ['--project-dir', str(project), '--env-file', str(project / 'absent.env')]
    obj = {'runner': runner} if runner is not None else {}
    return CliRunner().invoke(cli, base + list(args), obj=obj)


def test_cli_help():
    runner = CliRunner()
    result = runner.invoke(cli, ['--help'])
    assert result.exit_code == 0
    assert 'Build, start and initialize' in result.output


def test_cli_missing_compose_file(tmp_path):
    result = _invoke(tmp_path, 'up')
    assert result.exit_code == 1
    assert 'not found' in result.output


def test_validate(project):
    result = _invoke(project, 'validate')
    assert result.exit_code == 0
    assert 'validator expects 2 bridge(s), 2 defined' in result.output
    assert 'genesis' in result.output and 'ephemeral' in result.output


def test_validate_flags_inconsistency(project):
    compose = project / 'ci' / 'docker-compose.yml'
    compose.write_text(compose.read_text().replace('BRIDGE_COUNT=2', 'BRIDGE_COUNT=3'))
    result = _invoke(project, 'validate')
    assert result.exit_code == 1
    assert 'BRIDGE_COUNT is 3 but 2' in result.output


def test_cache_config_stdout(project):
    result = _invoke(project, 'cache-config', '--backend', 'gha')
    assert result.exit_code == 0
    document = json.loads(result.stdout)
    assert sorted(document['target']) == ['bridge-0', 'bridge-1', 'validator']


def test_run(project, make_runner):
    runner = make_runner()
    result = _invoke(project, 'run', runner=runner)
    assert result.exit_code == 0
    assert 'Devnet state: initialized' in result.output
    assert runner.ran('docker', 'buildx', 'bake')
    assert runner.ran('docker', 'compose')
    assert runner.commands[-1] == [str(project / 'tools' / 'gen_auth_tokens.sh')]


def test_run_token_failure(project, make_runner):
    script = str(project / 'tools' / 'gen_auth_tokens.sh')
    runner = make_runner({(script,): 2})
    result = _invoke(project, 'run', runner=runner)
    assert result.exit_code == 1
    assert 'Devnet state: failed' in result.output


def test_run_refuses_inconsistent_topology(project, make_runner):
    compose = project / 'ci' / 'docker-compose.yml'
    compose.write_text(compose.read_text().replace('NODE_ID=1', 'NODE_ID=2'))
    runner = make_runner()
    result = _invoke(project, 'run', runner=runner)
    assert result.exit_code == 1
    assert runner.commands == []


@pytest.mark.parametrize('command,prefix', [
    ('build', ('docker', 'buildx')),
    ('up', ('docker', 'compose')),
])
def test_stage_failure_exit_code(project, make_runner, command, prefix):
    runner = make_runner({prefix: 1})
    result = _invoke(project, command, runner=runner)
    assert result.exit_code == 1


def test_dry_run(project):
    result = _invoke(project, '--dry-run', 'run', '--skip-credentials')
    assert result.exit_code == 0
    assert 'would run: docker buildx bake' in result.output
    assert 'would run: docker compose' in result.output
    assert not (project / 'ci' / 'credentials').exists()


def test_down_and_ps(project, make_runner):
    runner = make_runner()
    assert _invoke(project, 'down', '-v', runner=runner).exit_code == 0
    assert _invoke(project, 'ps', runner=runner).exit_code == 0
    assert runner.commands[0][-2:] == ['down', '--volumes']
    assert runner.commands[1][-1] == 'ps'


def test_scaffold_and_export_action(tmp_path):
    out = tmp_path / 'ci' / 'docker-compose.yml'
    result = _invoke(tmp_path, 'scaffold', '--bridges', '3', '-o', str(out))
    assert result.exit_code == 0
    assert 'NODE_ID=2' in out.read_text()

    assert _invoke(tmp_path, 'validate').exit_code == 0

    action = tmp_path / 'action.yml'
    result = _invoke(tmp_path, 'export-action', '-o', str(action))
    assert result.exit_code == 0
    assert '"bridge-2"' in action.read_text()


def test_scaffold_rejects_zero_bridges(tmp_path):
    result = _invoke(tmp_path, 'scaffold', '--bridges', '0')
    assert result.exit_code == 2


def test_validate_reports_non_ascii_node_id(project):
    compose = project / 'ci' / 'docker-compose.yml'
    compose.write_text(compose.read_text().replace('NODE_ID=1', 'NODE_ID=²'))
    result = _invoke(project, 'validate')
    assert result.exit_code == 1
    assert result.exception is None or isinstance(result.exception, SystemExit)
    assert 'bridge-1: NODE_ID must be a natural number' in result.output


def test_env_file_resolved_against_project_dir(project, make_runner):
    (project / '.env').write_text('LOCALNET_DOCKER_BIN=podman\n')
    runner = make_runner()
    result = CliRunner().invoke(cli, ['--project-dir', str(project), 'build'], obj={'runner': runner})
    assert result.exit_code == 0
    assert runner.ran('podman', 'buildx', 'bake')


def test_cache_config_unwritable_output(project):
    blocked = project / 'tools' / 'gen_auth_tokens.sh' / 'cache.json'
    result = _invoke(project, 'cache-config', '-o', str(blocked))
    assert result.exit_code == 1
    assert 'cannot write cache document' in result.output
