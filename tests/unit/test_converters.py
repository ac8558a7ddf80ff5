"""
Unit tests for the compose and action generators.
"""
import json
import pytest
import yaml
from localnet.CONVERTERS.to_compose import ComposeConverter, bridge_host_port
from localnet.CONVERTERS.to_action import ActionConverter
from localnet.PARSERS.compose_parser import ComposeParser
from localnet.VALIDATION.topology import TopologyValidator


def _parse(text):
    return ComposeParser(context={}).parse_from_string(text)


def test_bridge_host_ports():
    assert [bridge_host_port(i) for i in range(3)] == [26658, 36658, 46658]


def test_default_matches_devnet(devnet):
    config = _parse(ComposeConverter().render())
    assert config.services == devnet.services
    assert config.volumes == devnet.volumes


@pytest.mark.parametrize("count", [1, 3, 4])
def test_scaled_devnet_is_consistent(count):
    config = _parse(ComposeConverter(bridge_count=count).render())
    assert TopologyValidator().validate(config) == []
    assert config.validator().bridge_count == count
    bridges = config.bridges()
    assert [b.node_id for b in bridges] == list(range(count))
    assert [b.host_port_for(26658) for b in bridges] == [bridge_host_port(i) for i in range(count)]
    assert [b.skip_auth for b in bridges] == [True] + [False] * (count - 1)


def test_invalid_bridge_count():
    with pytest.raises(ValueError):
        ComposeConverter(bridge_count=0)
    with pytest.raises(ValueError):
        ComposeConverter(bridge_count=5)


def test_convert_writes_file(tmp_path):
    path = ComposeConverter(bridge_count=3).convert(str(tmp_path / "ci" / "docker-compose.yml"))
    assert "NODE_ID=2" in open(path).read()


def test_action(devnet):
    action = yaml.safe_load(ActionConverter(devnet).render())
    steps = action["runs"]["steps"]
    assert action["runs"]["using"] == "composite"
    assert [s.get("uses") for s in steps[:2]] == ["docker/setup-buildx-action@v3", "crazy-max/ghaction-github-runtime@v1"]

    build = steps[2]["run"]
    document = build[build.index("{"):build.rindex("}") + 1]
    assert sorted(json.loads(document)["target"]) == ["bridge-0", "bridge-1", "validator"]
    assert "cd ci && docker buildx bake --file docker-compose.yml --file cache.json --load" in build
    assert steps[3]["run"] == "docker compose -f ci/docker-compose.yml up --no-build -d"
    assert steps[4]["run"] == "./tools/gen_auth_tokens.sh"
