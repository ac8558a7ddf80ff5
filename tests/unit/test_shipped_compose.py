import os
from localnet.PARSERS.compose_parser import ComposeParser
from localnet.VALIDATION.topology import TopologyValidator

SHIPPED = os.path.join(os.path.dirname(__file__), "..", "..", "ci", "docker-compose.yml")


def test_shipped_compose_is_consistent():
    config = ComposeParser(context={}).parse(SHIPPED)
    assert TopologyValidator().validate(config) == []
    assert [b.host_port_for(26658) for b in config.bridges()] == [26658, 36658]
