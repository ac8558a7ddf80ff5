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
Converters for generating a devnet compose file with any number of bridge nodes.
"""
import os
from jinja2 import Template

BRIDGE_RPC_PORT = 26658
VALIDATOR_GRPC_PORT = 9090
VALIDATOR_HOST_PORT = 19090
BRIDGE_PORT_STEP = 10000

COMPOSE_TEMPLATE = """services:
  validator:
    image: {{ validator_image }}
    platform: "{{ platform }}"
    build:
      context: .
      dockerfile: Dockerfile.validator
    environment:
      # provide amount of bridge nodes to provision (default: 2)
      - BRIDGE_COUNT={{ bridges | length }}
    ports:
      - {{ validator_host_port }}:{{ validator_port }}
    volumes:
      - credentials:/credentials
      - genesis:/genesis
{% for bridge in bridges %}
  bridge-{{ bridge.node_id }}:
    image: {{ bridge_image }}
    platform: "{{ platform }}"
    build:
      context: .
      dockerfile: Dockerfile.bridge
    environment:
      # each node should have a next natural number starting from 0
      - NODE_ID={{ bridge.node_id }}
{%- if bridge.skip_auth %}
      # setting SKIP_AUTH to true disables the use of JWT for authentication
      - SKIP_AUTH=true
{%- endif %}
      - CELESTIA_ENABLE_QUIC=1
    ports:
      - {{ bridge.host_port }}:{{ bridge_port }}
    volumes:
      - credentials:/credentials
      - genesis:/genesis
{% endfor %}
volumes:
  # local volume where node's credentials can persist
  credentials:
    driver: local
    driver_opts:
      type: 'none'
      o: 'bind'
      device: '{{ credentials_dir }}'
  # a temporary fs where the genesis hash is announced
  genesis:
    driver_opts:
      type: tmpfs
      device: tmpfs
"""


def bridge_host_port(node_id: int) -> int:
    """
    Host port for a bridge's RPC: 26658, 36658, 46658, ...
    """
    return BRIDGE_RPC_PORT + BRIDGE_PORT_STEP * node_id


class ComposeConverter:
    """
    Renders a compose file for one validator and ``bridge_count`` bridge nodes.

    Only bridge-0 skips auth; the others keep JWT auth enabled.
    """

    def __init__(self, bridge_count: int = 2, platform: str = "linux/amd64",
                 validator_image: str = "validator", bridge_image: str = "bridge",
                 credentials_dir: str = "./credentials"):
        """
        Initializes the compose converter.

        :param bridge_count: Number of bridge nodes, at least 1.
        :param platform: Target platform of every image.
        :raises ValueError: If ``bridge_count`` is below 1 or the last bridge's port exceeds 65535.
        """
        if bridge_count < 1:
            raise ValueError("a devnet needs at least one bridge node")
        if bridge_host_port(bridge_count - 1) > 65535:
            raise ValueError(f"too many bridge nodes for the port layout: {bridge_count}")
        self.bridge_count = bridge_count
        self.platform = platform
        self.validator_image = validator_image
        self.bridge_image = bridge_image
        self.credentials_dir = credentials_dir
        self.template = Template(COMPOSE_TEMPLATE)

    def render(self) -> str:
        bridges = [
            {"node_id": i, "host_port": bridge_host_port(i), "skip_auth": i == 0}
            for i in range(self.bridge_count)
        ]
        return self.template.render(
            bridges=bridges,
            platform=self.platform,
            validator_image=self.validator_image,
            bridge_image=self.bridge_image,
            validator_port=VALIDATOR_GRPC_PORT,
            validator_host_port=VALIDATOR_HOST_PORT,
            bridge_port=BRIDGE_RPC_PORT,
            credentials_dir=self.credentials_dir,
        )

    def convert(self, output_path: str = "ci/docker-compose.yml"):
        """
        Writes the compose file.

        :param output_path: Destination file.
        :return: The path written.
        """
        parent = os.path.dirname(output_path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        with open(output_path, "w") as f:
            f.write(self.render())
        return output_path
