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
Parsers for the devnet's Docker Compose YAML file.
"""
import yaml
from typing import Dict, Any, List, Optional
from ..MODELS.orchestration_config import DevnetConfig
from ..MODELS.service_definition import ServiceDefinition, PortBinding, VolumeMount
from ..MODELS.volume_definition import VolumeDefinition
from ..UTILS.string_interpolation import EnvironmentInterpolator, InterpolationError
from ..UTILS import console
from ..errors import ConfigurationError
import os


class ComposeParser:
    """
    Parser for docker-compose.yml files describing a devnet.
    """
    def __init__(self, context: Optional[Dict[str, str]] = None):
        """
        Initializes the parser with an optional environment context for interpolation.

        :param context: A dictionary of environment variables for interpolation.
        """
        self.context = dict(os.environ) if context is None else context

    def parse(self, compose_path: str) -> DevnetConfig:
        """
        Parses a compose file from a path.

        :param compose_path: Path to the compose file.
        :return: Parsed configuration.
        :raises ConfigurationError: If the file is missing or malformed.
        """
        if not os.path.exists(compose_path):
            raise ConfigurationError(f"Compose file {compose_path} not found", code="NOT_FOUND")
        with open(compose_path, 'r') as f:
            content = f.read()
        return self.parse_from_string(content)

    def parse_from_string(self, content: str) -> DevnetConfig:
        """
        Parses a compose file from a string.

        :param content: YAML content of the compose file.
        :return: Parsed configuration.
        :raises ConfigurationError: If the content is not a valid compose document.
        """
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Compose file is not valid YAML: {e}") from e

        # Interpolate parsed values, so comments and keys are left alone
        missing: List[str] = []
        try:
            data = self._interpolate(data, missing)
        except InterpolationError as e:
            raise ConfigurationError(f"Interpolation failed: {e}") from e
        for name in sorted(set(missing)):
            console.warn("compose", f"variable {name} is not set, defaulting to a blank string")
        if not data:
            data = {}
        if not isinstance(data, dict):
            raise ConfigurationError("Compose file must be a mapping at the top level")

        services_spec = data.get('services') or {}
        volumes_spec = data.get('volumes') or {}
        if not isinstance(services_spec, dict) or not isinstance(volumes_spec, dict):
            raise ConfigurationError("'services' and 'volumes' must be mappings")

        try:
            services = {}
            for name, spec in services_spec.items():
                services[str(name)] = self._parse_service(str(name), spec or {})

            volumes = {}
            for name, spec in volumes_spec.items():
                volumes[str(name)] = self._parse_volume(str(name), spec or {})

            return DevnetConfig(services=services, volumes=volumes)
        except ConfigurationError:
            raise
        except (TypeError, ValueError, KeyError, AttributeError) as e:
            raise ConfigurationError(f"Malformed compose file: {e}") from e

    def _interpolate(self, node: Any, missing: List[str]) -> Any:
        """
        Recursively interpolates every string value of a parsed YAML document.
        """
        if isinstance(node, str):
            text, unset = EnvironmentInterpolator.interpolate_with_missing(node, self.context)
            missing.extend(unset)
            return text
        if isinstance(node, dict):
            return {k: self._interpolate(v, missing) for k, v in node.items()}
        if isinstance(node, list):
            return [self._interpolate(v, missing) for v in node]
        return node

    def _parse_service(self, name: str, spec: Dict[str, Any]) -> ServiceDefinition:
        """
        Parses a single service definition from a compose file.

        :param name: The name of the service.
        :param spec: The service specification dictionary.
        :return: A ServiceDefinition instance.
        """
        if not isinstance(spec, dict):
            raise ConfigurationError(f"Service {name} must be a mapping")

        build = spec.get('build')
        if isinstance(build, dict):
            build_context = build.get('context', '.')
            dockerfile = build.get('dockerfile')
        else:
            build_context = build
            dockerfile = None

        return ServiceDefinition(
            name=name,
            image_name=str(spec.get('image') or ''),
            platform=spec.get('platform'),
            build_context=build_context,
            dockerfile_path=dockerfile,
            environment=self._parse_environment(spec.get('environment')),
            ports=[self._parse_port(p) for p in spec.get('ports') or []],
            volumes=[self._parse_mount(v) for v in spec.get('volumes') or []],
        )

    def _parse_environment(self, env_spec: Any) -> Dict[str, str]:
        """
        Accepts both ``["KEY=value"]`` and ``{KEY: value}`` forms.
        A bare ``KEY`` in list form takes its value from the interpolation context.
        """
        environment = {}
        if env_spec is None:
            return environment
        if isinstance(env_spec, list):
            for e in env_spec:
                e = str(e)
                if '=' in e:
                    k, v = e.split('=', 1)
                    environment[k] = v
                elif e in self.context:
                    environment[e] = self.context[e]
        elif isinstance(env_spec, dict):
            for k, v in env_spec.items():
                environment[str(k)] = self._scalar(v)
        else:
            raise ConfigurationError("'environment' must be a list or a mapping")
        return environment

    def _parse_port(self, p: Any) -> PortBinding:
        """
        Short syntax ``[ip:]host:container[/proto]`` or long syntax mapping.
        Ports without a published host port are rejected: every devnet port is fixed.
        """
        if isinstance(p, dict):
            if p.get('published') is None:
                raise ConfigurationError(f"Port {p.get('target')} has no published host port")
            return PortBinding(
                host=int(p['published']),
                container=int(p['target']),
                host_ip=p.get('host_ip'),
                protocol=p.get('protocol', 'tcp'),
            )

        text = str(p)
        protocol = 'tcp'
        if '/' in text:
            text, protocol = text.rsplit('/', 1)
        parts = text.split(':')
        if len(parts) == 2:
            return PortBinding(host=int(parts[0]), container=int(parts[1]), protocol=protocol)
        if len(parts) == 3:
            return PortBinding(host_ip=parts[0], host=int(parts[1]), container=int(parts[2]), protocol=protocol)
        raise ConfigurationError(f"Port {p} has no published host port")

    def _parse_mount(self, v: Any) -> VolumeMount:
        if isinstance(v, dict):
            return VolumeMount(source=v['source'], target=v['target'], read_only=bool(v.get('read_only', False)))
        parts = str(v).split(':')
        if len(parts) == 2:
            return VolumeMount(source=parts[0], target=parts[1])
        if len(parts) == 3:
            return VolumeMount(source=parts[0], target=parts[1], read_only=(parts[2] == 'ro'))
        raise ConfigurationError(f"Volume mount {v} must be 'source:target[:mode]'")

    def _parse_volume(self, name: str, spec: Dict[str, Any]) -> VolumeDefinition:
        if not isinstance(spec, dict):
            raise ConfigurationError(f"Volume {name} must be a mapping")
        opts = spec.get('driver_opts') or {}
        return VolumeDefinition(
            name=name,
            driver=spec.get('driver'),
            driver_opts={str(k): self._scalar(v) for k, v in opts.items()},
        )

    def _scalar(self, val: Any) -> str:
        """
        Renders YAML scalars the way compose passes them to containers.
        """
        if val is None:
            return ''
        if isinstance(val, bool):
            return 'true' if val else 'false'
        return str(val)
