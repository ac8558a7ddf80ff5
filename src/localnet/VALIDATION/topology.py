"""
Consistency checks for the validator/bridge topology of a devnet.
"""
from typing import Dict, List
from ..MODELS.orchestration_config import DevnetConfig, SHARED_VOLUMES
from ..MODELS.service_definition import ServiceRole
from ..errors import ConfigurationError

BRIDGE_RPC_PORT = 26658


class TopologyValidator:
    """
    Finds configuration inconsistencies that docker itself would not catch,
    such as a bridge added without bumping the validator's ``BRIDGE_COUNT``.
    """

    def validate(self, config: DevnetConfig) -> List[str]:
        """
        Returns every problem found; an empty list means the topology is consistent.
        """
        issues: List[str] = []
        issues.extend(self._check_validator(config))
        issues.extend(self._check_bridges(config))
        issues.extend(self._check_host_ports(config))
        issues.extend(self._check_volumes(config))
        return issues

    def check(self, config: DevnetConfig):
        """
        :raises ConfigurationError: Listing all issues, if there are any.
        """
        issues = self.validate(config)
        if issues:
            raise ConfigurationError(
                f"Devnet topology has {len(issues)} problem(s)", issues=issues, code="TOPOLOGY"
            )

    def _check_validator(self, config: DevnetConfig) -> List[str]:
        validators = [s for s in config.services.values() if s.role == ServiceRole.VALIDATOR]
        if not validators:
            return ["no validator service defined"]

        issues = []
        bridges = config.bridges()
        try:
            expected = validators[0].bridge_count
        except ValueError as e:
            return [str(e)]
        if expected != len(bridges):
            issues.append(
                f"validator BRIDGE_COUNT is {expected} but {len(bridges)} bridge service(s) are defined"
            )
        return issues

    def _check_bridges(self, config: DevnetConfig) -> List[str]:
        issues = []
        ids: Dict[int, str] = {}
        for bridge in config.bridges():
            node_id = bridge.node_id
            if node_id is None:
                issues.append(f"{bridge.name}: NODE_ID must be a natural number")
            elif node_id in ids:
                issues.append(f"{bridge.name}: NODE_ID {node_id} already used by {ids[node_id]}")
            else:
                ids[node_id] = bridge.name

            if bridge.host_port_for(BRIDGE_RPC_PORT) is None:
                issues.append(f"{bridge.name}: no host port mapped to container port {BRIDGE_RPC_PORT}")

        expected = list(range(len(ids)))
        if ids and sorted(ids) != expected:
            issues.append(
                f"bridge NODE_IDs {sorted(ids)} are not a contiguous sequence starting at 0"
            )
        return issues

    def _check_host_ports(self, config: DevnetConfig) -> List[str]:
        issues = []
        owners: Dict[tuple, str] = {}
        for svc in config.services.values():
            for binding in svc.ports:
                key = (binding.host_ip or "0.0.0.0", binding.host, binding.protocol)
                if key in owners:
                    issues.append(
                        f"{svc.name}: host port {binding.host}/{binding.protocol} already published by {owners[key]}"
                    )
                else:
                    owners[key] = svc.name
        return issues

    def _check_volumes(self, config: DevnetConfig) -> List[str]:
        issues = []
        for svc in config.services.values():
            if svc.role == ServiceRole.OTHER:
                continue
            for volume in SHARED_VOLUMES:
                if not svc.mounts(volume):
                    issues.append(f"{svc.name}: does not mount the shared '{volume}' volume")
            for mount in svc.volumes:
                if mount.is_named and mount.source not in config.volumes:
                    issues.append(f"{svc.name}: volume '{mount.source}' is not declared at top level")
        return issues
