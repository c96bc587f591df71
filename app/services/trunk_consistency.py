"""
Service for checking that both ends of an inter-switch link carry the same VLANs.
"""
import logging
from typing import Dict, FrozenSet, Iterable, List, Optional

from app.models.device import PortInfo, SwitchInfo
from app.models.network import NetworkInfo
from app.schemas.findings import AuditIssue, AuditSeverity, IssueTypes
from app.services.port_resolver import FORWARD_ALL, FORWARD_CUSTOM, FORWARD_DISABLED, allowed_vlan_ids

logger = logging.getLogger(__name__)

VLAN_MISMATCH_SCORE = 3
NATIVE_MISMATCH_SCORE = 5


def tagged_vlans(port: PortInfo, vlan_ids: Iterable[str]) -> FrozenSet[str]:
    """VLAN networks carried tagged on a port, native network excluded."""
    mode = port.forward_mode
    if mode == FORWARD_DISABLED:
        return frozenset()
    if mode == FORWARD_ALL:
        allowed = frozenset(vlan_ids)
    elif mode == FORWARD_CUSTOM:
        allowed = allowed_vlan_ids(port.excluded_network_ids, vlan_ids)
    else:
        return frozenset()
    return allowed - {port.native_network_id}


class TrunkConsistencyAnalyzer:
    """Compares VLAN membership across each uplink between two managed devices."""

    def analyze(self, switches: Iterable[SwitchInfo], networks: Iterable[NetworkInfo]) -> List[AuditIssue]:
        """
        Check every downstream uplink against the upstream port it lands on.

        Args:
            switches: Extracted switches
            networks: All networks; WAN and VPN networks are ignored

        Returns:
            List of AuditIssue
        """
        switch_list = list(switches or [])
        if len(switch_list) < 2:
            return []

        network_list = list(networks or [])
        names = {n.id: n.name for n in network_list}
        vlan_ids = [n.id for n in network_list if n.is_vlan_network]
        by_mac: Dict[str, SwitchInfo] = {s.mac.lower(): s for s in switch_list if s.mac}

        issues: List[AuditIssue] = []
        links = 0
        for downstream in switch_list:
            if not downstream.uplink_mac or downstream.uplink_remote_port is None:
                continue
            upstream = by_mac.get(downstream.uplink_mac.lower())
            if upstream is None or upstream.has_unmanageable_ports or downstream.has_unmanageable_ports:
                continue
            down_port = self._uplink_port(downstream)
            up_port = upstream.get_port(downstream.uplink_remote_port)
            if down_port is None or up_port is None:
                continue
            links += 1
            issues.extend(self._compare(upstream, up_port, downstream, down_port, vlan_ids, names))

        logger.info(f"Trunk consistency: checked {links} link(s), {len(issues)} issue(s)")
        return issues

    @staticmethod
    def _uplink_port(switch: SwitchInfo) -> Optional[PortInfo]:
        return next((p for p in switch.ports if p.is_uplink), None)

    def _compare(
        self,
        upstream: SwitchInfo,
        up_port: PortInfo,
        downstream: SwitchInfo,
        down_port: PortInfo,
        vlan_ids: List[str],
        names: Dict[str, str],
    ) -> List[AuditIssue]:
        issues = []
        link = (
            f"{upstream.name} port {up_port.port_index} <-> "
            f"{downstream.name} port {down_port.port_index}"
        )
        metadata = {
            "upstream_device": upstream.name,
            "upstream_mac": upstream.mac,
            "upstream_port": up_port.port_index,
            "downstream_device": downstream.name,
            "downstream_mac": downstream.mac,
            "downstream_port": down_port.port_index,
        }

        up_vlans = tagged_vlans(up_port, vlan_ids)
        down_vlans = tagged_vlans(down_port, vlan_ids)
        missing_downstream = sorted(names.get(i, i) for i in up_vlans - down_vlans)
        missing_upstream = sorted(names.get(i, i) for i in down_vlans - up_vlans)
        if missing_downstream or missing_upstream:
            issues.append(AuditIssue(
                type=IssueTypes.TRUNK_VLAN_MISMATCH,
                severity=AuditSeverity.INVESTIGATE,
                message=f"Tagged VLANs differ across link {link}",
                device_mac=downstream.mac,
                device_name=downstream.name,
                port=str(down_port.port_index),
                port_name=down_port.name or None,
                score_impact=VLAN_MISMATCH_SCORE,
                recommendation="Allow the same tagged VLANs on both ends of the link",
                metadata={
                    **metadata,
                    "missing_on_downstream": missing_downstream,
                    "missing_on_upstream": missing_upstream,
                },
            ))

        # An unset native network means the controller default; only compare explicit values
        up_native = up_port.native_network_id
        down_native = down_port.native_network_id
        if up_native and down_native and up_native != down_native:
            issues.append(AuditIssue(
                type=IssueTypes.TRUNK_NATIVE_VLAN_MISMATCH,
                severity=AuditSeverity.RECOMMENDED,
                message=f"Native VLAN differs across link {link}",
                device_mac=downstream.mac,
                device_name=downstream.name,
                port=str(down_port.port_index),
                port_name=down_port.name or None,
                score_impact=NATIVE_MISMATCH_SCORE,
                recommendation="Use the same native network on both ends of the link",
                metadata={
                    **metadata,
                    "upstream_native": names.get(up_native, up_native),
                    "downstream_native": names.get(down_native, down_native),
                },
            ))
        return issues
