"""
Tagged VLAN exposure on ports that serve a single device.
"""
from typing import Iterable, Optional, Tuple

from app.core.config import settings
from app.schemas.findings import AuditIssue, AuditSeverity, IssueTypes
from app.services.port_resolver import FORWARD_ALL, FORWARD_CUSTOM
from app.services.rule_engine import BaseAuditRule, PortRuleContext
from app.utils import device_types

TAGGED_FORWARD_MODES = frozenset({FORWARD_CUSTOM, "customize", FORWARD_ALL})


class AccessPortVlanRule(BaseAuditRule[PortRuleContext]):
    """
    Flags trunk-configured ports that only have one end device behind them.

    Ports feeding gateways, switches, APs or bridges legitimately carry many
    VLANs and are skipped, as are LAG members whose VLANs follow the parent.
    """

    rule_id = "ACCESS-VLAN-001"
    issue_type = IssueTypes.ACCESS_PORT_VLAN
    severity = AuditSeverity.CRITICAL
    score_impact = 8

    def __init__(self, enabled: bool = True, max_tagged_vlans: Optional[int] = None):
        super().__init__(enabled)
        self.max_tagged_vlans = (
            max_tagged_vlans if max_tagged_vlans is not None else settings.ACCESS_PORT_MAX_TAGGED_VLANS
        )

    def evaluate(self, context: PortRuleContext) -> Iterable[AuditIssue]:
        port = context.port
        if port.is_uplink or port.is_wan or port.is_lag_child:
            return []
        if (port.forward_mode or "").lower() not in TAGGED_FORWARD_MODES:
            return []
        if device_types.is_network_fabric(port.connected_device_type):
            return []
        # Need evidence that exactly one end device sits on the port
        if port.connected_client is None and not port.has_offline_device_data:
            return []

        vlan_ids = [n.id for n in context.networks if n.vlan_id > 0]
        if not vlan_ids:
            return []

        tagged_count, allows_all = self._tagged_vlan_info(port.excluded_network_ids, vlan_ids)
        if not allows_all and tagged_count <= self.max_tagged_vlans:
            return []

        native = next((n for n in context.networks if n.id == port.native_network_id), None)
        vlan_desc = "all VLANs" if allows_all else f"{tagged_count} tagged VLANs"
        return [
            self.create_port_issue(
                context,
                f"Port with single device allows {vlan_desc} - configure to limit VLAN access",
                recommendation="Limit tagged VLANs to only those required by this device",
                network=native.name if native is not None else "Unknown",
                tagged_vlan_count=tagged_count,
                allows_all_vlans=allows_all,
            )
        ]

    @staticmethod
    def _tagged_vlan_info(excluded: Optional[Tuple[str, ...]], vlan_ids) -> Tuple[int, bool]:
        # No exclusions at all means the port allows every VLAN
        if not excluded:
            return len(set(vlan_ids)), True
        excluded_set = set(excluded)
        return sum(1 for vlan_id in set(vlan_ids) if vlan_id not in excluded_set), False
