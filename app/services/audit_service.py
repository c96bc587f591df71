"""
Service for auditing a controller snapshot.

Runs one evaluation pass: parse the snapshot, extract the switch topology, run
the port and firewall rule engines, then the consolidation and trunk analyzers.
"""
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar

from pydantic import BaseModel, ConfigDict

from app.core.config import settings
from app.models.device import PortInfo, SwitchInfo
from app.models.firewall_rule import FirewallRule
from app.models.global_settings import GlobalSwitchSettings
from app.models.network import NetworkInfo, NetworkPurpose
from app.models.port_profile import PortProfile
from app.schemas.audit import PortStatistics, SnapshotRequest
from app.schemas.findings import SEVERITY_ORDER, AuditIssue, AuditSeverity, PortProfileSuggestion
from app.services.firewall_overlap import FirewallRuleOverlapDetector
from app.services.port_resolver import FORWARD_DISABLED
from app.services.profile_suggestions import PortProfileSuggestionAnalyzer
from app.services.rule_engine import FirewallRuleContext, PortRuleContext, RuleEngine
from app.services.rules.rule_registry import create_firewall_rule_engine, create_port_rule_engine
from app.services.topology_extractor import TopologyExtractor
from app.services.trunk_consistency import TrunkConsistencyAnalyzer
from app.utils.device_name_hints import is_camera_device_name

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ParsedSnapshot(BaseModel):
    """Typed view of a snapshot, built once per pass."""
    model_config = ConfigDict(frozen=True)

    devices: Tuple[Dict[str, Any], ...] = ()
    clients: Tuple[Dict[str, Any], ...] = ()
    networks: Tuple[NetworkInfo, ...] = ()
    port_profiles: Tuple[PortProfile, ...] = ()
    firewall_rules: Tuple[FirewallRule, ...] = ()
    global_settings: Optional[GlobalSwitchSettings] = None


class AuditService:
    """Service for configuration auditing."""

    def __init__(
        self,
        port_engine: Optional[RuleEngine] = None,
        firewall_engine: Optional[RuleEngine] = None,
        suggestion_analyzer: Optional[PortProfileSuggestionAnalyzer] = None,
        trunk_analyzer: Optional[TrunkConsistencyAnalyzer] = None,
        overlap_detector: Optional[FirewallRuleOverlapDetector] = None,
    ):
        """
        Initialize audit service.

        Args:
            port_engine: Per-port rule engine; defaults to the built-in rules
            firewall_engine: Per-firewall-rule engine; defaults to the built-in rules
            suggestion_analyzer: Port profile consolidation analyzer
            trunk_analyzer: Inter-switch VLAN consistency analyzer
            overlap_detector: Firewall rule overlap detector
        """
        self.port_engine = port_engine or create_port_rule_engine()
        self.firewall_engine = firewall_engine or create_firewall_rule_engine()
        self.suggestion_analyzer = suggestion_analyzer or PortProfileSuggestionAnalyzer()
        self.trunk_analyzer = trunk_analyzer or TrunkConsistencyAnalyzer()
        self.overlap_detector = overlap_detector or FirewallRuleOverlapDetector()

    @staticmethod
    def _parse_records(records: List[Dict[str, Any]], factory: Callable[[Dict[str, Any]], T], kind: str) -> List[T]:
        """Build typed entities, logging and skipping records that fail to parse."""
        parsed: List[T] = []
        for raw in records:
            try:
                parsed.append(factory(raw))
            except (TypeError, ValueError, AttributeError, KeyError) as e:
                logger.warning(f"Skipping malformed {kind} {raw.get('name') or raw.get('_id')}: {e}")
        return parsed

    def parse_snapshot(self, snapshot: SnapshotRequest) -> ParsedSnapshot:
        """
        Parse the raw snapshot sections into typed entities.

        Raises:
            ValueError: If the snapshot is structurally unusable
        """
        if len(snapshot.devices) > settings.MAX_SNAPSHOT_DEVICES:
            raise ValueError(
                f"Snapshot has {len(snapshot.devices)} devices; "
                f"at most {settings.MAX_SNAPSHOT_DEVICES} are supported"
            )

        networks = self._parse_records(snapshot.networks, NetworkInfo.from_config, "network")
        profiles = self._parse_records(snapshot.port_profiles, PortProfile.from_config, "port profile")
        firewall_rules = self._parse_records(snapshot.firewall_rules, FirewallRule.from_config, "firewall rule")
        global_settings = GlobalSwitchSettings.from_settings_payload(snapshot.settings_payload)

        logger.debug(
            f"Parsed snapshot: devices={len(snapshot.devices)}, networks={len(networks)}, "
            f"profiles={len(profiles)}, firewall_rules={len(firewall_rules)}, "
            f"clients={len(snapshot.clients)}, global_settings={global_settings is not None}"
        )
        return ParsedSnapshot(
            devices=tuple(snapshot.devices),
            clients=tuple(snapshot.clients),
            networks=tuple(networks),
            port_profiles=tuple(profiles),
            firewall_rules=tuple(firewall_rules),
            global_settings=global_settings,
        )

    def extract_topology(self, parsed: ParsedSnapshot) -> TopologyExtractor:
        return TopologyExtractor(
            parsed.devices,
            networks=parsed.networks,
            clients=parsed.clients,
            port_profiles=parsed.port_profiles,
            global_settings=parsed.global_settings,
        )

    def run_audit(self, snapshot: SnapshotRequest) -> Dict[str, Any]:
        """
        Audit a controller snapshot.

        Args:
            snapshot: Raw snapshot sections

        Returns:
            Dictionary matching AuditResponse

        Raises:
            ValueError: If the snapshot is structurally unusable
        """
        parsed = self.parse_snapshot(snapshot)
        switches = self.extract_topology(parsed).extract_switches()

        issues: List[AuditIssue] = []
        port_issue_count = self.audit_ports(issues, switches, parsed.networks)
        firewall_issue_count = self.audit_firewall(issues, parsed.firewall_rules, parsed.networks)
        issues.extend(self.overlap_detector.find_overlapping_rules(parsed.firewall_rules))
        issues.extend(self.trunk_analyzer.analyze(switches, parsed.networks))

        suggestions = self.suggestion_analyzer.analyze(switches, parsed.port_profiles, parsed.networks)

        issues = self._sort_issues(issues)
        risk_score = self._calculate_risk_score(issues)
        breakdown = self._calculate_breakdown(issues)

        logger.info(
            f"Audit completed: switches={len(switches)}, port_issues={port_issue_count}, "
            f"firewall_issues={firewall_issue_count}, total_issues={len(issues)}, "
            f"suggestions={len(suggestions)}, risk_score={risk_score}"
        )

        return {
            "risk_score": risk_score,
            "total_issues": len(issues),
            "breakdown": breakdown,
            "summary": self._generate_summary(issues, risk_score, suggestions),
            "issues": issues,
            "suggestions": suggestions,
            "statistics": self.calculate_statistics(switches),
            "hardening_measures": self.analyze_hardening(switches, parsed.networks),
            "switch_count": len(switches),
        }

    def audit_ports(
        self,
        report: List[AuditIssue],
        switches: List[SwitchInfo],
        networks: Tuple[NetworkInfo, ...],
    ) -> int:
        """Run the port rule engine over every manageable port."""
        added = 0
        for switch in switches:
            if switch.has_unmanageable_ports:
                logger.debug(f"Skipping port rules for {switch.name}: ports are not individually manageable")
                continue
            for port in switch.ports:
                if not port.is_manageable:
                    continue
                context = PortRuleContext(port=port, switch=switch, networks=networks)
                added += self.port_engine.evaluate_into(report, context)
        return added

    def audit_firewall(
        self,
        report: List[AuditIssue],
        rules: Tuple[FirewallRule, ...],
        networks: Tuple[NetworkInfo, ...],
    ) -> int:
        """Run the firewall rule engine over each rule."""
        added = 0
        for rule in rules:
            context = FirewallRuleContext(rule=rule, rules=rules, networks=networks)
            added += self.firewall_engine.evaluate_into(report, context)
        return added

    def suggest_profiles(self, snapshot: SnapshotRequest) -> List[PortProfileSuggestion]:
        parsed = self.parse_snapshot(snapshot)
        switches = self.extract_topology(parsed).extract_switches()
        return self.suggestion_analyzer.analyze(switches, parsed.port_profiles, parsed.networks)

    def check_trunk_consistency(self, snapshot: SnapshotRequest) -> List[AuditIssue]:
        parsed = self.parse_snapshot(snapshot)
        switches = self.extract_topology(parsed).extract_switches()
        return self._sort_issues(self.trunk_analyzer.analyze(switches, parsed.networks))

    def analyze_firewall(self, snapshot: SnapshotRequest) -> Dict[str, Any]:
        """Overlap and any-any findings for the snapshot's firewall rules."""
        parsed = self.parse_snapshot(snapshot)
        any_any: List[AuditIssue] = []
        self.audit_firewall(any_any, parsed.firewall_rules, parsed.networks)
        return {
            "rule_count": len(parsed.firewall_rules),
            "overlaps": self.overlap_detector.find_overlapping_rules(parsed.firewall_rules),
            "any_any": any_any,
        }

    @staticmethod
    def calculate_statistics(switches: List[SwitchInfo]) -> PortStatistics:
        """
        Count ports by protection state.

        A port is unprotected when it is up, forwarding, not an uplink or WAN
        port, and has none of MAC restriction, port security or 802.1X.
        """
        stats = PortStatistics()
        for switch in switches or []:
            for port in switch.ports:
                stats.total_ports += 1
                if port.is_up:
                    stats.active_ports += 1
                if port.forward_mode == FORWARD_DISABLED:
                    stats.disabled_ports += 1
                if port.port_security_enabled:
                    stats.port_security_enabled_ports += 1
                if port.isolation_enabled:
                    stats.isolated_ports += 1
                if port.is_mac_restricted:
                    stats.mac_restricted_ports += 1
                if AuditService._is_unprotected(port):
                    stats.unprotected_active_ports += 1
        return stats

    @staticmethod
    def _is_unprotected(port: PortInfo) -> bool:
        if not port.is_up or port.is_uplink or port.is_wan or port.forward_mode == FORWARD_DISABLED:
            return False
        return not (port.is_mac_restricted or port.port_security_enabled or port.dot1x_protected)

    @staticmethod
    def analyze_hardening(switches: List[SwitchInfo], networks: Optional[Tuple[NetworkInfo, ...]] = None) -> List[str]:
        """Describe hardening measures already in place."""
        purposes = {n.id: n.purpose for n in networks or []}
        disabled = port_security = mac_restricted = cameras_on_security = isolated_cameras = 0

        for switch in switches or []:
            for port in switch.ports:
                if port.forward_mode == FORWARD_DISABLED:
                    disabled += 1
                if port.port_security_enabled:
                    port_security += 1
                if port.is_mac_restricted:
                    mac_restricted += 1

                client_name = port.connected_client.display_name if port.connected_client else None
                if not (is_camera_device_name(port.name) or is_camera_device_name(client_name)):
                    continue
                if port.is_up and purposes.get(port.native_network_id) == NetworkPurpose.SECURITY:
                    cameras_on_security += 1
                if port.isolation_enabled:
                    isolated_cameras += 1

        measures = []
        if disabled:
            measures.append(f"{disabled} unused port(s) disabled")
        if port_security:
            measures.append(f"Port security enabled on {port_security} port(s)")
        if mac_restricted:
            measures.append(f"MAC restrictions configured on {mac_restricted} port(s)")
        if cameras_on_security:
            measures.append(f"{cameras_on_security} port(s) with cameras placed on the Security VLAN")
        if isolated_cameras:
            measures.append(f"Port isolation enabled on {isolated_cameras} camera port(s)")
        return measures

    @staticmethod
    def _sort_issues(issues: List[AuditIssue]) -> List[AuditIssue]:
        def port_key(issue: AuditIssue) -> int:
            port = issue.port or ""
            return int(port) if port.isdigit() else -1

        return sorted(
            issues,
            key=lambda i: (SEVERITY_ORDER.get(i.severity, len(SEVERITY_ORDER)), i.device_name or "", port_key(i)),
        )

    def _calculate_risk_score(self, issues: List[AuditIssue]) -> int:
        """
        Calculate overall risk score (0-100) from issue score impacts.

        Args:
            issues: List of AuditIssue objects

        Returns:
            Risk score, clamped to 0-100
        """
        score = sum(issue.score_impact for issue in issues)
        return max(0, min(score, 100))

    def _calculate_breakdown(self, issues: List[AuditIssue]) -> Dict[str, int]:
        """Count issues per severity level."""
        breakdown = {severity.value: 0 for severity in AuditSeverity}
        for issue in issues:
            breakdown[AuditSeverity(issue.severity).value] += 1
        return breakdown

    def _generate_summary(
        self,
        issues: List[AuditIssue],
        risk_score: int,
        suggestions: Optional[List[PortProfileSuggestion]] = None,
    ) -> str:
        """Generate human-readable summary of audit results."""
        suggestion_str = ""
        if suggestions:
            suggestion_str = f" {len(suggestions)} port profile suggestion(s) available."

        if not issues:
            return f"No configuration issues detected.{suggestion_str}"

        parts = []
        for severity in AuditSeverity:
            count = sum(1 for i in issues if i.severity == severity)
            if count > 0:
                parts.append(f"{count} {severity.value}")

        return (
            f"Found {len(issues)} issue(s) ({', '.join(parts)}). "
            f"Risk score: {risk_score}/100.{suggestion_str}"
        )
