"""
Service for detecting firewall rules that can match the same traffic.

Two rules overlap only when every dimension overlaps: protocol, source,
destination, port and ICMP type. Each dimension check is order-independent.
"""
import logging
from collections import defaultdict
from typing import Dict, Iterable, List

from app.models.firewall_rule import FirewallRule
from app.schemas.findings import AuditIssue, AuditSeverity, IssueTypes
from app.utils import overlap

logger = logging.getLogger(__name__)

TARGET_NETWORK = "NETWORK"
TARGET_IP = "IP"
TARGET_WEB = "WEB"

CONFLICT_SCORE_IMPACT = 3


class FirewallRuleOverlapDetector:
    """Pairwise overlap checks for firewall rules."""

    @staticmethod
    def protocols_overlap(first: FirewallRule, second: FirewallRule) -> bool:
        return overlap.protocols_overlap(first.protocol, second.protocol)

    @staticmethod
    def sources_overlap(first: FirewallRule, second: FirewallRule) -> bool:
        target1 = overlap.normalize_target(first.source_matching_target)
        target2 = overlap.normalize_target(second.source_matching_target)
        if target1 == overlap.ANY_TARGET or target2 == overlap.ANY_TARGET:
            return True
        if target1 != target2:
            return False
        if target1 == TARGET_NETWORK:
            return overlap.network_ids_overlap(first.source_network_ids, second.source_network_ids)
        if target1 == TARGET_IP:
            return overlap.ip_ranges_overlap(first.source_ips, second.source_ips)
        return False

    @staticmethod
    def destinations_overlap(first: FirewallRule, second: FirewallRule) -> bool:
        target1 = overlap.normalize_target(first.destination_matching_target)
        target2 = overlap.normalize_target(second.destination_matching_target)
        if target1 == overlap.ANY_TARGET or target2 == overlap.ANY_TARGET:
            return True
        if target1 != target2:
            return False
        if target1 == TARGET_NETWORK:
            return overlap.network_ids_overlap(first.destination_network_ids, second.destination_network_ids)
        if target1 == TARGET_IP:
            return overlap.ip_ranges_overlap(first.destination_ips, second.destination_ips)
        if target1 == TARGET_WEB:
            return overlap.domain_lists_overlap(first.web_domains, second.web_domains)
        return False

    @staticmethod
    def ports_overlap(first: FirewallRule, second: FirewallRule) -> bool:
        """Destination ports; only meaningful when both protocols carry ports."""
        if not (overlap.has_port_semantics(first.protocol) and overlap.has_port_semantics(second.protocol)):
            return True
        return overlap.port_specs_overlap(first.destination_port, second.destination_port)

    @staticmethod
    def icmp_types_overlap(first: FirewallRule, second: FirewallRule) -> bool:
        """ICMP type names; only compared when both rules are exactly icmp."""
        if overlap.normalize_protocol(first.protocol) != "icmp" or overlap.normalize_protocol(second.protocol) != "icmp":
            return True
        type1 = (first.icmp_typename or overlap.ANY_TARGET).strip().upper() or overlap.ANY_TARGET
        type2 = (second.icmp_typename or overlap.ANY_TARGET).strip().upper() or overlap.ANY_TARGET
        if type1 == overlap.ANY_TARGET or type2 == overlap.ANY_TARGET:
            return True
        return type1 == type2

    @classmethod
    def rules_overlap(cls, first: FirewallRule, second: FirewallRule) -> bool:
        """True when the two rules could match the same packet."""
        return (
            cls.protocols_overlap(first, second)
            and cls.sources_overlap(first, second)
            and cls.destinations_overlap(first, second)
            and cls.ports_overlap(first, second)
            and cls.icmp_types_overlap(first, second)
        )

    def find_overlapping_rules(self, rules: Iterable[FirewallRule]) -> List[AuditIssue]:
        """
        Report overlapping pairs within each ruleset.

        Rules are walked in index order; each (earlier, later) pair is reported
        once. Differing actions are a conflict since the earlier rule wins for the
        shared traffic; matching actions make the later rule redundant.

        Args:
            rules: Parsed firewall rules

        Returns:
            List of AuditIssue
        """
        by_ruleset: Dict[str, List[FirewallRule]] = defaultdict(list)
        for rule in rules or []:
            if not rule.enabled or rule.predefined:
                continue
            by_ruleset[rule.ruleset or ""].append(rule)

        issues: List[AuditIssue] = []
        for ruleset, members in by_ruleset.items():
            ordered = sorted(members, key=lambda r: r.index)
            for i, earlier in enumerate(ordered):
                for later in ordered[i + 1:]:
                    if self.rules_overlap(earlier, later):
                        issues.append(self._create_issue(earlier, later, ruleset))

        logger.info(f"Firewall overlap check: {len(issues)} overlapping pair(s) across {len(by_ruleset)} ruleset(s)")
        return issues

    @staticmethod
    def _create_issue(earlier: FirewallRule, later: FirewallRule, ruleset: str) -> AuditIssue:
        same_action = (earlier.action or "").lower() == (later.action or "").lower()
        metadata = {
            "ruleset": ruleset or "unknown",
            "rule_id": earlier.id,
            "rule_name": earlier.name or "Unnamed",
            "rule_index": earlier.index,
            "rule_action": earlier.action,
            "overlapping_rule_id": later.id,
            "overlapping_rule_name": later.name or "Unnamed",
            "overlapping_rule_index": later.index,
            "overlapping_rule_action": later.action,
        }
        if same_action:
            return AuditIssue(
                type=IssueTypes.FW_RULE_REDUNDANT,
                severity=AuditSeverity.INFORMATIONAL,
                message=(
                    f"Firewall rule '{later.name}' is covered by earlier rule '{earlier.name}' "
                    f"with the same action ({earlier.action})"
                ),
                recommendation="Remove or narrow the later rule if it is no longer needed",
                metadata=metadata,
            )
        return AuditIssue(
            type=IssueTypes.FW_RULE_CONFLICT,
            severity=AuditSeverity.INVESTIGATE,
            message=(
                f"Firewall rule '{earlier.name}' ({earlier.action}) takes precedence over "
                f"'{later.name}' ({later.action}) for overlapping traffic"
            ),
            score_impact=CONFLICT_SCORE_IMPACT,
            recommendation="Verify the rule order reflects the intended policy",
            metadata=metadata,
        )


def rules_overlap(first: FirewallRule, second: FirewallRule) -> bool:
    return FirewallRuleOverlapDetector.rules_overlap(first, second)
