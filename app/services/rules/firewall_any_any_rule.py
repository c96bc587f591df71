"""
Overly permissive any-to-any firewall rules.
"""
from typing import Iterable

from app.models.firewall_rule import FirewallRule
from app.schemas.findings import AuditIssue, AuditSeverity, IssueTypes
from app.services.rule_engine import BaseAuditRule, FirewallRuleContext
from app.utils.overlap import ANY_TARGET, PROTOCOL_ALL, normalize_protocol, normalize_target


def is_any_any_rule(rule: FirewallRule) -> bool:
    """Enabled allow rule with ANY on both sides, every protocol and no port limits."""
    if not rule.enabled or not rule.is_allow_action:
        return False
    if normalize_target(rule.source_matching_target) != ANY_TARGET:
        return False
    if normalize_target(rule.destination_matching_target) != ANY_TARGET:
        return False
    if normalize_protocol(rule.protocol) != PROTOCOL_ALL:
        return False
    return not (rule.destination_port or rule.source_port)


class FirewallAnyAnyRule(BaseAuditRule[FirewallRuleContext]):
    rule_id = "FW-ANY-ANY-001"
    issue_type = IssueTypes.FW_ANY_ANY
    severity = AuditSeverity.CRITICAL
    score_impact = 15

    def evaluate(self, context: FirewallRuleContext) -> Iterable[AuditIssue]:
        rule = context.rule
        if not is_any_any_rule(rule):
            return []
        return [
            AuditIssue(
                type=self.issue_type,
                rule_id=self.rule_id,
                severity=self.severity,
                message=f"Firewall rule '{rule.name}' allows any->any traffic",
                score_impact=self.score_impact,
                recommendation="Restrict source, destination, or protocol to minimum required access",
                metadata={
                    "rule_id": rule.id,
                    "rule_name": rule.name or "Unnamed",
                    "rule_index": rule.index,
                    "ruleset": rule.ruleset or "unknown",
                    "action": rule.action or "unknown",
                },
            )
        ]
