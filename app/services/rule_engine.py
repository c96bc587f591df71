"""
Generic rule dispatch for audit analyzers.

Rules are plugged into a RuleEngine and evaluated against a read-only
context. One failing rule never aborts the pass: its exception is logged, its
findings are dropped and the remaining rules still run.
"""
import logging
from abc import ABC, abstractmethod
from typing import Generic, Iterable, List, Optional, Tuple, TypeVar

from pydantic import BaseModel, ConfigDict

from app.models.device import PortInfo, SwitchInfo
from app.models.firewall_rule import FirewallRule
from app.models.network import NetworkInfo
from app.schemas.findings import AuditIssue, AuditSeverity

logger = logging.getLogger(__name__)

ContextT = TypeVar("ContextT")


class PortRuleContext(BaseModel):
    """A single port together with its owning switch and the site networks."""
    model_config = ConfigDict(frozen=True)

    port: PortInfo
    switch: SwitchInfo
    networks: Tuple[NetworkInfo, ...] = ()


class FirewallRuleContext(BaseModel):
    """A single firewall rule together with the full rule set it belongs to."""
    model_config = ConfigDict(frozen=True)

    rule: FirewallRule
    rules: Tuple[FirewallRule, ...] = ()
    networks: Tuple[NetworkInfo, ...] = ()


class BaseAuditRule(ABC, Generic[ContextT]):
    """Base class for audit rules."""

    rule_id: str = ""
    issue_type: str = ""
    severity: AuditSeverity = AuditSeverity.INFORMATIONAL
    score_impact: int = 0

    def __init__(self, enabled: bool = True):
        self.enabled = enabled

    @abstractmethod
    def evaluate(self, context: ContextT) -> Iterable[AuditIssue]:
        """
        Evaluate the rule against one context.

        Returns:
            Zero or more issues. Generators are fine; the engine materializes them.
        """
        pass

    def create_port_issue(
        self,
        context: PortRuleContext,
        message: str,
        recommendation: Optional[str] = None,
        **metadata,
    ) -> AuditIssue:
        """Build an issue pinned to the context's port."""
        port = context.port
        return AuditIssue(
            type=self.issue_type,
            rule_id=self.rule_id,
            severity=self.severity,
            message=message,
            device_mac=context.switch.mac,
            device_name=context.switch.name,
            port=str(port.port_index),
            port_name=port.name or None,
            score_impact=self.score_impact,
            recommendation=recommendation,
            metadata=metadata,
        )


class RuleEngine(Generic[ContextT]):
    """Ordered collection of rules sharing one context type."""

    def __init__(self, rules: Optional[Iterable[BaseAuditRule]] = None, name: str = "rules"):
        self.name = name
        self.rules: List[BaseAuditRule] = list(rules or [])

    def add_rule(self, rule: BaseAuditRule) -> None:
        self.rules.append(rule)

    def evaluate(self, context: ContextT) -> List[AuditIssue]:
        """Evaluate all enabled rules and return a fresh list of issues."""
        issues: List[AuditIssue] = []
        self.evaluate_into(issues, context)
        return issues

    def evaluate_into(self, report: List[AuditIssue], context: ContextT) -> int:
        """
        Evaluate all enabled rules, appending their issues to an existing report.

        Args:
            report: Running list of issues to extend
            context: Read-only evaluation context

        Returns:
            Number of issues appended
        """
        added = 0
        for rule in self.rules:
            if not rule.enabled:
                continue
            try:
                # Materialize here so a rule failing mid-iteration contributes nothing
                issues = list(rule.evaluate(context) or [])
            except Exception as e:
                logger.exception(f"Rule {rule.rule_id or type(rule).__name__} failed in {self.name} engine: {e}")
                continue
            if issues:
                logger.debug(f"Rule {rule.rule_id} produced {len(issues)} issue(s)")
            report.extend(issues)
            added += len(issues)
        return added
