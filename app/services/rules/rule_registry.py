"""
Registry of built-in audit rules.
"""
import logging

from app.services.rule_engine import FirewallRuleContext, PortRuleContext, RuleEngine
from app.services.rules.access_port_vlan_rule import AccessPortVlanRule
from app.services.rules.firewall_any_any_rule import FirewallAnyAnyRule
from app.services.rules.unused_port_rule import UnusedPortRule

logger = logging.getLogger(__name__)

PORT_RULES = {
    UnusedPortRule.rule_id: UnusedPortRule,
    AccessPortVlanRule.rule_id: AccessPortVlanRule,
}

FIREWALL_RULES = {
    FirewallAnyAnyRule.rule_id: FirewallAnyAnyRule,
}


def create_rule(rule_id: str):
    """
    Create a built-in rule by id.

    Args:
        rule_id: Rule identifier, e.g. "UNUSED-PORT-001"

    Returns:
        Rule instance
    """
    rule_class = PORT_RULES.get(rule_id) or FIREWALL_RULES.get(rule_id)
    if not rule_class:
        raise ValueError(f"Unknown rule id: {rule_id}")
    return rule_class()


def create_port_rule_engine() -> RuleEngine[PortRuleContext]:
    """Engine holding every built-in per-port rule, in registration order."""
    engine = RuleEngine([rule_class() for rule_class in PORT_RULES.values()], name="port")
    logger.debug(f"Port rule engine ready with {len(engine.rules)} rule(s)")
    return engine


def create_firewall_rule_engine() -> RuleEngine[FirewallRuleContext]:
    """Engine holding every built-in per-firewall-rule check."""
    engine = RuleEngine([rule_class() for rule_class in FIREWALL_RULES.values()], name="firewall")
    logger.debug(f"Firewall rule engine ready with {len(engine.rules)} rule(s)")
    return engine
