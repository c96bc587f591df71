"""
Unused port detection.
"""
import logging
import re
import time
from typing import Callable, Iterable, Optional

from app.core.config import settings
from app.schemas.findings import AuditIssue, AuditSeverity, IssueTypes
from app.services.port_resolver import FORWARD_DISABLED
from app.services.rule_engine import BaseAuditRule, PortRuleContext

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400

DEFAULT_PORT_NAME_PATTERN = re.compile(r"^(Port\s*\d+|SFP\+?\s*\d+)$", re.IGNORECASE)


def is_default_port_name(name: Optional[str]) -> bool:
    """Blank names and controller defaults such as "Port 7" or "SFP+ 2"."""
    if not name or not name.strip():
        return True
    return bool(DEFAULT_PORT_NAME_PATTERN.match(name.strip()))


class UnusedPortRule(BaseAuditRule[PortRuleContext]):
    """
    Flags ports that are down but still forwarding.

    A port that saw a device recently is left alone. Ports that were given a
    custom name get a longer grace period since someone clearly planned for them.
    """

    rule_id = "UNUSED-PORT-001"
    issue_type = IssueTypes.UNUSED_PORT
    severity = AuditSeverity.RECOMMENDED
    score_impact = 2

    def __init__(
        self,
        enabled: bool = True,
        default_threshold_days: Optional[int] = None,
        named_threshold_days: Optional[int] = None,
        clock: Callable[[], float] = time.time,
    ):
        super().__init__(enabled)
        self.default_threshold_days = (
            default_threshold_days if default_threshold_days is not None else settings.UNUSED_PORT_DAYS
        )
        self.named_threshold_days = (
            named_threshold_days if named_threshold_days is not None else settings.NAMED_UNUSED_PORT_DAYS
        )
        self.clock = clock

    def evaluate(self, context: PortRuleContext) -> Iterable[AuditIssue]:
        port = context.port
        if port.is_up or port.is_uplink or port.is_wan:
            return []
        if port.forward_mode == FORWARD_DISABLED:
            return []

        has_custom_name = not is_default_port_name(port.name)
        threshold_days = self.named_threshold_days if has_custom_name else self.default_threshold_days

        days_since_seen = None
        if port.last_connection_seen is not None:
            days_since_seen = (self.clock() - port.last_connection_seen) / SECONDS_PER_DAY
            if days_since_seen < threshold_days:
                return []

        logger.debug(
            f"Flagging {context.switch.name} port {port.port_index}: forward={port.forward_mode}, "
            f"last_seen={port.last_connection_seen}, threshold={threshold_days}d"
        )
        return [
            self.create_port_issue(
                context,
                "Unused port not disabled - should set forward mode to 'disabled'",
                recommendation="Set forward mode to 'disabled' to harden the switch",
                current_forward_mode=port.forward_mode,
                threshold_days=threshold_days,
                days_since_last_connection=round(days_since_seen, 1) if days_since_seen is not None else None,
            )
        ]
