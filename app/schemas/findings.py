"""
Finding schemas for audit results.
"""
import enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class AuditSeverity(str, enum.Enum):
    """Issue severity levels, most severe first."""
    CRITICAL = "critical"
    RECOMMENDED = "recommended"
    INVESTIGATE = "investigate"
    INFORMATIONAL = "informational"


SEVERITY_ORDER = {
    AuditSeverity.CRITICAL: 0,
    AuditSeverity.RECOMMENDED: 1,
    AuditSeverity.INVESTIGATE: 2,
    AuditSeverity.INFORMATIONAL: 3,
}


class IssueTypes:
    """Stable issue type codes."""
    UNUSED_PORT = "UNUSED_PORT"
    ACCESS_PORT_VLAN = "ACCESS_PORT_VLAN"
    FW_ANY_ANY = "FW_ANY_ANY"
    FW_RULE_CONFLICT = "FW_RULE_CONFLICT"
    FW_RULE_REDUNDANT = "FW_RULE_REDUNDANT"
    TRUNK_VLAN_MISMATCH = "TRUNK_VLAN_MISMATCH"
    TRUNK_NATIVE_VLAN_MISMATCH = "TRUNK_NATIVE_VLAN_MISMATCH"


class AuditIssue(BaseModel):
    """Structured issue produced by an audit rule or analyzer."""
    type: str  # e.g., "UNUSED_PORT"
    rule_id: Optional[str] = None  # e.g., "UNUSED-PORT-001"
    severity: AuditSeverity
    message: str
    device_mac: Optional[str] = None
    device_name: Optional[str] = None
    port: Optional[str] = None
    port_name: Optional[str] = None
    score_impact: int = 0
    recommendation: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class SuggestionType(str, enum.Enum):
    """How a port profile suggestion should be acted on."""
    CREATE_NEW = "create_new"
    APPLY_EXISTING = "apply_existing"
    EXTEND_USAGE = "extend_usage"


class SuggestionSeverity(str, enum.Enum):
    INFO = "info"
    RECOMMENDATION = "recommendation"


class PortReference(BaseModel):
    """Pointer to a port affected by a suggestion."""
    device_mac: str
    device_name: str
    port_index: int
    port_name: Optional[str] = None
    current_profile_id: Optional[str] = None
    current_profile_name: Optional[str] = None


class PortProfileSuggestion(BaseModel):
    """Consolidation suggestion for a group of trunk ports with identical VLAN settings."""
    type: SuggestionType
    severity: SuggestionSeverity = SuggestionSeverity.INFO
    matching_profile_id: Optional[str] = None
    matching_profile_name: Optional[str] = None
    suggested_profile_name: Optional[str] = None
    native_network_id: Optional[str] = None
    native_network_name: Optional[str] = None
    allowed_vlan_names: List[str] = Field(default_factory=list)
    affected_ports: List[PortReference] = Field(default_factory=list)
    ports_without_profile: int = 0
    ports_already_using_profile: int = 0
    recommendation: str = ""
