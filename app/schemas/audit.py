"""Schemas for audit operations."""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.findings import AuditIssue, PortProfileSuggestion


class SnapshotRequest(BaseModel):
    """
    Point-in-time controller snapshot.

    Sections are the raw controller records; they are parsed server-side so
    that loosely typed fields degrade to defaults instead of failing validation.
    """
    model_config = ConfigDict(populate_by_name=True)

    devices: List[Dict[str, Any]] = Field(default_factory=list)
    networks: List[Dict[str, Any]] = Field(default_factory=list)
    port_profiles: List[Dict[str, Any]] = Field(default_factory=list)
    firewall_rules: List[Dict[str, Any]] = Field(default_factory=list)
    clients: List[Dict[str, Any]] = Field(default_factory=list)
    settings_payload: Optional[Any] = Field(default=None, alias="settings")


class AuditBreakdown(BaseModel):
    """Breakdown of issues by severity."""
    critical: int = 0
    recommended: int = 0
    investigate: int = 0
    informational: int = 0


class PortStatistics(BaseModel):
    """Port counts across all audited switches."""
    total_ports: int = 0
    active_ports: int = 0
    disabled_ports: int = 0
    port_security_enabled_ports: int = 0
    isolated_ports: int = 0
    mac_restricted_ports: int = 0
    unprotected_active_ports: int = 0


class AuditResponse(BaseModel):
    """Audit response schema."""
    risk_score: int
    total_issues: int
    breakdown: AuditBreakdown
    summary: str
    issues: List[AuditIssue]
    suggestions: List[PortProfileSuggestion] = Field(default_factory=list)
    statistics: PortStatistics
    hardening_measures: List[str] = Field(default_factory=list)
    switch_count: int = 0


class FirewallAnalysisResponse(BaseModel):
    """Firewall overlap and permissiveness findings."""
    rule_count: int
    overlaps: List[AuditIssue]
    any_any: List[AuditIssue]
