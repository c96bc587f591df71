"""
Service for resolving the effective configuration of switch ports.

Each field has its own precedence rule, so resolution is a set of explicit
per-field merge functions rather than a generic deep merge. In particular an
empty excluded-network list on a profile means "allow all VLANs" and still
replaces the port's own list, while an absent list leaves the port alone.
"""
import logging
from typing import Any, Dict, FrozenSet, Iterable, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from app.models.port_profile import PortProfile
from app.utils import raw_fields

logger = logging.getLogger(__name__)

FORWARD_NATIVE = "native"
FORWARD_CUSTOM = "custom"
FORWARD_ALL = "all"
FORWARD_DISABLED = "disabled"

FORWARD_SYNONYMS = {"customize": FORWARD_CUSTOM}

# Control modes that leave the port open without authentication
DOT1X_OPEN_MODES = frozenset({"", "force_authorized"})


class EffectivePortConfig(BaseModel):
    """Resolved port settings after profile overrides."""
    model_config = ConfigDict(frozen=True)

    forward_mode: str = FORWARD_NATIVE
    tagged_vlan_mgmt: Optional[str] = None
    native_network_id: Optional[str] = None
    excluded_network_ids: Optional[Tuple[str, ...]] = None
    port_security_enabled: bool = False
    allowed_mac_addresses: Tuple[str, ...] = ()
    isolation_enabled: bool = False
    poe_mode: Optional[str] = None
    autoneg: bool = True
    speed: int = 0
    dot1x_protected: bool = False
    profile_id: Optional[str] = None
    profile_name: Optional[str] = None

    @property
    def is_trunk(self) -> bool:
        """Custom forwarding with a custom tagged VLAN list."""
        return self.forward_mode == FORWARD_CUSTOM and (self.tagged_vlan_mgmt or "").lower() == "custom"


def normalize_forward(mode: Optional[str]) -> str:
    """Canonical forwarding mode; a missing value means native."""
    if not mode or not mode.strip():
        return FORWARD_NATIVE
    value = mode.strip().lower()
    return FORWARD_SYNONYMS.get(value, value)


def find_profile(profile_id: Optional[str], profiles: Optional[Iterable[PortProfile]]) -> Optional[PortProfile]:
    """
    Look up a profile by id, ignoring case.

    Returns None for a missing id, an unknown id or when no profiles were supplied.
    """
    if not profile_id or not profiles:
        return None
    wanted = profile_id.strip().lower()
    for profile in profiles:
        if profile.id and profile.id.lower() == wanted:
            return profile
    return None


def resolve_forward(port_forward: Optional[str], profile: Optional[PortProfile]) -> str:
    selected = profile.forward if profile is not None and profile.forward and profile.forward.strip() else port_forward
    return normalize_forward(selected)


def resolve_tagged_vlan_mgmt(port_value: Optional[str], profile: Optional[PortProfile]) -> Optional[str]:
    if profile is not None and profile.tagged_vlan_mgmt is not None:
        return profile.tagged_vlan_mgmt
    return port_value


def resolve_native_network(port_value: Optional[str], profile: Optional[PortProfile]) -> Optional[str]:
    if profile is not None and profile.native_network_id:
        return profile.native_network_id
    return port_value


def resolve_excluded_networks(
    port_value: Optional[Tuple[str, ...]], profile: Optional[PortProfile]
) -> Optional[Tuple[str, ...]]:
    # A defined list replaces the port's list even when empty
    if profile is not None and profile.excluded_network_ids is not None:
        return tuple(profile.excluded_network_ids)
    return port_value


def resolve_port_security(
    port_enabled: bool, port_macs: Tuple[str, ...], profile: Optional[PortProfile]
) -> Tuple[bool, Tuple[str, ...]]:
    if profile is None:
        return port_enabled, port_macs
    enabled = profile.port_security_enabled if profile.port_security_enabled is not None else port_enabled
    macs = tuple(profile.port_security_macs) if profile.port_security_macs is not None else port_macs
    return enabled, macs


def resolve_isolation(port_value: bool, profile: Optional[PortProfile]) -> bool:
    if profile is not None and profile.isolation is not None:
        return profile.isolation
    return port_value


def resolve_dot1x(port_ctrl: Optional[str], profile: Optional[PortProfile]) -> bool:
    ctrl = profile.dot1x_ctrl if profile is not None and profile.dot1x_ctrl is not None else port_ctrl
    return (ctrl or "").strip().lower() not in DOT1X_OPEN_MODES


def resolve_port(raw_port: Dict[str, Any], profile: Optional[PortProfile] = None) -> EffectivePortConfig:
    """
    Merge a raw port record with an optional profile.

    Args:
        raw_port: Controller port_table entry
        profile: Profile referenced by the port, if it could be found

    Returns:
        EffectivePortConfig
    """
    security_enabled, macs = resolve_port_security(
        raw_fields.get_bool(raw_port, "port_security_enabled"),
        raw_fields.get_str_list(raw_port, "port_security_mac_address") or (),
        profile,
    )

    poe_mode = raw_fields.get_str(raw_port, "poe_mode")
    autoneg = raw_fields.get_bool(raw_port, "autoneg", default=True)
    speed = raw_fields.get_int(raw_port, "speed", 0) or 0
    if profile is not None:
        if profile.poe_mode is not None:
            poe_mode = profile.poe_mode
        if profile.autoneg is not None:
            autoneg = profile.autoneg
        if profile.autoneg is False and profile.speed:
            speed = profile.speed

    return EffectivePortConfig(
        forward_mode=resolve_forward(raw_fields.get_str(raw_port, "forward"), profile),
        tagged_vlan_mgmt=resolve_tagged_vlan_mgmt(raw_fields.get_str(raw_port, "tagged_vlan_mgmt"), profile),
        native_network_id=resolve_native_network(raw_fields.get_str(raw_port, "native_networkconf_id"), profile),
        excluded_network_ids=resolve_excluded_networks(
            raw_fields.get_str_list(raw_port, "excluded_networkconf_ids"), profile
        ),
        port_security_enabled=security_enabled,
        allowed_mac_addresses=macs,
        isolation_enabled=resolve_isolation(raw_fields.get_bool(raw_port, "isolation"), profile),
        poe_mode=poe_mode,
        autoneg=autoneg,
        speed=speed,
        dot1x_protected=resolve_dot1x(raw_fields.get_str(raw_port, "dot1x_ctrl"), profile),
        profile_id=profile.id if profile is not None else None,
        profile_name=profile.name if profile is not None else None,
    )


def allowed_vlan_ids(
    excluded_network_ids: Optional[Iterable[str]], all_vlan_ids: Iterable[str]
) -> FrozenSet[str]:
    """VLAN networks left after removing the excluded ones; no exclusions allows everything."""
    excluded = set(excluded_network_ids or ())
    return frozenset(vlan_id for vlan_id in all_vlan_ids if vlan_id not in excluded)


class PortConfigResolver:
    """Resolves ports against a fixed, read-only list of profiles."""

    def __init__(self, profiles: Optional[Iterable[PortProfile]] = None):
        self.profiles: Tuple[PortProfile, ...] = tuple(profiles or ())
        self._by_id: Dict[str, PortProfile] = {p.id.lower(): p for p in self.profiles if p.id}

    def lookup(self, profile_id: Optional[str]) -> Optional[PortProfile]:
        if not profile_id:
            return None
        return self._by_id.get(profile_id.strip().lower())

    def resolve(self, raw_port: Dict[str, Any]) -> EffectivePortConfig:
        profile_id = raw_fields.get_str(raw_port, "portconf_id")
        profile = self.lookup(profile_id)
        if profile_id and profile is None:
            logger.debug("Port %s references unknown profile %s, using port settings",
                         raw_port.get("port_idx"), profile_id)
        return resolve_port(raw_port, profile)
