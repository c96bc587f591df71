"""
Port profile model.

A profile is a named bundle of optional overrides. Every override field uses
None for "not defined by this profile" so that resolution can tell an absent
value apart from an explicit empty one.
"""
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from app.utils import raw_fields


def _optional_str(raw: Dict[str, Any], key: str) -> Optional[str]:
    value = raw_fields.get_str(raw, key)
    return value if value and value.strip() else None


class PortProfile(BaseModel):
    """Named port configuration override bundle."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    forward: Optional[str] = None
    tagged_vlan_mgmt: Optional[str] = None
    native_network_id: Optional[str] = None
    excluded_network_ids: Optional[Tuple[str, ...]] = None
    poe_mode: Optional[str] = None
    autoneg: Optional[bool] = None
    speed: Optional[int] = None
    port_security_enabled: Optional[bool] = None
    port_security_macs: Optional[Tuple[str, ...]] = None
    isolation: Optional[bool] = None
    dot1x_ctrl: Optional[str] = None

    @property
    def is_trunk_profile(self) -> bool:
        forward = (self.forward or "").lower()
        return forward in ("custom", "customize") and (self.tagged_vlan_mgmt or "").lower() == "custom"

    @property
    def forces_poe_off(self) -> bool:
        return (self.poe_mode or "").lower() == "off"

    @property
    def forces_speed(self) -> bool:
        return self.autoneg is False

    @classmethod
    def from_config(cls, raw: Dict[str, Any]) -> "PortProfile":
        """Build from a controller portconf record."""
        return cls(
            id=raw_fields.get_str(raw, "_id") or raw_fields.get_str(raw, "id") or "",
            name=raw_fields.get_str(raw, "name") or "",
            forward=_optional_str(raw, "forward"),
            tagged_vlan_mgmt=_optional_str(raw, "tagged_vlan_mgmt"),
            native_network_id=_optional_str(raw, "native_networkconf_id"),
            excluded_network_ids=raw_fields.get_str_list(raw, "excluded_networkconf_ids"),
            poe_mode=_optional_str(raw, "poe_mode"),
            autoneg=raw_fields.get_optional_bool(raw, "autoneg"),
            speed=raw_fields.get_int(raw, "speed"),
            port_security_enabled=raw_fields.get_optional_bool(raw, "port_security_enabled"),
            port_security_macs=raw_fields.get_str_list(raw, "port_security_mac_address"),
            isolation=raw_fields.get_optional_bool(raw, "isolation"),
            dot1x_ctrl=_optional_str(raw, "dot1x_ctrl"),
        )
