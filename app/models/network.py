"""
Network (VLAN) model.
"""
import enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict

from app.utils import raw_fields


class NetworkPurpose(str, enum.Enum):
    """Network purpose classification."""
    HOME = "home"
    CORPORATE = "corporate"
    IOT = "iot"
    SECURITY = "security"
    GUEST = "guest"
    MANAGEMENT = "management"
    WAN = "wan"
    VPN = "vpn"

    @classmethod
    def from_config(cls, purpose: Optional[str], name: Optional[str] = None) -> "NetworkPurpose":
        """
        Classify a controller purpose string, refined by the network name.

        Controller purposes only distinguish wan/vpn/guest/corporate, so LAN
        networks are further classified from name keywords.
        """
        value = (purpose or "").strip().lower()
        if value == "wan":
            return cls.WAN
        if "vpn" in value:
            return cls.VPN
        if value == "guest":
            return cls.GUEST
        for member in cls:
            if value == member.value and member is not cls.CORPORATE:
                return member

        lowered = (name or "").lower()
        if "iot" in lowered:
            return cls.IOT
        if "security" in lowered or "camera" in lowered:
            return cls.SECURITY
        if "guest" in lowered:
            return cls.GUEST
        if "mgmt" in lowered or "management" in lowered:
            return cls.MANAGEMENT
        if "home" in lowered:
            return cls.HOME
        return cls.CORPORATE


class NetworkInfo(BaseModel):
    """A configured network and its VLAN."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    vlan_id: int = 1
    purpose: NetworkPurpose = NetworkPurpose.CORPORATE
    enabled: bool = True
    subnet: Optional[str] = None

    @property
    def is_vlan_network(self) -> bool:
        """WAN and VPN networks never take part in switch port VLAN membership."""
        return self.purpose not in (NetworkPurpose.WAN, NetworkPurpose.VPN)

    @classmethod
    def from_config(cls, raw: Dict[str, Any]) -> "NetworkInfo":
        """Build from a controller networkconf record."""
        name = raw_fields.get_str(raw, "name") or ""
        vlan = raw.get("vlan", raw.get("vlan_id"))
        try:
            vlan_id = int(vlan) if vlan not in (None, "") else 1
        except (TypeError, ValueError):
            vlan_id = 1
        return cls(
            id=raw_fields.get_str(raw, "_id") or raw_fields.get_str(raw, "id") or "",
            name=name,
            vlan_id=vlan_id,
            purpose=NetworkPurpose.from_config(raw_fields.get_str(raw, "purpose"), name),
            enabled=raw_fields.get_bool(raw, "enabled", default=True),
            subnet=raw_fields.get_str(raw, "ip_subnet") or raw_fields.get_str(raw, "subnet"),
        )
