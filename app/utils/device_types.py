"""
Device type code classification.

Maps controller device type codes to role categories. All lookups are
case-insensitive and treat missing codes as unknown.
"""
from typing import Optional

GATEWAY_TYPES = frozenset({"udm", "ugw", "uxg", "ucg"})
SWITCH_TYPES = frozenset({"usw"})
ACCESS_POINT_TYPES = frozenset({"uap"})
CELLULAR_MODEM_TYPES = frozenset({"umbb"})

# Devices that legitimately carry many VLANs towards downstream gear
NETWORK_FABRIC_TYPES = GATEWAY_TYPES | {"usg"} | SWITCH_TYPES | ACCESS_POINT_TYPES | {"ubb"}

DISPLAY_NAMES = {
    "udm": "Gateway",
    "ugw": "Gateway",
    "uxg": "Gateway",
    "ucg": "Gateway",
    "usw": "Switch",
    "uap": "Access Point",
    "umbb": "Cellular Modem",
}


def _normalize(device_type: Optional[str]) -> str:
    return (device_type or "").strip().lower()


def is_gateway(device_type: Optional[str]) -> bool:
    return _normalize(device_type) in GATEWAY_TYPES


def is_access_point(device_type: Optional[str]) -> bool:
    return _normalize(device_type) in ACCESS_POINT_TYPES


def is_cellular_modem(device_type: Optional[str]) -> bool:
    return _normalize(device_type) in CELLULAR_MODEM_TYPES


def is_network_fabric(device_type: Optional[str]) -> bool:
    """Gateways, switches, access points and building bridges."""
    return _normalize(device_type) in NETWORK_FABRIC_TYPES


def get_display_name(device_type: Optional[str]) -> str:
    """Friendly role name for a type code, falling back to the code itself."""
    if not device_type:
        return "Unknown"
    return DISPLAY_NAMES.get(_normalize(device_type), device_type)
