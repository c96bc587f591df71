"""Domain models."""
from app.models.device import ConnectedClient, PortInfo, SwitchCapabilities, SwitchInfo
from app.models.firewall_rule import FirewallRule
from app.models.global_settings import GlobalSwitchSettings
from app.models.network import NetworkInfo, NetworkPurpose
from app.models.port_profile import PortProfile

__all__ = [
    "ConnectedClient",
    "PortInfo",
    "SwitchCapabilities",
    "SwitchInfo",
    "FirewallRule",
    "GlobalSwitchSettings",
    "NetworkInfo",
    "NetworkPurpose",
    "PortProfile",
]
