"""
Switch and port models produced by topology extraction.
"""
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict

from app.utils import device_types


class ConnectedClient(BaseModel):
    """Wired client seen on a switch port."""
    model_config = ConfigDict(frozen=True)

    mac: str
    name: Optional[str] = None
    hostname: Optional[str] = None
    ip: Optional[str] = None
    network_id: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.name or self.hostname or self.mac


class SwitchCapabilities(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_custom_mac_acls: int = 0
    supports_isolation: bool = True


class PortInfo(BaseModel):
    """A switch port with its effective (profile-resolved) configuration."""
    model_config = ConfigDict(frozen=True)

    port_index: int
    name: str = ""
    is_up: bool = False
    speed: int = 0
    autoneg: bool = True
    media: Optional[str] = None

    forward_mode: str = "native"
    tagged_vlan_mgmt: Optional[str] = None
    native_network_id: Optional[str] = None
    excluded_network_ids: Optional[Tuple[str, ...]] = None
    network_name: Optional[str] = None

    poe_enabled: bool = False
    poe_capable: bool = False
    poe_power: float = 0.0
    poe_mode: Optional[str] = None

    is_uplink: bool = False
    is_wan: bool = False
    isolation_enabled: bool = False
    port_security_enabled: bool = False
    allowed_mac_addresses: Tuple[str, ...] = ()
    dot1x_protected: bool = False

    profile_id: Optional[str] = None
    profile_name: Optional[str] = None

    lag_idx: Optional[int] = None
    aggregated_by: Optional[int] = None
    is_lag_child: bool = False
    is_manageable: bool = True

    connected_client: Optional[ConnectedClient] = None
    connected_device_type: Optional[str] = None
    last_connection_mac: Optional[str] = None
    last_connection_seen: Optional[int] = None

    switch_mac: str = ""
    switch_name: str = ""
    switch_type: Optional[str] = None

    @property
    def has_offline_device_data(self) -> bool:
        return bool(self.last_connection_mac)

    @property
    def is_mac_restricted(self) -> bool:
        return len(self.allowed_mac_addresses) > 0


class SwitchInfo(BaseModel):
    """A managed device that owns switch ports."""
    model_config = ConfigDict(frozen=True)

    mac: str = ""
    name: str = ""
    model: Optional[str] = None
    model_name: Optional[str] = None
    device_type: Optional[str] = None
    ip: Optional[str] = None
    is_gateway: bool = False
    is_access_point: bool = False
    capabilities: SwitchCapabilities = SwitchCapabilities()
    configured_dns1: Optional[str] = None
    configured_dns2: Optional[str] = None
    network_config_type: Optional[str] = None
    uplink_mac: Optional[str] = None
    uplink_remote_port: Optional[int] = None
    jumbo_frames_enabled: bool = False
    flow_control_enabled: bool = False
    ports: Tuple[PortInfo, ...] = ()

    @property
    def has_unmanageable_ports(self) -> bool:
        """
        Gateway-class hardware running as an access point.

        Its ports are bridged by the mesh role and cannot be configured
        individually, so port audits skip them.
        """
        if not self.is_access_point or self.is_gateway:
            return False
        model = (self.model_name or self.model or "").upper()
        return device_types.is_gateway(self.device_type) or model.startswith("UX")

    def get_port(self, port_index: int) -> Optional[PortInfo]:
        for port in self.ports:
            if port.port_index == port_index:
                return port
        return None
