"""
Service for extracting switch and port topology from controller device records.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from app.models.device import ConnectedClient, PortInfo, SwitchCapabilities, SwitchInfo
from app.models.global_settings import GlobalSwitchSettings
from app.models.network import NetworkInfo
from app.models.port_profile import PortProfile
from app.services.port_resolver import PortConfigResolver
from app.utils import device_types, raw_fields

logger = logging.getLogger(__name__)

# Access points with this many ports or fewer only expose passthrough ports
PASSTHROUGH_MAX_PORTS = 2


def _normalize_mac(mac: Optional[str]) -> str:
    return (mac or "").strip().lower()


class TopologyExtractor:
    """
    Builds typed SwitchInfo/PortInfo entities from one snapshot.

    The extractor is constructed per evaluation pass with the raw device list
    and the read-only inputs used to enrich it (networks, clients, profiles
    and global switch settings).
    """

    def __init__(
        self,
        devices: Optional[Iterable[Any]],
        networks: Optional[Iterable[NetworkInfo]] = None,
        clients: Optional[Iterable[Dict[str, Any]]] = None,
        port_profiles: Optional[Iterable[PortProfile]] = None,
        global_settings: Optional[GlobalSwitchSettings] = None,
    ):
        """
        Initialize extractor with snapshot content.

        Args:
            devices: Raw controller device records
            networks: Parsed networks
            clients: Raw client records, used to find what is plugged into each port
            port_profiles: Parsed port profiles
            global_settings: Global switch settings, if the controller reported any
        """
        self.devices = [d for d in (devices or []) if isinstance(d, dict)]
        self.networks = list(networks or [])
        self.resolver = PortConfigResolver(port_profiles)
        self.global_settings = global_settings
        self._client_lookup = self._build_client_lookup(clients or [])
        self._device_macs = self._build_device_macs()
        self._downstream_types = self._build_downstream_types()

    def extract_switches(self) -> List[SwitchInfo]:
        """
        Extract all manageable port-owning devices.

        Gateways come first, the rest keep their input order. Devices without
        usable ports and passthrough access points are skipped, and a device
        that fails to parse is logged and skipped without affecting others.

        Returns:
            List of SwitchInfo
        """
        switches: List[SwitchInfo] = []
        for device in self.devices:
            try:
                switch = self._parse_device(device)
            except (TypeError, ValueError, AttributeError, KeyError) as e:
                logger.warning(f"Skipping malformed device {device.get('name') or device.get('mac')}: {e}")
                continue
            if switch is not None:
                switches.append(switch)

        switches.sort(key=lambda s: 0 if s.is_gateway else 1)
        logger.info(f"Extracted {len(switches)} switch(es) from {len(self.devices)} device record(s)")
        return switches

    def extract_access_point_lookup(self) -> Dict[str, str]:
        """Map of access point MAC (lower-case) to display name, passthrough models included."""
        lookup: Dict[str, str] = {}
        for device in self.devices:
            mac = _normalize_mac(raw_fields.get_str(device, "mac"))
            if not mac:
                continue
            if device_types.is_access_point(raw_fields.get_str(device, "type")) or self._is_mesh_gateway(device):
                lookup[mac] = raw_fields.get_str(device, "name") or mac
        return lookup

    def _parse_device(self, device: Dict[str, Any]) -> Optional[SwitchInfo]:
        name = raw_fields.get_str(device, "name") or raw_fields.get_str(device, "mac") or "Unknown"
        port_table = device.get("port_table")
        if not isinstance(port_table, list) or not port_table:
            logger.debug(f"Device {name} has no port table, skipping")
            return None

        raw_ports = [p for p in port_table if isinstance(p, dict)]
        device_type = raw_fields.get_str(device, "type")
        is_ap_type = device_types.is_access_point(device_type)
        is_mesh = self._is_mesh_gateway(device)

        if is_ap_type and len(raw_ports) <= PASSTHROUGH_MAX_PORTS:
            logger.debug(f"Access point {name} has {len(raw_ports)} port(s), treating as passthrough")
            return None

        has_wan_port = any(
            (raw_fields.get_str(p, "network_name") or "").lower().startswith("wan") for p in raw_ports
        )
        is_gateway = (device_types.is_gateway(device_type) or has_wan_port) and not is_mesh and not is_ap_type

        uplink = raw_fields.get_dict(device, "uplink")
        caps = raw_fields.get_dict(device, "switch_caps")
        config_network = raw_fields.get_dict(device, "config_network")
        mac = raw_fields.get_str(device, "mac") or ""

        jumbo = raw_fields.get_bool(device, "jumboframe_enabled")
        flowctrl = raw_fields.get_bool(device, "flowctrl_enabled")
        if self.global_settings is not None:
            jumbo = self.global_settings.effective_jumbo_frames(device)
            flowctrl = self.global_settings.effective_flow_control(device)

        switch = SwitchInfo(
            mac=mac,
            name=name,
            model=raw_fields.get_str(device, "model"),
            model_name=raw_fields.get_str(device, "model_name") or raw_fields.get_str(device, "shortname"),
            device_type=device_type,
            ip=raw_fields.get_str(device, "ip"),
            is_gateway=is_gateway,
            is_access_point=is_ap_type or is_mesh,
            capabilities=SwitchCapabilities(
                max_custom_mac_acls=raw_fields.get_int(caps, "max_custom_mac_acls", 0) or 0,
                supports_isolation=raw_fields.get_bool(caps, "supports_isolation", default=True),
            ),
            configured_dns1=raw_fields.get_str(config_network, "dns1"),
            configured_dns2=raw_fields.get_str(config_network, "dns2"),
            network_config_type=raw_fields.get_str(config_network, "type"),
            uplink_mac=raw_fields.get_str(uplink, "uplink_mac"),
            uplink_remote_port=raw_fields.get_int(uplink, "uplink_remote_port"),
            jumbo_frames_enabled=jumbo,
            flow_control_enabled=flowctrl,
        )

        uplink_port_idx = raw_fields.get_int(uplink, "port_idx")
        ports = []
        for raw_port in raw_ports:
            port = self._parse_port(raw_port, switch, uplink_port_idx)
            if port is not None:
                ports.append(port)

        if not ports:
            logger.debug(f"Device {name} yielded no usable ports, skipping")
            return None

        ports = self._apply_lag_inheritance(ports)
        return switch.model_copy(update={"ports": tuple(ports)})

    def _parse_port(
        self, raw_port: Dict[str, Any], switch: SwitchInfo, uplink_port_idx: Optional[int]
    ) -> Optional[PortInfo]:
        port_idx = raw_fields.get_int(raw_port, "port_idx")
        if port_idx is None:
            return None

        effective = self.resolver.resolve(raw_port)
        network_name = raw_fields.get_str(raw_port, "network_name")

        # aggregated_by is False on the LAG parent and the parent's index on children
        aggregated_by = raw_fields.get_int(raw_port, "aggregated_by")
        is_lag_child = aggregated_by is not None and aggregated_by != port_idx

        last_connection = raw_fields.get_dict(raw_port, "last_connection")
        switch_mac = _normalize_mac(switch.mac)

        return PortInfo(
            port_index=port_idx,
            name=raw_fields.get_str(raw_port, "name") or "",
            is_up=raw_fields.get_bool(raw_port, "up"),
            speed=effective.speed,
            autoneg=effective.autoneg,
            media=raw_fields.get_str(raw_port, "media"),
            forward_mode=effective.forward_mode,
            tagged_vlan_mgmt=effective.tagged_vlan_mgmt,
            native_network_id=effective.native_network_id,
            excluded_network_ids=effective.excluded_network_ids,
            network_name=network_name,
            poe_enabled=raw_fields.get_bool(raw_port, "poe_enable"),
            poe_capable=raw_fields.get_bool(raw_port, "port_poe"),
            poe_power=raw_fields.get_float(raw_port, "poe_power"),
            poe_mode=effective.poe_mode,
            is_uplink=raw_fields.get_bool(raw_port, "is_uplink") or port_idx == uplink_port_idx,
            is_wan=(network_name or "").lower().startswith("wan"),
            isolation_enabled=effective.isolation_enabled,
            port_security_enabled=effective.port_security_enabled,
            allowed_mac_addresses=effective.allowed_mac_addresses,
            dot1x_protected=effective.dot1x_protected,
            profile_id=raw_fields.get_str(raw_port, "portconf_id"),
            profile_name=effective.profile_name,
            lag_idx=raw_fields.get_int(raw_port, "lag_idx"),
            aggregated_by=aggregated_by if is_lag_child else None,
            is_lag_child=is_lag_child,
            is_manageable=not switch.has_unmanageable_ports,
            connected_client=self._client_lookup.get((switch_mac, port_idx)),
            connected_device_type=self._downstream_types.get((switch_mac, port_idx)),
            last_connection_mac=raw_fields.get_str(last_connection, "mac"),
            last_connection_seen=raw_fields.get_int(last_connection, "last_seen"),
            switch_mac=switch.mac,
            switch_name=switch.name,
            switch_type=switch.device_type,
        )

    @staticmethod
    def _apply_lag_inheritance(ports: List[PortInfo]) -> List[PortInfo]:
        """Copy VLAN and forwarding state from each LAG parent onto its children."""
        by_index = {p.port_index: p for p in ports}
        result = []
        for port in ports:
            parent = by_index.get(port.aggregated_by) if port.is_lag_child else None
            if parent is not None:
                port = port.model_copy(update={
                    "forward_mode": parent.forward_mode,
                    "tagged_vlan_mgmt": parent.tagged_vlan_mgmt,
                    "native_network_id": parent.native_network_id,
                    "excluded_network_ids": parent.excluded_network_ids,
                })
            result.append(port)
        return result

    def _is_mesh_gateway(self, device: Dict[str, Any]) -> bool:
        """Gateway-class hardware whose uplink is another device in this snapshot."""
        if not device_types.is_gateway(raw_fields.get_str(device, "type")):
            return False
        uplink_mac = _normalize_mac(raw_fields.get_str(raw_fields.get_dict(device, "uplink"), "uplink_mac"))
        own_mac = _normalize_mac(raw_fields.get_str(device, "mac"))
        return bool(uplink_mac) and uplink_mac != own_mac and uplink_mac in self._device_macs

    def _build_device_macs(self) -> Set[str]:
        macs = set()
        for device in self.devices:
            if device_types.is_cellular_modem(raw_fields.get_str(device, "type")):
                continue
            mac = _normalize_mac(raw_fields.get_str(device, "mac"))
            if mac:
                macs.add(mac)
        return macs

    def _build_downstream_types(self) -> Dict[Tuple[str, int], str]:
        """(upstream mac, upstream port) -> type of the device uplinked there."""
        lookup: Dict[Tuple[str, int], str] = {}
        for device in self.devices:
            uplink = raw_fields.get_dict(device, "uplink")
            uplink_mac = _normalize_mac(raw_fields.get_str(uplink, "uplink_mac"))
            remote_port = raw_fields.get_int(uplink, "uplink_remote_port")
            device_type = raw_fields.get_str(device, "type")
            if uplink_mac and remote_port is not None and device_type:
                lookup[(uplink_mac, remote_port)] = device_type
        return lookup

    @staticmethod
    def _build_client_lookup(clients: Iterable[Dict[str, Any]]) -> Dict[Tuple[str, int], ConnectedClient]:
        lookup: Dict[Tuple[str, int], ConnectedClient] = {}
        for client in clients:
            if not isinstance(client, dict):
                continue
            if not raw_fields.get_bool(client, "is_wired", default=True):
                continue
            sw_mac = _normalize_mac(raw_fields.get_str(client, "sw_mac"))
            sw_port = raw_fields.get_int(client, "sw_port")
            mac = raw_fields.get_str(client, "mac")
            if not sw_mac or sw_port is None or not mac:
                continue
            lookup[(sw_mac, sw_port)] = ConnectedClient(
                mac=mac,
                name=raw_fields.get_str(client, "name"),
                hostname=raw_fields.get_str(client, "hostname"),
                ip=raw_fields.get_str(client, "ip"),
                network_id=raw_fields.get_str(client, "network_id"),
            )
        return lookup


def extract_switches(
    devices: Optional[Iterable[Any]],
    networks: Optional[Iterable[NetworkInfo]] = None,
    clients: Optional[Iterable[Dict[str, Any]]] = None,
    port_profiles: Optional[Iterable[PortProfile]] = None,
    global_settings: Optional[GlobalSwitchSettings] = None,
) -> List[SwitchInfo]:
    """Convenience wrapper around TopologyExtractor.extract_switches."""
    return TopologyExtractor(devices, networks, clients, port_profiles, global_settings).extract_switches()


def get_lag_aggregate_speed(switch: SwitchInfo, port_index: int) -> int:
    """
    Combined speed of the LAG a port belongs to.

    A parent reports its own speed plus all of its children; a child reports
    its parent's aggregate; a port outside any LAG reports its own speed and an
    unknown port reports 0.
    """
    port = switch.get_port(port_index)
    if port is None:
        return 0
    if port.is_lag_child and port.aggregated_by is not None:
        parent = switch.get_port(port.aggregated_by)
        if parent is None:
            return port.speed
        return get_lag_aggregate_speed(switch, parent.port_index)
    return port.speed + sum(p.speed for p in switch.ports if p.is_lag_child and p.aggregated_by == port_index)
