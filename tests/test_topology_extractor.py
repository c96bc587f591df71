"""
Tests for switch and port extraction from device records.
"""
from app.models.global_settings import GlobalSwitchSettings
from app.models.network import NetworkInfo
from app.models.port_profile import PortProfile
from app.services.topology_extractor import TopologyExtractor, extract_switches, get_lag_aggregate_speed
from app.utils import device_types
from conftest import NET_IOT, default_networks, make_device, make_port


def _networks():
    return [NetworkInfo.from_config(n) for n in default_networks()]


def test_extracts_switch_with_ports():
    """Test basic switch and port extraction."""
    device = make_device("AA:AA:AA:00:00:01", "Office Switch", [make_port(1, up=True), make_port(2)])

    switches = extract_switches([device], _networks())

    assert len(switches) == 1
    switch = switches[0]
    assert switch.name == "Office Switch"
    assert switch.is_gateway is False
    assert [p.port_index for p in switch.ports] == [1, 2]
    assert switch.ports[0].is_up is True
    assert switch.ports[0].switch_name == "Office Switch"


def test_devices_without_ports_are_skipped():
    """Test that devices lacking a usable port table are ignored."""
    devices = [
        make_device("aa:00", "No Table", None),
        make_device("aa:01", "Empty Table", []),
        make_device("aa:02", "Bad Ports", [{"name": "no index"}]),
    ]
    assert extract_switches(devices) == []


def test_passthrough_access_point_is_skipped():
    """Test that APs with two or fewer ports are not treated as switches."""
    small_ap = make_device("aa:10", "Lobby AP", [make_port(1), make_port(2)], device_type="uap")
    big_ap = make_device("aa:11", "Wall AP", [make_port(i) for i in range(1, 6)], device_type="uap")

    switches = extract_switches([small_ap, big_ap])

    assert [s.name for s in switches] == ["Wall AP"]
    assert switches[0].is_access_point is True


def test_gateways_sorted_first():
    """Test that gateways precede switches in the result."""
    switch = make_device("aa:20", "Switch", [make_port(1)])
    gateway = make_device("aa:21", "Gateway", [make_port(1)], device_type="udm")

    switches = extract_switches([switch, gateway])

    assert [s.name for s in switches] == ["Gateway", "Switch"]
    assert switches[0].is_gateway is True


def test_wan_port_marks_device_as_gateway():
    """Test that a WAN-named port makes the device a gateway and the port a WAN port."""
    device = make_device("aa:30", "Router", [make_port(1), make_port(2, network_name="wan")], device_type="usw")

    switch = extract_switches([device])[0]

    assert switch.is_gateway is True
    assert switch.get_port(2).is_wan is True
    assert switch.get_port(1).is_wan is False


def test_mesh_gateway_becomes_access_point():
    """Test that gateway hardware uplinked to another device is treated as a mesh AP."""
    upstream = make_device("aa:40", "Core", [make_port(1)])
    mesh = make_device(
        "aa:41", "Express", [make_port(1), make_port(2)],
        device_type="udm", model="UX", uplink={"uplink_mac": "AA:40", "uplink_remote_port": 1},
    )

    switches = extract_switches([upstream, mesh])
    express = next(s for s in switches if s.name == "Express")

    assert express.is_access_point is True
    assert express.is_gateway is False
    assert express.has_unmanageable_ports is True
    assert all(not p.is_manageable for p in express.ports)


def test_cellular_modem_uplink_is_not_mesh():
    """Test that a gateway uplinked through a cellular modem stays a gateway."""
    modem = make_device("aa:50", "LTE", [], device_type="umbb")
    gateway = make_device(
        "aa:51", "Gateway", [make_port(1)],
        device_type="udm", uplink={"uplink_mac": "aa:50"},
    )

    switch = extract_switches([modem, gateway])[0]
    assert switch.is_gateway is True
    assert switch.is_access_point is False


def test_uplink_port_from_device_uplink():
    """Test that the device uplink port index marks the port as uplink."""
    device = make_device("aa:60", "Edge", [make_port(1), make_port(2)], uplink={"port_idx": 2})

    switch = extract_switches([device])[0]
    assert switch.get_port(2).is_uplink is True
    assert switch.get_port(1).is_uplink is False


def test_profile_resolution_applied_to_ports():
    """Test that ports carry the profile-resolved configuration."""
    profile = PortProfile(id="p-off", name="Off", forward="disabled")
    device = make_device("aa:70", "Switch", [make_port(1, portconf_id="p-off"), make_port(2)])

    switch = extract_switches([device], port_profiles=[profile])[0]

    assert switch.get_port(1).forward_mode == "disabled"
    assert switch.get_port(1).profile_name == "Off"
    assert switch.get_port(1).profile_id == "p-off"
    assert switch.get_port(2).forward_mode == "native"


def test_lag_children_inherit_parent_vlans():
    """Test LAG membership detection and VLAN inheritance."""
    ports = [
        make_port(1, up=True, speed=10000, aggregated_by=False, lag_idx=1,
                  forward="customize", tagged_vlan_mgmt="custom", excluded_networkconf_ids=[NET_IOT]),
        make_port(2, up=True, speed=10000, aggregated_by=1, lag_idx=1, forward="native"),
        make_port(3, speed=1000),
    ]
    switch = extract_switches([make_device("aa:80", "Agg", ports)])[0]

    parent, child, plain = switch.get_port(1), switch.get_port(2), switch.get_port(3)
    assert parent.is_lag_child is False
    assert child.is_lag_child is True
    assert child.aggregated_by == 1
    assert child.forward_mode == "custom"
    assert child.excluded_network_ids == (NET_IOT,)

    assert get_lag_aggregate_speed(switch, 1) == 20000
    assert get_lag_aggregate_speed(switch, 2) == 20000
    assert get_lag_aggregate_speed(switch, 3) == 1000
    assert get_lag_aggregate_speed(switch, 99) == 0


def test_connected_clients_and_downstream_devices():
    """Test that wired clients and uplinked devices are attached to ports."""
    core = make_device("AA:90", "Core", [make_port(1), make_port(2), make_port(3)])
    ap = make_device("aa:91", "AP", [make_port(1)], device_type="uap",
                     uplink={"uplink_mac": "aa:90", "uplink_remote_port": 2})
    clients = [
        {"mac": "cc:01", "name": "NAS", "sw_mac": "aa:90", "sw_port": 1, "is_wired": True},
        {"mac": "cc:02", "name": "Phone", "sw_mac": "aa:90", "sw_port": 3, "is_wired": False},
    ]

    switch = extract_switches([core, ap], clients=clients)[0]

    assert switch.get_port(1).connected_client.display_name == "NAS"
    assert switch.get_port(2).connected_device_type == "uap"
    assert switch.get_port(3).connected_client is None


def test_last_connection_data():
    """Test offline device data from the port's last connection."""
    port = make_port(1, last_connection={"mac": "dd:01", "last_seen": 1700000000})
    switch = extract_switches([make_device("aa:a0", "Switch", [port])])[0]

    assert switch.ports[0].has_offline_device_data is True
    assert switch.ports[0].last_connection_seen == 1700000000


def test_global_settings_override_device_values():
    """Test jumbo frames and flow control from global settings, honoring exclusions."""
    devices = [
        make_device("aa:b0", "Included", [make_port(1)], jumboframe_enabled=False),
        make_device("aa:b1", "Excluded", [make_port(1)], jumboframe_enabled=False, flowctrl_enabled=True),
    ]
    global_settings = GlobalSwitchSettings.from_settings_payload({"data": [
        {"key": "global_switch", "jumboframe_enabled": True, "flowctrl_enabled": False,
         "switch_exclusions": ["AA:B1"]},
    ]})

    switches = extract_switches(devices, global_settings=global_settings)

    included = next(s for s in switches if s.name == "Included")
    excluded = next(s for s in switches if s.name == "Excluded")
    assert included.jumbo_frames_enabled is True
    assert included.flow_control_enabled is False
    assert excluded.jumbo_frames_enabled is False
    assert excluded.flow_control_enabled is True


def test_loosely_typed_fields_degrade_to_defaults():
    """Test that odd field types are coerced and non-dict records are ignored."""
    good = make_device("aa:c0", "Good", [make_port(1)])
    loose = make_device(
        "aa:c1", "Loose", [make_port("2", up="true", speed="n/a")],
        uplink={"uplink_remote_port": object()},
    )

    switches = extract_switches([loose, good, "not a dict"])

    assert sorted(s.name for s in switches) == ["Good", "Loose"]
    loose_switch = next(s for s in switches if s.name == "Loose")
    assert loose_switch.uplink_remote_port is None
    port = loose_switch.get_port(2)
    assert port.is_up is True
    assert port.speed == 0


def test_access_point_lookup():
    """Test the AP MAC to name map, including passthrough models."""
    devices = [
        make_device("AA:D0", "Hall AP", [make_port(1)], device_type="uap"),
        make_device("aa:d1", "Switch", [make_port(1)]),
    ]

    lookup = TopologyExtractor(devices).extract_access_point_lookup()
    assert lookup == {"aa:d0": "Hall AP"}


def test_device_type_helpers():
    """Test case-insensitive type classification and display names."""
    assert device_types.is_gateway("UDM") is True
    assert device_types.is_access_point("uap") is True
    assert device_types.is_cellular_modem("umbb") is True
    assert device_types.is_network_fabric("ubb") is True
    assert device_types.is_network_fabric(None) is False
    assert device_types.get_display_name("usw") == "Switch"
    assert device_types.get_display_name("xyz") == "xyz"
    assert device_types.get_display_name(None) == "Unknown"
