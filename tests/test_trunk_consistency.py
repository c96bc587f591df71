"""
Tests for VLAN consistency across inter-switch links.
"""
from app.models.network import NetworkInfo
from app.schemas.findings import AuditSeverity, IssueTypes
from app.services.topology_extractor import extract_switches
from app.services.trunk_consistency import TrunkConsistencyAnalyzer, tagged_vlans
from conftest import (
    NET_DEFAULT,
    NET_GUEST,
    NET_IOT,
    NET_SECURITY,
    default_networks,
    make_device,
    make_port,
    make_trunk_port,
)


def _networks():
    return [NetworkInfo.from_config(n) for n in default_networks()]


def _link(core_port, edge_port):
    """Core switch port 5 connected to the edge switch's port 1."""
    core = make_device("aa:00:00:00:00:01", "Core", [make_port(1), core_port])
    edge = make_device(
        "aa:00:00:00:00:02", "Edge", [edge_port, make_port(2)],
        uplink={"uplink_mac": "AA:00:00:00:00:01", "uplink_remote_port": 5, "port_idx": 1},
    )
    networks = _networks()
    return TrunkConsistencyAnalyzer().analyze(extract_switches([core, edge], networks), networks)


def test_matching_trunks_produce_no_issues():
    """Test that identical VLAN sets on both ends are consistent."""
    issues = _link(make_trunk_port(5, excluded=[NET_GUEST]), make_trunk_port(1, excluded=[NET_GUEST]))
    assert issues == []


def test_missing_vlan_on_downstream_end():
    """Test that a VLAN only allowed upstream is reported by name."""
    issues = _link(make_trunk_port(5), make_trunk_port(1, excluded=[NET_GUEST]))

    assert len(issues) == 1
    issue = issues[0]
    assert issue.type == IssueTypes.TRUNK_VLAN_MISMATCH
    assert issue.severity == AuditSeverity.INVESTIGATE
    assert issue.device_name == "Edge"
    assert issue.port == "1"
    assert issue.metadata["missing_on_downstream"] == ["Guest"]
    assert issue.metadata["missing_on_upstream"] == []
    assert issue.metadata["upstream_device"] == "Core"
    assert issue.metadata["upstream_port"] == 5


def test_forward_all_compared_with_custom():
    """Test that forward=all carries every VLAN network."""
    issues = _link(make_port(5, forward="all"), make_trunk_port(1, excluded=[NET_IOT, NET_SECURITY]))

    assert len(issues) == 1
    assert issues[0].metadata["missing_on_downstream"] == ["IoT", "Security"]


def test_native_vlan_mismatch():
    """Test that differing explicit native networks are reported."""
    issues = _link(make_trunk_port(5, native=NET_DEFAULT), make_trunk_port(1, native=NET_IOT))

    native_issues = [i for i in issues if i.type == IssueTypes.TRUNK_NATIVE_VLAN_MISMATCH]
    assert len(native_issues) == 1
    assert native_issues[0].severity == AuditSeverity.RECOMMENDED
    assert native_issues[0].metadata["upstream_native"] == "Default"
    assert native_issues[0].metadata["downstream_native"] == "IoT"


def test_unset_native_is_not_compared():
    """Test that a missing native network on one end is not a mismatch."""
    issues = _link(make_trunk_port(5), make_trunk_port(1, native=None))
    assert not [i for i in issues if i.type == IssueTypes.TRUNK_NATIVE_VLAN_MISMATCH]


def test_single_switch_has_nothing_to_compare():
    """Test that fewer than two switches short-circuit."""
    networks = _networks()
    switches = extract_switches([make_device("aa:01", "Solo", [make_trunk_port(1)])], networks)
    assert TrunkConsistencyAnalyzer().analyze(switches, networks) == []


def test_unknown_upstream_is_skipped():
    """Test that an uplink to a device outside the snapshot is ignored."""
    networks = _networks()
    devices = [
        make_device("aa:01", "A", [make_trunk_port(1)]),
        make_device("aa:02", "B", [make_trunk_port(1, excluded=[NET_GUEST])],
                    uplink={"uplink_mac": "ff:ff", "uplink_remote_port": 1, "port_idx": 1}),
    ]
    assert TrunkConsistencyAnalyzer().analyze(extract_switches(devices, networks), networks) == []


def test_tagged_vlans_by_forward_mode():
    """Test the tagged VLAN set for each forwarding mode."""
    switches = extract_switches([make_device("aa:01", "S", [
        make_port(1, forward="all"),
        make_trunk_port(2, excluded=[NET_GUEST]),
        make_port(3, forward="native"),
        make_port(4, forward="disabled"),
    ])])
    vlan_ids = [NET_DEFAULT, NET_IOT, NET_SECURITY, NET_GUEST]
    switch = switches[0]

    assert tagged_vlans(switch.get_port(1), vlan_ids) == {NET_IOT, NET_SECURITY, NET_GUEST}
    assert tagged_vlans(switch.get_port(2), vlan_ids) == {NET_IOT, NET_SECURITY}
    assert tagged_vlans(switch.get_port(3), vlan_ids) == frozenset()
    assert tagged_vlans(switch.get_port(4), vlan_ids) == frozenset()
