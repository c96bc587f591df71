"""
Tests for the snapshot audit, ports and firewall endpoints.
"""
from unittest.mock import patch

from fastapi import status
from fastapi.testclient import TestClient

from app.main import app
from conftest import (
    NET_GUEST,
    NET_IOT,
    make_device,
    make_firewall_rule,
    make_port,
    make_snapshot,
    make_trunk_port,
)


def _audit_snapshot():
    ports = [make_port(1, up=True, forward="all"), make_port(2), make_port(3, forward="disabled")]
    return make_snapshot(
        devices=[make_device("aa:bb:cc:00:00:01", "Core Switch", ports)],
        clients=[{"mac": "cc:01", "name": "Desktop", "sw_mac": "aa:bb:cc:00:00:01", "sw_port": 1}],
        firewall_rules=[make_firewall_rule("fw1", "Allow all", 2000)],
    )


def _linked_switches():
    core = make_device("aa:00:00:00:00:01", "Core", [make_trunk_port(5)])
    edge = make_device(
        "aa:00:00:00:00:02", "Edge", [make_trunk_port(1, excluded=[NET_GUEST])],
        uplink={"uplink_mac": "aa:00:00:00:00:01", "uplink_remote_port": 5, "port_idx": 1},
    )
    return [core, edge]


def test_audit_empty_snapshot(client):
    """Test that an empty body audits cleanly."""
    response = client.post("/api/v1/audit", json={})

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["risk_score"] == 0
    assert data["total_issues"] == 0
    assert data["issues"] == []
    assert data["statistics"]["total_ports"] == 0


def test_audit_full_snapshot(client):
    """Test the full audit response shape."""
    response = client.post("/api/v1/audit", json=_audit_snapshot())

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["switch_count"] == 1
    assert data["total_issues"] == 3
    assert data["risk_score"] == 15 + 8 + 2
    assert data["breakdown"]["critical"] == 2
    assert data["breakdown"]["recommended"] == 1
    assert [i["type"] for i in data["issues"]] == ["FW_ANY_ANY", "ACCESS_PORT_VLAN", "UNUSED_PORT"]
    assert data["issues"][0]["severity"] == "critical"
    assert data["statistics"]["disabled_ports"] == 1
    assert data["hardening_measures"] == ["1 unused port(s) disabled"]
    assert "Risk score: 25/100" in data["summary"]


def test_audit_rejects_malformed_body(client):
    """Test that structurally invalid sections fail validation."""
    response = client.post("/api/v1/audit", json={"devices": "not-a-list"})

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_audit_too_many_devices_returns_400(client):
    """Test that the snapshot size guard maps to a bad request."""
    devices = [make_device(f"aa:0{i}", f"S{i}", [make_port(1)]) for i in range(3)]

    with patch("app.core.config.settings.MAX_SNAPSHOT_DEVICES", 2):
        response = client.post("/api/v1/audit", json=make_snapshot(devices=devices))

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "at most 2" in response.json()["detail"]


def test_unhandled_error_returns_trace_id(client_debug):
    """Test the global exception handler in debug mode."""
    with patch("app.services.audit_service.AuditService.run_audit", side_effect=RuntimeError("boom")):
        response = client_debug.post("/api/v1/audit", json={})

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    data = response.json()
    assert data["error"] == "RuntimeError"
    assert data["detail"] == "boom"
    assert data["trace_id"]
    assert response.headers["X-Trace-ID"] == data["trace_id"]


def test_unhandled_error_hides_detail_without_debug():
    """Test that error details are hidden when DEBUG is off."""
    with patch("app.core.config.settings.DEBUG", False):
        client = TestClient(app, raise_server_exceptions=False)
        with patch("app.services.audit_service.AuditService.run_audit", side_effect=RuntimeError("secret")):
            response = client.post("/api/v1/audit", json={})

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    data = response.json()
    assert data["detail"] == "Internal Server Error"
    assert "secret" not in data["message"]
    assert data["trace_id"]


def test_topology_endpoint(client):
    """Test switch extraction with resolved ports and LAG speed."""
    ports = [
        make_port(1, up=True, speed=10000, aggregated_by=False, lag_idx=1),
        make_port(2, up=True, speed=10000, aggregated_by=1, lag_idx=1),
        make_port(3, portconf_id="p-off"),
    ]
    snapshot = make_snapshot(
        devices=[
            make_device("aa:01", "Core", ports),
            make_device("aa:02", "Gateway", [make_port(1, network_name="wan")], device_type="udm"),
        ],
        port_profiles=[{"_id": "p-off", "name": "Disabled", "forward": "disabled"}],
        settings={"data": [{"key": "global_switch", "jumboframe_enabled": True}]},
    )

    response = client.post("/api/v1/ports/topology", json=snapshot)

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["switch_count"] == 2
    assert data["port_count"] == 4
    gateway, core = data["switches"]
    assert gateway["role"] == "gateway"
    assert gateway["device_type_name"] == "Gateway"
    assert gateway["ports"][0]["is_wan"] is True
    assert core["role"] == "switch"
    assert core["device_type_name"] == "Switch"
    assert core["jumbo_frames_enabled"] is True
    assert core["ports"][0]["aggregate_speed"] == 20000
    assert core["ports"][1]["is_lag_child"] is True
    assert core["ports"][2]["forward_mode"] == "disabled"
    assert core["ports"][2]["profile_name"] == "Disabled"


def test_profile_suggestions_endpoint(client):
    """Test CreateNew for identical trunk ports."""
    ports = [make_trunk_port(i, excluded=[NET_GUEST, NET_IOT]) for i in (1, 2, 3)]
    snapshot = make_snapshot(devices=[make_device("aa:01", "Core", ports)])

    response = client.post("/api/v1/ports/profile-suggestions", json=snapshot)

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert len(data) == 1
    assert data[0]["type"] == "create_new"
    assert data[0]["suggested_profile_name"] == "Trunk - Default, Security"
    assert len(data[0]["affected_ports"]) == 3


def test_trunk_consistency_endpoint(client):
    """Test VLAN mismatch reporting across an uplink."""
    response = client.post("/api/v1/ports/trunk-consistency", json=make_snapshot(devices=_linked_switches()))

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert len(data) == 1
    assert data[0]["type"] == "TRUNK_VLAN_MISMATCH"
    assert data[0]["metadata"]["missing_on_downstream"] == ["Guest"]


def test_firewall_overlaps_endpoint(client):
    """Test overlap and any-any findings."""
    rules = [
        make_firewall_rule("fw1", "Allow all", 2000),
        make_firewall_rule("fw2", "Drop web", 2001, action="drop", protocol="tcp",
                           destination={"matching_target": "ANY", "port": "443"}),
        make_firewall_rule("fw3", "Guest", 1, ruleset="GUEST_IN", action="drop"),
    ]

    response = client.post("/api/v1/firewall/overlaps", json=make_snapshot(firewall_rules=rules))

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["rule_count"] == 3
    assert len(data["overlaps"]) == 1
    assert data["overlaps"][0]["type"] == "FW_RULE_CONFLICT"
    assert data["overlaps"][0]["metadata"]["rule_id"] == "fw1"
    assert [i["metadata"]["rule_id"] for i in data["any_any"]] == ["fw1"]
