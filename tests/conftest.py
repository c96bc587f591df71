"""
Pytest configuration and fixtures.
"""
import pytest
from fastapi.testclient import TestClient
from unittest.mock import patch

from app.main import app


# Network ids used across the snapshot builders
NET_DEFAULT = "net-default"
NET_IOT = "net-iot"
NET_SECURITY = "net-security"
NET_GUEST = "net-guest"
NET_WAN = "net-wan"


@pytest.fixture(scope="function")
def client():
    """Create a test client with DEBUG disabled."""
    with patch("app.core.config.settings.DEBUG", False):
        yield TestClient(app)


@pytest.fixture(scope="function")
def client_debug():
    """
    Create a test client with DEBUG enabled.

    Server errors are returned as 500 responses instead of being re-raised,
    so the error body can be inspected.
    """
    with patch("app.core.config.settings.DEBUG", True):
        yield TestClient(app, raise_server_exceptions=False)


def make_network(network_id, name, vlan=1, purpose="corporate", **extra):
    """Raw networkconf record."""
    record = {"_id": network_id, "name": name, "vlan": vlan, "purpose": purpose}
    record.update(extra)
    return record


def default_networks():
    """Default LAN, three VLANs and a WAN."""
    return [
        make_network(NET_DEFAULT, "Default", vlan=1),
        make_network(NET_IOT, "IoT", vlan=20),
        make_network(NET_SECURITY, "Security", vlan=30),
        make_network(NET_GUEST, "Guest", vlan=40, purpose="guest"),
        make_network(NET_WAN, "Internet", vlan=0, purpose="wan"),
    ]


def make_port(port_idx, **extra):
    """Raw port_table entry; down, native and unnamed by default."""
    record = {
        "port_idx": port_idx,
        "name": f"Port {port_idx}",
        "up": False,
        "speed": 1000,
        "autoneg": True,
        "forward": "native",
        "native_networkconf_id": NET_DEFAULT,
    }
    record.update(extra)
    return record


def make_trunk_port(port_idx, excluded=None, native=NET_DEFAULT, **extra):
    """Raw port_table entry forwarding a custom tagged VLAN list."""
    record = make_port(
        port_idx,
        up=True,
        forward="customize",
        tagged_vlan_mgmt="custom",
        native_networkconf_id=native,
        excluded_networkconf_ids=list(excluded or []),
    )
    record.update(extra)
    return record


def make_device(mac, name, ports, device_type="usw", **extra):
    """Raw device record."""
    record = {
        "mac": mac,
        "name": name,
        "type": device_type,
        "model": "US24",
        "port_table": ports,
    }
    record.update(extra)
    return record


def make_profile(profile_id, name, **extra):
    """Raw portconf record."""
    record = {"_id": profile_id, "name": name}
    record.update(extra)
    return record


def make_trunk_profile(profile_id, name, excluded=None, native=NET_DEFAULT, **extra):
    record = make_profile(
        profile_id,
        name,
        forward="customize",
        tagged_vlan_mgmt="custom",
        native_networkconf_id=native,
        excluded_networkconf_ids=list(excluded or []),
    )
    record.update(extra)
    return record


def make_firewall_rule(rule_id, name, index, action="allow", protocol="all", ruleset="LAN_IN",
                       source=None, destination=None, **extra):
    """Raw firewall policy in the nested source/destination shape."""
    record = {
        "_id": rule_id,
        "name": name,
        "enabled": True,
        "index": index,
        "action": action,
        "protocol": protocol,
        "ruleset": ruleset,
        "source": source if source is not None else {"matching_target": "ANY"},
        "destination": destination if destination is not None else {"matching_target": "ANY"},
    }
    record.update(extra)
    return record


def make_snapshot(devices=None, networks=None, port_profiles=None, firewall_rules=None,
                  clients=None, settings=None):
    """Request body for the snapshot endpoints."""
    body = {
        "devices": devices or [],
        "networks": networks if networks is not None else default_networks(),
        "port_profiles": port_profiles or [],
        "firewall_rules": firewall_rules or [],
        "clients": clients or [],
    }
    if settings is not None:
        body["settings"] = settings
    return body
