"""Schemas for topology responses."""
from typing import List, Optional

from pydantic import BaseModel

from app.models.device import SwitchInfo
from app.utils.device_types import get_display_name


class PortSummary(BaseModel):
    """Flattened view of a resolved port."""
    port_index: int
    name: str
    is_up: bool
    speed: int
    forward_mode: str
    native_network_id: Optional[str] = None
    excluded_network_ids: Optional[List[str]] = None
    profile_id: Optional[str] = None
    profile_name: Optional[str] = None
    poe_enabled: bool
    is_uplink: bool
    is_wan: bool
    is_lag_child: bool
    aggregate_speed: int
    port_security_enabled: bool
    isolation_enabled: bool
    dot1x_protected: bool
    connected_client: Optional[str] = None
    connected_device_type: Optional[str] = None


class SwitchSummary(BaseModel):
    """Flattened view of an extracted switch."""
    mac: str
    name: str
    model: Optional[str] = None
    device_type: Optional[str] = None
    device_type_name: str
    role: str
    is_gateway: bool
    is_access_point: bool
    has_unmanageable_ports: bool
    jumbo_frames_enabled: bool
    flow_control_enabled: bool
    ports: List[PortSummary]


class TopologyResponse(BaseModel):
    """Response schema for topology extraction."""
    switch_count: int
    port_count: int
    switches: List[SwitchSummary]
    access_points: dict

    @classmethod
    def from_switches(cls, switches: List[SwitchInfo], access_points: dict, aggregate_speed) -> "TopologyResponse":
        """
        Build the response from extracted switches.

        Args:
            switches: Extracted switches
            access_points: AP MAC to name lookup
            aggregate_speed: Callable (switch, port_index) -> LAG aggregate speed
        """
        summaries = []
        for switch in switches:
            if switch.is_gateway:
                role = "gateway"
            elif switch.is_access_point:
                role = "access_point"
            else:
                role = "switch"
            ports = [
                PortSummary(
                    port_index=p.port_index,
                    name=p.name,
                    is_up=p.is_up,
                    speed=p.speed,
                    forward_mode=p.forward_mode,
                    native_network_id=p.native_network_id,
                    excluded_network_ids=list(p.excluded_network_ids) if p.excluded_network_ids is not None else None,
                    profile_id=p.profile_id,
                    profile_name=p.profile_name,
                    poe_enabled=p.poe_enabled,
                    is_uplink=p.is_uplink,
                    is_wan=p.is_wan,
                    is_lag_child=p.is_lag_child,
                    aggregate_speed=aggregate_speed(switch, p.port_index),
                    port_security_enabled=p.port_security_enabled,
                    isolation_enabled=p.isolation_enabled,
                    dot1x_protected=p.dot1x_protected,
                    connected_client=p.connected_client.display_name if p.connected_client else None,
                    connected_device_type=p.connected_device_type,
                )
                for p in switch.ports
            ]
            summaries.append(SwitchSummary(
                mac=switch.mac,
                name=switch.name,
                model=switch.model_name or switch.model,
                device_type=switch.device_type,
                device_type_name=get_display_name(switch.device_type),
                role=role,
                is_gateway=switch.is_gateway,
                is_access_point=switch.is_access_point,
                has_unmanageable_ports=switch.has_unmanageable_ports,
                jumbo_frames_enabled=switch.jumbo_frames_enabled,
                flow_control_enabled=switch.flow_control_enabled,
                ports=ports,
            ))
        return cls(
            switch_count=len(summaries),
            port_count=sum(len(s.ports) for s in summaries),
            switches=summaries,
            access_points=access_points,
        )
