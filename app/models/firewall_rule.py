"""
Firewall rule model.
"""
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from app.utils import raw_fields

ALLOW_ACTIONS = frozenset({"allow", "accept"})


def _str_tuple(value: Any) -> Tuple[str, ...]:
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(str(v) for v in value if v is not None and str(v).strip())


class FirewallRule(BaseModel):
    """A firewall policy flattened to the fields overlap detection needs."""
    model_config = ConfigDict(frozen=True)

    id: str = ""
    name: str = ""
    enabled: bool = True
    index: int = 0
    action: str = ""
    protocol: Optional[str] = None
    ruleset: Optional[str] = None
    predefined: bool = False

    source_matching_target: Optional[str] = None
    source_network_ids: Tuple[str, ...] = ()
    source_ips: Tuple[str, ...] = ()
    source_port: Optional[str] = None

    destination_matching_target: Optional[str] = None
    destination_network_ids: Tuple[str, ...] = ()
    destination_ips: Tuple[str, ...] = ()
    web_domains: Tuple[str, ...] = ()
    destination_port: Optional[str] = None

    icmp_typename: Optional[str] = None

    @property
    def is_allow_action(self) -> bool:
        return (self.action or "").strip().lower() in ALLOW_ACTIONS

    @classmethod
    def from_config(cls, raw: Dict[str, Any]) -> "FirewallRule":
        """
        Build from a controller firewall policy.

        Accepts the nested shape with "source"/"destination" objects. Missing
        objects leave both sides matching ANY. Fields of the wrong type read as
        unset.
        """
        source = raw_fields.get_dict(raw, "source")
        destination = raw_fields.get_dict(raw, "destination")

        ruleset = raw_fields.get_str(raw, "ruleset")
        source_zone = raw_fields.get_str(source, "zone_id")
        destination_zone = raw_fields.get_str(destination, "zone_id")
        if not ruleset and (source_zone or destination_zone):
            ruleset = f"{source_zone or '*'}->{destination_zone or '*'}"

        return cls(
            id=raw_fields.get_str(raw, "_id") or raw_fields.get_str(raw, "id") or "",
            name=raw_fields.get_str(raw, "name") or "",
            enabled=raw_fields.get_bool(raw, "enabled", default=True),
            index=raw_fields.get_int(raw, "index", default=0),
            action=raw_fields.get_str(raw, "action") or "",
            protocol=raw_fields.get_str(raw, "protocol"),
            ruleset=ruleset,
            predefined=raw_fields.get_bool(raw, "predefined"),
            source_matching_target=raw_fields.get_str(source, "matching_target"),
            source_network_ids=_str_tuple(source.get("network_ids")),
            source_ips=_str_tuple(source.get("ips")),
            source_port=raw_fields.get_str(source, "port"),
            destination_matching_target=raw_fields.get_str(destination, "matching_target"),
            destination_network_ids=_str_tuple(destination.get("network_ids")),
            destination_ips=_str_tuple(destination.get("ips")),
            web_domains=_str_tuple(destination.get("web_domains")),
            destination_port=raw_fields.get_str(destination, "port"),
            icmp_typename=raw_fields.get_str(raw, "icmp_typename"),
        )
