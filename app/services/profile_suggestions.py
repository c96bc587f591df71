"""
Service for suggesting port profile consolidation.

Trunk ports are grouped by VLAN signature (native network plus allowed VLAN
set). Each group is matched against existing trunk profiles with the same
signature and, after PoE and speed compatibility filtering, produces
ExtendUsage, ApplyExisting or CreateNew suggestions.
"""
import logging
from collections import Counter
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from app.core.config import settings
from app.models.device import PortInfo, SwitchInfo
from app.models.network import NetworkInfo
from app.models.port_profile import PortProfile
from app.schemas.findings import PortProfileSuggestion, PortReference, SuggestionSeverity, SuggestionType
from app.services.port_resolver import FORWARD_CUSTOM, allowed_vlan_ids

logger = logging.getLogger(__name__)

VlanSignature = Tuple[Optional[str], FrozenSet[str]]

MAX_LISTED_PORTS = 5
MAX_NAMED_VLANS = 3
MAX_LISTED_VLANS = 5


def is_trunk_port(port: PortInfo) -> bool:
    return port.forward_mode == FORWARD_CUSTOM and (port.tagged_vlan_mgmt or "").lower() == "custom"


def format_speed(speed: int) -> str:
    """Render a link speed in Mbps as "1G", "2.5G" or "100M"."""
    if speed >= 1000:
        value = speed / 1000
        return f"{value:g}G"
    return f"{speed}M"


class _Candidate:
    """A trunk port plus the owning switch, as seen by the grouper."""

    __slots__ = ("port", "switch")

    def __init__(self, port: PortInfo, switch: SwitchInfo):
        self.port = port
        self.switch = switch

    @property
    def has_profile(self) -> bool:
        return bool(self.port.profile_id)

    @property
    def poe_active(self) -> bool:
        return self.port.poe_enabled and self.port.poe_capable

    def uses(self, profile: PortProfile) -> bool:
        return bool(self.port.profile_id) and self.port.profile_id.lower() == profile.id.lower()

    def reference(self) -> PortReference:
        return PortReference(
            device_mac=self.switch.mac,
            device_name=self.switch.name,
            port_index=self.port.port_index,
            port_name=self.port.name or None,
            current_profile_id=self.port.profile_id,
            current_profile_name=self.port.profile_name,
        )


class PortProfileSuggestionAnalyzer:
    """Finds trunk ports that could share a port profile."""

    def __init__(
        self,
        min_ports: Optional[int] = None,
        create_recommend_threshold: Optional[int] = None,
        extend_recommend_threshold: Optional[int] = None,
    ):
        self.min_ports = min_ports if min_ports is not None else settings.PROFILE_SUGGESTION_MIN_PORTS
        self.create_recommend_threshold = (
            create_recommend_threshold
            if create_recommend_threshold is not None
            else settings.CREATE_NEW_RECOMMEND_THRESHOLD
        )
        self.extend_recommend_threshold = (
            extend_recommend_threshold
            if extend_recommend_threshold is not None
            else settings.EXTEND_RECOMMEND_THRESHOLD
        )

    def analyze(
        self,
        switches: Iterable[SwitchInfo],
        profiles: Iterable[PortProfile],
        networks: Iterable[NetworkInfo],
    ) -> List[PortProfileSuggestion]:
        """
        Analyze trunk ports for port profile consolidation.

        Args:
            switches: Extracted switches with resolved ports
            profiles: Existing port profiles
            networks: All networks; WAN and VPN networks are ignored

        Returns:
            List of PortProfileSuggestion
        """
        network_list = list(networks or [])
        names = {n.id: n.name for n in network_list}
        vlan_ids = [n.id for n in network_list if n.is_vlan_network]

        groups = self._group_trunk_ports(switches or [], vlan_ids)
        if not groups:
            return []

        trunk_profiles = [p for p in (profiles or []) if p.is_trunk_profile]
        profile_signatures = [(p, self._profile_signature(p, vlan_ids)) for p in trunk_profiles]

        suggestions: List[PortProfileSuggestion] = []
        for signature, members in groups.items():
            if len(members) < self.min_ports:
                continue
            matching = [p for p, sig in profile_signatures if sig == signature]
            suggestions.extend(self._analyze_group(signature, members, matching, names))

        logger.info(f"Port profile analysis: {len(groups)} trunk group(s), {len(suggestions)} suggestion(s)")
        return suggestions

    def _group_trunk_ports(
        self, switches: Iterable[SwitchInfo], vlan_ids: Sequence[str]
    ) -> Dict[VlanSignature, List[_Candidate]]:
        groups: Dict[VlanSignature, List[_Candidate]] = {}
        for switch in switches:
            if switch.has_unmanageable_ports:
                continue
            for port in switch.ports:
                if port.is_lag_child or not is_trunk_port(port):
                    continue
                signature = (port.native_network_id, allowed_vlan_ids(port.excluded_network_ids, vlan_ids))
                groups.setdefault(signature, []).append(_Candidate(port, switch))
        return groups

    @staticmethod
    def _profile_signature(profile: PortProfile, vlan_ids: Sequence[str]) -> VlanSignature:
        return profile.native_network_id, allowed_vlan_ids(profile.excluded_network_ids, vlan_ids)

    def _analyze_group(
        self,
        signature: VlanSignature,
        members: List[_Candidate],
        matching: List[PortProfile],
        names: Dict[str, str],
    ) -> List[PortProfileSuggestion]:
        without_profile = [c for c in members if not c.has_profile]

        if not matching:
            if without_profile:
                return [self._create_new(signature, members, len(members) - len(without_profile), names)]
            return []

        if not without_profile:
            return []

        primary = [p for p in matching if any(c.uses(p) for c in members)]
        if not primary:
            primary = [matching[0]]

        suggestions: List[PortProfileSuggestion] = []
        handled = set()
        for profile in primary:
            users = [c for c in members if c.uses(profile)]
            compatible = self._compatible_ports(profile, without_profile, users)
            if users and compatible:
                suggestions.append(
                    self._existing(SuggestionType.EXTEND_USAGE, profile, signature, users, compatible, names)
                )
            elif not users and len(compatible) >= self.min_ports:
                suggestions.append(
                    self._existing(SuggestionType.APPLY_EXISTING, profile, signature, [], compatible, names)
                )
            else:
                continue
            handled.update(id(c) for c in compatible)

        excluded = [c for c in without_profile if id(c) not in handled]
        if len(excluded) < self.min_ports:
            return suggestions

        # Before proposing a new profile, see if another existing one already fits
        for profile in matching:
            if profile in primary:
                continue
            compatible = self._compatible_ports(profile, excluded, [])
            if len(compatible) >= self.min_ports:
                logger.debug(f"Excluded ports fit alternate profile '{profile.name}'")
                suggestions.append(
                    self._existing(SuggestionType.APPLY_EXISTING, profile, signature, [], compatible, names)
                )
                matched = {id(c) for c in compatible}
                excluded = [c for c in excluded if id(c) not in matched]
                if len(excluded) < self.min_ports:
                    return suggestions

        if self._can_share_profile(excluded):
            suggestions.append(self._create_new(signature, excluded, 0, names))
        else:
            logger.debug(f"{len(excluded)} excluded port(s) have mixed speeds, no fallback profile suggested")
        return suggestions

    @staticmethod
    def _compatible_ports(
        profile: PortProfile, candidates: List[_Candidate], users: List[_Candidate]
    ) -> List[_Candidate]:
        compatible = list(candidates)

        if profile.forces_poe_off:
            compatible = [c for c in compatible if not c.poe_active]
        elif any(u.poe_active for u in users):
            # Users depend on PoE, so a capable port with PoE turned off is a different kind of port
            compatible = [c for c in compatible if not (c.port.poe_capable and not c.port.poe_enabled)]

        if profile.forces_speed:
            reference = users or compatible
            if not reference:
                return []
            target_speed = Counter(c.port.speed for c in reference).most_common(1)[0][0]
            compatible = [c for c in compatible if c.port.speed == target_speed]
        elif profile.autoneg is True:
            compatible = [c for c in compatible if c.port.autoneg]

        return compatible

    @staticmethod
    def _can_share_profile(ports: List[_Candidate]) -> bool:
        if all(c.port.autoneg for c in ports):
            return True
        return len({c.port.speed for c in ports}) == 1

    def _existing(
        self,
        suggestion_type: SuggestionType,
        profile: PortProfile,
        signature: VlanSignature,
        users: List[_Candidate],
        compatible: List[_Candidate],
        names: Dict[str, str],
    ) -> PortProfileSuggestion:
        affected = len(users) + len(compatible)
        severity = (
            SuggestionSeverity.RECOMMENDATION
            if affected >= self.extend_recommend_threshold
            else SuggestionSeverity.INFO
        )
        native_id, _ = signature
        suggestion = PortProfileSuggestion(
            type=suggestion_type,
            severity=severity,
            matching_profile_id=profile.id,
            matching_profile_name=profile.name,
            native_network_id=native_id,
            native_network_name=names.get(native_id) if native_id else None,
            allowed_vlan_names=self._vlan_names(signature, names),
            affected_ports=[c.reference() for c in users + compatible],
            ports_without_profile=len(compatible),
            ports_already_using_profile=len(users),
            recommendation=self._existing_recommendation(profile.name, compatible, bool(users)),
        )
        logger.debug(f"Suggestion {suggestion_type.value}: '{profile.name}' for {affected} port(s)")
        return suggestion

    def _create_new(
        self, signature: VlanSignature, ports: List[_Candidate], already_using: int, names: Dict[str, str]
    ) -> PortProfileSuggestion:
        native_id, _ = signature
        vlan_names = self._vlan_names(signature, names)
        severity = (
            SuggestionSeverity.RECOMMENDATION
            if len(ports) >= self.create_recommend_threshold
            else SuggestionSeverity.INFO
        )
        vlan_info = ", ".join(vlan_names) if len(vlan_names) <= MAX_LISTED_VLANS else f"{len(vlan_names)} VLANs"
        suggestion = PortProfileSuggestion(
            type=SuggestionType.CREATE_NEW,
            severity=severity,
            suggested_profile_name=self._profile_name(names.get(native_id) if native_id else None, vlan_names, ports),
            native_network_id=native_id,
            native_network_name=names.get(native_id) if native_id else None,
            allowed_vlan_names=vlan_names,
            affected_ports=[c.reference() for c in ports],
            ports_without_profile=len(ports) - already_using,
            ports_already_using_profile=already_using,
            recommendation=(
                f"{len(ports)} trunk ports share identical VLAN configuration ({vlan_info}). "
                "Create a port profile to ensure consistent configuration across all these ports "
                "and simplify future maintenance."
            ),
        )
        logger.debug(f"Suggestion create_new: '{suggestion.suggested_profile_name}' for {len(ports)} port(s)")
        return suggestion

    @staticmethod
    def _profile_name(native_name: Optional[str], vlan_names: List[str], ports: List[_Candidate]) -> str:
        if not vlan_names:
            name = "Trunk - All VLANs"
        elif len(vlan_names) <= MAX_NAMED_VLANS:
            name = f"Trunk - {', '.join(vlan_names)}"
        elif native_name:
            name = f"Trunk - {native_name} Native"
        else:
            name = f"Trunk - {len(vlan_names)} VLANs"

        if ports and all(c.poe_active for c in ports):
            name += " (PoE)"
        speeds = {c.port.speed for c in ports}
        if ports and not any(c.port.autoneg for c in ports) and len(speeds) == 1 and speeds != {0}:
            name += f" ({format_speed(speeds.pop())})"
        return name

    @staticmethod
    def _existing_recommendation(profile_name: str, ports: List[_Candidate], has_existing_usage: bool) -> str:
        port_list = ", ".join(f"{c.switch.name} port {c.port.port_index}" for c in ports[:MAX_LISTED_PORTS])
        if len(ports) > MAX_LISTED_PORTS:
            port_list += f" +{len(ports) - MAX_LISTED_PORTS} more"
        if has_existing_usage:
            return (
                f"Some ports with this configuration already use the \"{profile_name}\" profile. "
                f"Apply this profile to: {port_list} for consistent configuration."
            )
        return (
            f"Apply the existing \"{profile_name}\" profile to: {port_list} "
            "for consistent configuration and easier maintenance."
        )

    @staticmethod
    def _vlan_names(signature: VlanSignature, names: Dict[str, str]) -> List[str]:
        _, allowed = signature
        return sorted(name for name in (names.get(i) for i in allowed) if name)
