"""
Global switch settings layer.
"""
import logging
from typing import Any, Dict, FrozenSet, Optional

from pydantic import BaseModel, ConfigDict

from app.utils import raw_fields

logger = logging.getLogger(__name__)

GLOBAL_SWITCH_KEY = "global_switch"


class GlobalSwitchSettings(BaseModel):
    """
    Site-wide switch settings and the devices exempt from them.

    Built once per audit pass and handed to whatever needs it; excluded
    devices keep their own per-device values.
    """
    model_config = ConfigDict(frozen=True)

    jumbo_frames_enabled: bool = False
    flow_control_enabled: bool = False
    excluded_macs: FrozenSet[str] = frozenset()

    def is_excluded(self, mac: Optional[str]) -> bool:
        if not mac:
            return False
        return mac.strip().lower() in self.excluded_macs

    def effective_jumbo_frames(self, device: Dict[str, Any]) -> bool:
        """Jumbo frame state for a raw device record."""
        if self.is_excluded(raw_fields.get_str(device, "mac")):
            return raw_fields.get_bool(device, "jumboframe_enabled")
        return self.jumbo_frames_enabled

    def effective_flow_control(self, device: Dict[str, Any]) -> bool:
        """Flow control state for a raw device record."""
        if self.is_excluded(raw_fields.get_str(device, "mac")):
            return raw_fields.get_bool(device, "flowctrl_enabled")
        return self.flow_control_enabled

    @classmethod
    def from_settings_payload(cls, payload: Optional[Any]) -> Optional["GlobalSwitchSettings"]:
        """
        Parse the controller settings payload.

        Accepts either {"data": [...]} or the bare list of setting sections.

        Returns:
            Settings, or None when no global_switch section is present
        """
        if not payload:
            return None
        sections = payload.get("data") if isinstance(payload, dict) else payload
        if not isinstance(sections, list):
            return None

        for section in sections:
            if not isinstance(section, dict) or section.get("key") != GLOBAL_SWITCH_KEY:
                continue
            exclusions = raw_fields.get_str_list(section, "switch_exclusions") or ()
            macs = frozenset(
                mac.strip().lower() for mac in exclusions if mac.strip()
            )
            settings = cls(
                jumbo_frames_enabled=raw_fields.get_bool(section, "jumboframe_enabled"),
                flow_control_enabled=raw_fields.get_bool(section, "flowctrl_enabled"),
                excluded_macs=macs,
            )
            logger.debug(
                "Global switch settings: jumbo=%s flowctrl=%s exclusions=%d",
                settings.jumbo_frames_enabled,
                settings.flow_control_enabled,
                len(macs),
            )
            return settings
        return None
