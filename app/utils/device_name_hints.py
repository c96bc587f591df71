"""
Port and client name keyword hints used to guess what is plugged into a port.

Hints match whole words, so "Front Cam" or "G4Cam" count but "Camden Office"
does not. Digits are treated as word separators.
"""
import re
from typing import Iterable, Optional

CAMERA_HINTS = ("cam", "camera", "webcam", "ptz", "nvr", "protect")


def _hint_pattern(hints: Iterable[str]) -> re.Pattern:
    alternatives = "|".join(re.escape(hint) for hint in hints)
    return re.compile(rf"(?<![a-z])(?:{alternatives})s?(?![a-z])")


_CAMERA_PATTERN = _hint_pattern(CAMERA_HINTS)


def _matches(name: Optional[str], pattern: re.Pattern) -> bool:
    if not name:
        return False
    return pattern.search(name.lower()) is not None


def is_camera_device_name(name: Optional[str]) -> bool:
    return _matches(name, _CAMERA_PATTERN)
