"""
Tolerant accessors for untyped controller records.

Controller JSON is loosely typed: booleans arrive as strings, numbers as
floats, lists as null. These helpers coerce a single field and fall back to a
default instead of raising.
"""
from typing import Any, Dict, Optional, Tuple


def get_bool(record: Dict[str, Any], key: str, default: bool = False) -> bool:
    value = record.get(key)
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "on")
    return default


def get_optional_bool(record: Dict[str, Any], key: str) -> Optional[bool]:
    """Like get_bool, but None when the key is absent or the value is unrecognizable."""
    value = record.get(key)
    if value is None or not isinstance(value, (bool, int, float, str)):
        return None
    if isinstance(value, str) and not value.strip():
        return None
    return get_bool(record, key)


def get_int(record: Dict[str, Any], key: str, default: Optional[int] = None) -> Optional[int]:
    value = record.get(key)
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def get_float(record: Dict[str, Any], key: str, default: float = 0.0) -> float:
    value = record.get(key)
    if value is None or isinstance(value, bool):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def get_str(record: Dict[str, Any], key: str, default: Optional[str] = None) -> Optional[str]:
    value = record.get(key)
    if value is None:
        return default
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return default


def get_str_list(record: Dict[str, Any], key: str) -> Optional[Tuple[str, ...]]:
    """Return the list as a tuple of strings, or None when the key is absent or not a list."""
    value = record.get(key)
    if not isinstance(value, list):
        return None
    return tuple(str(v) for v in value if v is not None)


def get_dict(record: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = record.get(key)
    return value if isinstance(value, dict) else {}
