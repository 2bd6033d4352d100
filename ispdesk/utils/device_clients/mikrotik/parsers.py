# ispdesk/utils/device_clients/mikrotik/parsers.py
"""
Parsing utilities for RouterOS API values.

The API returns every attribute as a string; these helpers convert them into
Python-native types and never raise on malformed input.
"""

import re
from typing import Any, Optional

_UPTIME_UNITS = {
    "w": 7 * 24 * 3600,
    "d": 24 * 3600,
    "h": 3600,
    "m": 60,
    "s": 1,
}
_UPTIME_RE = re.compile(r"^(?:\d+[wdhms])+$")
_UPTIME_PART_RE = re.compile(r"(\d+)([wdhms])")


def parse_uptime(uptime_str: Optional[str]) -> int:
    """
    Parse RouterOS uptime string to seconds.

    Examples:
        "2h30m" -> 9000
        "1d5h" -> 104400
        "1w2d3h4m5s" -> 788645
        "" or "garbage" -> 0

    Args:
        uptime_str: RouterOS duration string ``[Nw][Nd][Nh][Nm][Ns]``.

    Returns:
        Total seconds as integer.
    """
    if not uptime_str:
        return 0

    value = str(uptime_str).strip()
    if not _UPTIME_RE.match(value):
        return 0

    return sum(int(amount) * _UPTIME_UNITS[unit] for amount, unit in _UPTIME_PART_RE.findall(value))


def parse_uptime_ms(uptime_str: Optional[str]) -> int:
    """Same as parse_uptime, in milliseconds."""
    return parse_uptime(uptime_str) * 1000


def parse_int(value: Optional[Any], default: int = 0) -> int:
    """
    Safely parse an integer counter.

    Args:
        value: String value to parse.
        default: Returned when the value is absent or malformed.
    """
    if value is None or value == "":
        return default
    try:
        return int(str(value).strip())
    except (ValueError, TypeError):
        return default


def parse_bool(value: Optional[Any]) -> bool:
    """RouterOS booleans arrive as "true"/"false" or "yes"/"no"."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in ("true", "yes")


def format_bool(value: bool) -> str:
    return "true" if value else "false"
