# ispdesk/utils/device_clients/mikrotik/fallback.py
"""
Synthetic RouterOS responses.

Served by the router adapter when no API driver is configured or the router
cannot be reached, so the dashboard keeps working during development or a
device outage. The data is fixed: one enabled and one disabled secret, and one
active session with traffic, which exercises both status branches downstream.
"""

import copy
from typing import Any, Dict, List, Optional

from ....core.constants import RouterOsCommand

_FALLBACK_DATA: Dict[str, List[Dict[str, str]]] = {
    RouterOsCommand.SYSTEM_RESOURCE_PRINT.value: [
        {
            "cpu-frequency": "600MHz",
            "cpu-count": "1",
            "cpu-load": "10",
            "free-memory": "1000000",
            "total-memory": "2000000",
            "free-hdd-space": "1000000",
            "total-hdd-space": "2000000",
            "uptime": "2d3h4m5s",
            "version": "6.47.9",
            "board-name": "synthetic",
        }
    ],
    RouterOsCommand.PPP_SECRET_PRINT.value: [
        {
            ".id": "*1",
            "name": "test-user-1",
            "password": "password123",
            "service": "pppoe",
            "profile": "default",
            "remote-address": "192.168.1.100",
            "disabled": "false",
        },
        {
            ".id": "*2",
            "name": "test-user-2",
            "password": "password456",
            "service": "pppoe",
            "profile": "default",
            "remote-address": "192.168.1.101",
            "disabled": "true",
        },
    ],
    RouterOsCommand.PPP_ACTIVE_PRINT.value: [
        {
            ".id": "*1",
            "name": "test-user-1",
            "service": "pppoe",
            "caller-id": "00:11:22:33:44:55",
            "address": "192.168.1.100",
            "uptime": "2h30m",
            "encoding": "MPPE128",
            "session-timeout": "0s",
            "idle-timeout": "0s",
            "rate-limit": "10M/10M",
            "bytes-in": "1048576",
            "bytes-out": "524288",
            "packets-in": "1024",
            "packets-out": "512",
        }
    ],
}


def fallback_records(
    command: str, parameters: Optional[Dict[str, Any]] = None
) -> List[Dict[str, str]]:
    """
    Returns the synthetic records for a command.

    Unknown commands yield an empty list (meaning "no data"), never an error.
    Parameters are accepted for signature parity with live calls and ignored.
    """
    return copy.deepcopy(_FALLBACK_DATA.get(getattr(command, "value", command), []))


def known_commands() -> List[str]:
    return list(_FALLBACK_DATA)
