# ispdesk/utils/device_clients/mikrotik/ppp.py
"""
Conversion between RouterOS /ppp records and the dashboard's value types.
"""

from typing import Any, Dict, Optional

from ..adapters.base import ActiveSession, Subscriber
from .parsers import format_bool, parse_bool, parse_int

# Python attribute -> RouterOS attribute
_SECRET_FIELDS = {
    "name": "name",
    "password": "password",
    "service": "service",
    "profile": "profile",
    "remote_address": "remote-address",
    "disabled": "disabled",
    "comment": "comment",
}


def _record_id(record: Dict[str, Any]) -> Optional[str]:
    return record.get(".id") or record.get("id")


def secret_from_record(record: Dict[str, Any]) -> Subscriber:
    return Subscriber(
        id=_record_id(record),
        name=record.get("name", ""),
        password=record.get("password", ""),
        service=record.get("service", ""),
        profile=record.get("profile", ""),
        remote_address=record.get("remote-address", ""),
        disabled=parse_bool(record.get("disabled")),
        comment=record.get("comment"),
    )


def session_from_record(record: Dict[str, Any]) -> ActiveSession:
    # Partial telemetry is acceptable: missing counters default to 0
    return ActiveSession(
        id=_record_id(record) or "",
        name=record.get("name", ""),
        service=record.get("service", ""),
        caller_id=record.get("caller-id", ""),
        address=record.get("address", ""),
        uptime=record.get("uptime", ""),
        encoding=record.get("encoding", ""),
        session_timeout=record.get("session-timeout", ""),
        idle_timeout=record.get("idle-timeout", ""),
        rate_limit=record.get("rate-limit", ""),
        bytes_in=parse_int(record.get("bytes-in")),
        bytes_out=parse_int(record.get("bytes-out")),
        packets_in=parse_int(record.get("packets-in")),
        packets_out=parse_int(record.get("packets-out")),
    )


def secret_add_parameters(subscriber: Subscriber) -> Dict[str, str]:
    return {
        "name": subscriber.name,
        "password": subscriber.password,
        "service": subscriber.service,
        "profile": subscriber.profile,
        "remote-address": subscriber.remote_address,
        "disabled": format_bool(subscriber.disabled),
        "comment": subscriber.comment or "",
    }


def secret_set_parameters(secret_id: str, **updates: Any) -> Dict[str, str]:
    """
    Parameters for /ppp/secret/set. Only the fields given (and not None) are sent.

    Raises:
        ValueError: if an unknown field is given.
    """
    params = {".id": secret_id}
    for attr, value in updates.items():
        if attr not in _SECRET_FIELDS:
            raise ValueError(f"Unknown PPPoE secret field: {attr}")
        if value is None:
            continue
        if isinstance(value, bool):
            value = format_bool(value)
        params[_SECRET_FIELDS[attr]] = str(value)
    return params
