# ispdesk/utils/device_clients/adapters/base.py
"""
Device-side value types and errors shared by the router adapter,
the transports and the services that consume them.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from ....core.constants import DataSource


class RouterConnectionError(Exception):
    """The router could not be reached or refused the login."""


class RouterDriverUnavailableError(RouterConnectionError):
    """No RouterOS API driver is configured; only synthetic data exists."""


class RouterCommandError(Exception):
    """The router answered but rejected the command."""


class Transport(Protocol):
    """A live, connected request/response channel to one router."""

    def send(self, command: str, parameters: Dict[str, str]) -> List[Dict[str, str]]: ...

    def close(self) -> None: ...


@dataclass
class Subscriber:
    """
    A PPPoE secret as stored on the router.
    `id` is the RouterOS internal id (".id", e.g. "*1A").
    """
    name: str
    password: str
    service: str = "pppoe"
    profile: str = "default"
    remote_address: str = ""
    disabled: bool = False
    comment: Optional[str] = None
    id: Optional[str] = None


@dataclass
class ActiveSession:
    """A live PPPoE connection reported by /ppp/active."""
    id: str
    name: str
    service: str = ""
    caller_id: str = ""
    address: str = ""
    uptime: str = ""
    encoding: str = ""
    session_timeout: str = ""
    idle_timeout: str = ""
    rate_limit: str = ""
    bytes_in: int = 0
    bytes_out: int = 0
    packets_in: int = 0
    packets_out: int = 0


@dataclass
class CommandResult:
    records: List[Dict[str, Any]]
    source: DataSource

    @property
    def is_live(self) -> bool:
        return self.source == DataSource.LIVE


@dataclass
class ConnectionStatus:
    connected: bool
    using_real_api: bool
    message: str
    extra: Dict[str, Any] = field(default_factory=dict)
