# ispdesk/utils/device_clients/adapters/mikrotik_router.py
import copy
import logging
from typing import Any, Callable, Dict, List, Optional

from ....config import get_settings
from ....core.constants import DataSource, RouterOsCommand
from ....models.router import RouterDevice
from ....utils.security import decrypt_data
from ...cache import ResponseCache, make_key
from ..mikrotik import ppp
from ..mikrotik.connection import RouterOsApiTransport
from ..mikrotik.fallback import fallback_records
from .base import (
    ActiveSession,
    CommandResult,
    ConnectionStatus,
    RouterCommandError,
    RouterConnectionError,
    RouterDriverUnavailableError,
    Subscriber,
    Transport,
)

logger = logging.getLogger(__name__)

TransportFactory = Callable[..., Transport]

_FROM_SETTINGS = object()


def default_transport_factory() -> Optional[TransportFactory]:
    """The configured RouterOS driver, or None when only synthetic data is allowed."""
    return RouterOsApiTransport if get_settings().driver_enabled else None


class MikrotikRouterAdapter:
    """
    Request/response client for one MikroTik router.

    Reads go through a private TTL cache and fail open: when no driver is
    configured or the live call fails, synthetic data is served instead and the
    caller never sees the error. `last_source` tells which source answered.
    Every read hands out its own copy of the cached records.

    Writes always go to the router, raise on failure and invalidate the whole
    cache on success.
    """

    def __init__(
        self,
        router: RouterDevice,
        transport_factory: Any = _FROM_SETTINGS,
        cache: Optional[ResponseCache] = None,
        ttl: Optional[float] = None,
        password: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        settings = get_settings()
        self.router = router
        self.host = router.host
        self._transport_factory: Optional[TransportFactory] = (
            default_transport_factory() if transport_factory is _FROM_SETTINGS else transport_factory
        )
        self._password = password if password is not None else decrypt_data(router.encrypted_api_password)
        self.timeout = timeout if timeout is not None else settings.routeros_timeout
        self.ttl = ttl if ttl is not None else settings.router_cache_ttl
        if cache is None:
            cache = ResponseCache(name=f"router-{router.id or router.host}", default_ttl=self.ttl)
        self._cache = cache
        self._transport: Optional[Transport] = None
        self.last_source: Optional[DataSource] = None

    @property
    def using_real_api(self) -> bool:
        return self._transport_factory is not None

    # --- Connection handling ---

    def _get_transport(self) -> Transport:
        if self._transport is None:
            self._transport = self._transport_factory(
                host=self.router.host,
                username=self.router.api_user,
                password=self._password,
                port=self.router.api_port,
                use_ssl=self.router.use_ssl,
                timeout=self.timeout,
            )
        return self._transport

    def _drop_transport(self) -> None:
        if self._transport is not None:
            try:
                self._transport.close()
            except Exception as e:
                logger.debug(f"[MikroTik] Error closing transport for {self.host}: {e}")
            self._transport = None

    def close(self) -> None:
        self._drop_transport()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    # --- Generic request/response ---

    def execute_tagged(self, command: str, parameters: Optional[Dict[str, Any]] = None) -> CommandResult:
        command = getattr(command, "value", command)
        parameters = parameters or {}
        cache_key = make_key(command, parameters)

        cached = self._cache.get(cache_key)
        if cached is not None:
            self.last_source = cached.source
            return CommandResult(copy.deepcopy(cached.records), cached.source)

        if self._transport_factory is None:
            logger.debug(f"[MikroTik] No RouterOS driver configured, synthetic data for {command}")
            result = CommandResult(fallback_records(command, parameters), DataSource.SYNTHETIC)
        else:
            try:
                records = self._get_transport().send(command, parameters)
                result = CommandResult(records, DataSource.LIVE)
            except Exception as e:
                logger.warning(
                    f"[MikroTik] {command} failed on {self.host}: {e}. Falling back to synthetic data."
                )
                self._drop_transport()
                result = CommandResult(fallback_records(command, parameters), DataSource.SYNTHETIC)

        self._cache.set(cache_key, result, ttl=self.ttl)
        self.last_source = result.source
        return CommandResult(copy.deepcopy(result.records), result.source)

    def execute(self, command: str, parameters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        return self.execute_tagged(command, parameters).records

    def _write(self, command: RouterOsCommand, parameters: Dict[str, Any]) -> List[Dict[str, Any]]:
        if self._transport_factory is None:
            raise RouterDriverUnavailableError(
                f"RouterOS API driver not available; cannot run {command.value} on {self.host}"
            )
        try:
            records = self._get_transport().send(command.value, parameters)
        except RouterCommandError:
            raise
        except RouterConnectionError:
            self._drop_transport()
            raise
        except Exception as e:
            self._drop_transport()
            raise RouterCommandError(f"{command.value} failed on {self.host}: {e}") from e

        self.clear_cache()
        return records

    def clear_cache(self) -> None:
        self._cache.clear()

    def _ensure_live(self) -> None:
        """Raises unless the last read came from the router itself."""
        if self.last_source == DataSource.LIVE:
            return
        if self._transport_factory is None:
            raise RouterDriverUnavailableError(f"RouterOS API driver not available for {self.host}")
        raise RouterConnectionError(f"Router {self.host} did not answer; only synthetic data is available")

    # --- Status ---

    def get_connection_status(self) -> ConnectionStatus:
        """
        Runs a no-op query straight on the driver (no cache, no fallback) so the
        caller can tell "no driver", "driver but unreachable" and "connected" apart.
        """
        if self._transport_factory is None:
            return ConnectionStatus(
                connected=False,
                using_real_api=False,
                message="RouterOS API driver not available; serving synthetic data",
            )
        try:
            records = self._get_transport().send(RouterOsCommand.SYSTEM_RESOURCE_PRINT.value, {})
        except Exception as e:
            self._drop_transport()
            return ConnectionStatus(connected=False, using_real_api=True, message=str(e))

        resource = records[0] if records else {}
        version = resource.get("version", "unknown")
        return ConnectionStatus(
            connected=True,
            using_real_api=True,
            message=f"Connected to {self.host} (RouterOS {version})",
            extra=resource,
        )

    def test_connection(self) -> bool:
        return self.get_connection_status().connected

    def get_system_resources(self) -> Dict[str, Any]:
        records = self.execute(RouterOsCommand.SYSTEM_RESOURCE_PRINT)
        return records[0] if records else {}

    # --- PPPoE secrets (subscribers) ---

    def get_subscribers(self) -> List[Subscriber]:
        return [ppp.secret_from_record(r) for r in self.execute(RouterOsCommand.PPP_SECRET_PRINT)]

    def find_subscriber(self, name: str, require_live: bool = False) -> Optional[Subscriber]:
        subscribers = self.get_subscribers()
        if require_live:
            self._ensure_live()
        return next((s for s in subscribers if s.name == name), None)

    def add_subscriber(self, subscriber: Subscriber) -> Optional[str]:
        """Creates the secret and returns its new RouterOS id when the router reports it."""
        records = self._write(RouterOsCommand.PPP_SECRET_ADD, ppp.secret_add_parameters(subscriber))
        return records[0].get("ret") if records else None

    def update_subscriber(self, secret_id: str, **updates: Any) -> None:
        self._write(RouterOsCommand.PPP_SECRET_SET, ppp.secret_set_parameters(secret_id, **updates))

    def set_subscriber_disabled(self, secret_id: str, disabled: bool) -> None:
        self.update_subscriber(secret_id, disabled=disabled)

    def remove_subscriber(self, secret_id: str) -> None:
        self._write(RouterOsCommand.PPP_SECRET_REMOVE, {".id": secret_id})

    # --- Active sessions ---

    def get_active_sessions(self) -> List[ActiveSession]:
        return [ppp.session_from_record(r) for r in self.execute(RouterOsCommand.PPP_ACTIVE_PRINT)]

    def find_session(self, name: str, require_live: bool = False) -> Optional[ActiveSession]:
        sessions = self.get_active_sessions()
        if require_live:
            self._ensure_live()
        return next((s for s in sessions if s.name == name), None)

    def disconnect_session(self, session_id: str) -> None:
        self._write(RouterOsCommand.PPP_ACTIVE_REMOVE, {".id": session_id})
