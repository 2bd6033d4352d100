# ispdesk/utils/device_clients/mikrotik/connection.py
"""
RouterOS API transport built on the routeros_api library.

A transport owns exactly one API connection. It is opened on the first
send() and reused until close(); the router adapter creates one transport per
adapter instance.
"""

import logging
import ssl
from typing import Any, Dict, List, Optional, Tuple

from routeros_api import RouterOsApiPool
from routeros_api.api import RouterOsApi
from routeros_api.exceptions import RouterOsApiConnectionError, RouterOsApiError

from ..adapters.base import RouterCommandError, RouterConnectionError

logger = logging.getLogger(__name__)


def split_command(command: str) -> Tuple[str, str]:
    """
    Split a command path into resource path and verb.

    "/ppp/secret/print" -> ("/ppp/secret", "print")
    """
    path, _, verb = str(command).rstrip("/").rpartition("/")
    if not path or not verb:
        raise RouterCommandError(f"Invalid RouterOS command: {command!r}")
    return path, verb


def encode_parameters(parameters: Optional[Dict[str, Any]]) -> Dict[str, str]:
    """
    Turn a parameter map into RouterOS "=key=value" attributes.
    None values are dropped and everything else is sent as a string.
    routeros_api expects the record id as "id" and adds the leading dot itself.
    """
    encoded = {}
    for key, value in (parameters or {}).items():
        if value is None:
            continue
        encoded["id" if key == ".id" else key] = str(value)
    return encoded


def normalize_record(record: Dict[Any, Any]) -> Dict[str, str]:
    """Decode bytes and expose the record id under ".id" like the raw protocol."""
    normalized = {}
    for key, value in record.items():
        if isinstance(key, bytes):
            key = key.decode()
        if isinstance(value, bytes):
            value = value.decode(errors="replace")
        normalized[".id" if key == "id" else key] = value
    return normalized


def response_records(response: Any) -> List[Dict[str, str]]:
    """
    Records of a routeros_api response.

    Commands such as "add" answer with no records and report their result
    (the new item id) in the closing !done message; that value is returned
    as a single {"ret": ...} record.
    """
    records = [normalize_record(record) for record in (response or [])]
    done_message = normalize_record(getattr(response, "done_message", None) or {})
    if not records and done_message.get("ret") is not None:
        records.append({"ret": done_message["ret"]})
    return records


class RouterOsApiTransport:
    def __init__(
        self,
        host: str,
        username: str,
        password: str,
        port: int = 8728,
        use_ssl: bool = False,
        timeout: float = 10.0,
    ):
        self.host = host
        self.username = username
        self.password = password
        self.port = port
        self.use_ssl = use_ssl
        self.timeout = timeout
        self._pool: Optional[RouterOsApiPool] = None
        self._api: Optional[RouterOsApi] = None

    @property
    def connected(self) -> bool:
        return self._api is not None

    def connect(self) -> RouterOsApi:
        if self._api is not None:
            return self._api

        kwargs: Dict[str, Any] = {
            "username": self.username,
            "password": self.password,
            "port": self.port,
            "plaintext_login": True,
        }
        if self.use_ssl:
            ssl_context = ssl.create_default_context()
            ssl_context.check_hostname = False
            ssl_context.verify_mode = ssl.CERT_NONE
            kwargs.update(use_ssl=True, ssl_context=ssl_context)

        pool = RouterOsApiPool(self.host, **kwargs)
        pool.socket_timeout = self.timeout
        try:
            self._api = pool.get_api()
        except Exception as e:
            raise RouterConnectionError(
                f"Failed to connect to router {self.host}:{self.port}: {e}"
            ) from e

        self._pool = pool
        logger.debug(f"[MikroTik] Connected to {self.host}:{self.port}")
        return self._api

    def send(self, command: str, parameters: Dict[str, str]) -> List[Dict[str, str]]:
        path, verb = split_command(command)
        api = self.connect()
        try:
            response = api.get_resource(path).call(verb, encode_parameters(parameters))
        except RouterOsApiConnectionError as e:
            self.close()
            raise RouterConnectionError(f"Connection to {self.host} lost: {e}") from e
        except (OSError, TimeoutError) as e:
            self.close()
            raise RouterConnectionError(f"Connection to {self.host} failed: {e}") from e
        except RouterOsApiError as e:
            raise RouterCommandError(f"{command} failed on {self.host}: {e}") from e

        return response_records(response)

    def close(self) -> None:
        if self._pool is not None:
            try:
                self._pool.disconnect()
            except Exception as e:
                logger.debug(f"[MikroTik] Error disconnecting from {self.host}: {e}")
        self._pool = None
        self._api = None
