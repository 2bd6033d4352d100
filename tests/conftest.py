import copy
import os

# Settings are read once at import time; keep tests off the real database and routers.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ROUTEROS_DRIVER"] = "none"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["ENCRYPTION_KEY"] = "YWFhYWFhYWFhYWFhYWFhYWFhYWFhYWFhYWFhYWFhYWE="

import pytest
from sqlalchemy import event
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from ispdesk import models  # noqa: F401  (registers the tables)
from ispdesk.models.router import RouterDevice
from ispdesk.utils.device_clients.adapters.base import RouterCommandError, RouterConnectionError
from ispdesk.utils.device_clients.adapters.mikrotik_router import MikrotikRouterAdapter
from ispdesk.utils.device_clients.mikrotik.connection import response_records
from ispdesk.utils.security import encrypt_data


class DoneResponse(list):
    """A routeros_api style response: records plus the attributes of the closing !done."""

    def __init__(self, records=(), done_message=None):
        super().__init__(records)
        self.done_message = done_message or {}


class FakeRouter:
    """
    In-memory RouterOS device: PPP secrets, active sessions and a log of every
    command received. Toggle `reachable` or add paths to `rejected` to simulate
    outages and refused commands.
    """

    def __init__(self):
        self.secrets = []
        self.active = []
        self.resource = {"version": "7.12", "board-name": "RB4011", "uptime": "3d2h"}
        self.calls = []
        self.reachable = True
        self.rejected = set()
        self.transports = []
        self._next_id = 100

    def _new_id(self) -> str:
        self._next_id += 1
        return f"*{self._next_id:X}"

    def add_secret(self, name, password="pw", disabled=False, profile="default"):
        secret = {
            ".id": self._new_id(),
            "name": name,
            "password": password,
            "service": "pppoe",
            "profile": profile,
            "disabled": "true" if disabled else "false",
        }
        self.secrets.append(secret)
        return secret

    def add_session(self, name, uptime="1h", address="10.10.0.2"):
        session = {
            ".id": self._new_id(),
            "name": name,
            "service": "pppoe",
            "caller-id": "AA:BB:CC:DD:EE:FF",
            "address": address,
            "uptime": uptime,
            "bytes-in": "2048",
            "bytes-out": "1024",
        }
        self.active.append(session)
        return session

    def secret(self, name):
        return next((s for s in self.secrets if s["name"] == name), None)

    def count(self, command: str) -> int:
        return sum(1 for c, _ in self.calls if c == command)

    def transport(self, **kwargs):
        transport = FakeTransport(self, **kwargs)
        self.transports.append(transport)
        return transport

    def handle(self, command, parameters):
        self.calls.append((command, dict(parameters)))
        if not self.reachable:
            raise RouterConnectionError("timed out")
        if command in self.rejected:
            raise RouterCommandError(f"{command}: failure: rejected")

        if command == "/system/resource/print":
            return [dict(self.resource)]
        if command == "/ppp/secret/print":
            return copy.deepcopy(self.secrets)
        if command == "/ppp/active/print":
            return copy.deepcopy(self.active)
        if command == "/ppp/secret/add":
            secret = {".id": self._new_id(), **parameters}
            self.secrets.append(secret)
            return DoneResponse(done_message={"ret": secret[".id"]})
        if command == "/ppp/secret/set":
            secret = next((s for s in self.secrets if s[".id"] == parameters[".id"]), None)
            if secret is None:
                raise RouterCommandError("no such item")
            secret.update({k: v for k, v in parameters.items() if k != ".id"})
            return []
        if command == "/ppp/secret/remove":
            self.secrets = [s for s in self.secrets if s[".id"] != parameters[".id"]]
            return []
        if command == "/ppp/active/remove":
            self.active = [s for s in self.active if s[".id"] != parameters[".id"]]
            return []
        return []


class FakeTransport:
    def __init__(self, device, **kwargs):
        self.device = device
        self.options = kwargs
        self.closed = False

    def send(self, command, parameters):
        return response_records(self.device.handle(command, parameters))

    def close(self):
        self.closed = True


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture()
def db_session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture()
def fake_router():
    return FakeRouter()


@pytest.fixture()
def adapter_factory(fake_router):
    """Adapters talking to the in-memory FakeRouter."""

    def factory(router):
        return MikrotikRouterAdapter(router, transport_factory=fake_router.transport)

    return factory


@pytest.fixture()
def offline_factory():
    """Adapters with no RouterOS driver: reads are synthetic, writes fail."""

    def factory(router):
        return MikrotikRouterAdapter(router, transport_factory=None)

    return factory


@pytest.fixture()
def router_device(db_session):
    router = RouterDevice(
        host="10.0.0.1",
        api_user="admin",
        encrypted_api_password=encrypt_data("secret"),
        label="Core",
    )
    db_session.add(router)
    db_session.commit()
    db_session.refresh(router)
    return router
