import pytest
from sqlmodel import select

from ispdesk.core.constants import CustomerStatus, DataSource
from ispdesk.models.customer import Customer
from ispdesk.services.subscriber_sync import SubscriberNotFoundError, SubscriberSyncService
from ispdesk.utils.device_clients.adapters.base import (
    RouterConnectionError,
    RouterDriverUnavailableError,
)


def _customers(db_session):
    return {c.username: c for c in db_session.exec(select(Customer)).all()}


class TestSyncRouter:
    """Pulling PPPoE secrets into the customers table."""

    def test_imports_secrets_with_status(self, db_session, router_device, fake_router, adapter_factory):
        fake_router.add_secret("alice", "pw-a")
        fake_router.add_secret("bob", "pw-b", disabled=True)

        result = SubscriberSyncService(db_session, adapter_factory).sync_router(router_device.id)

        customers = _customers(db_session)
        assert result.synced == 2
        assert result.created == 2
        assert result.source == DataSource.LIVE
        assert customers["alice"].status == CustomerStatus.ACTIVE
        assert customers["bob"].status == CustomerStatus.SUSPENDED
        assert customers["bob"].router_id == router_device.id
        db_session.refresh(router_device)
        assert router_device.last_sync == result.last_sync

    def test_second_sync_is_idempotent(self, db_session, router_device, fake_router, adapter_factory):
        fake_router.add_secret("alice", "pw-a")
        fake_router.add_secret("bob", "pw-b", disabled=True)
        service = SubscriberSyncService(db_session, adapter_factory)
        service.sync_router(router_device.id)
        before = {name: c.updated_at for name, c in _customers(db_session).items()}

        result = service.sync_router(router_device.id)

        assert (result.created, result.updated, result.unchanged) == (0, 0, 2)
        assert {name: c.updated_at for name, c in _customers(db_session).items()} == before

    def test_device_changes_overwrite_local_rows(self, db_session, router_device, fake_router, adapter_factory):
        fake_router.add_secret("alice", "pw-a")
        service = SubscriberSyncService(db_session, adapter_factory)
        service.sync_router(router_device.id)
        fake_router.secret("alice").update(password="new-pw", disabled="true")

        result = service.sync_router(router_device.id)

        alice = _customers(db_session)["alice"]
        assert result.updated == 1
        assert alice.password == "new-pw"
        assert alice.status == CustomerStatus.SUSPENDED

    def test_refuses_without_driver(self, db_session, router_device, offline_factory):
        with pytest.raises(RouterDriverUnavailableError):
            SubscriberSyncService(db_session, offline_factory).sync_router(router_device.id)

        assert _customers(db_session) == {}

    def test_refuses_when_router_unreachable(self, db_session, router_device, fake_router, adapter_factory):
        fake_router.add_secret("alice")
        fake_router.reachable = False

        with pytest.raises(RouterConnectionError):
            SubscriberSyncService(db_session, adapter_factory).sync_router(router_device.id)

        assert _customers(db_session) == {}
        db_session.refresh(router_device)
        assert router_device.last_sync is None

    def test_synthetic_import_when_live_not_required(self, db_session, router_device, offline_factory):
        result = SubscriberSyncService(db_session, offline_factory).sync_router(
            router_device.id, require_live=False
        )

        customers = _customers(db_session)
        assert result.source == DataSource.SYNTHETIC
        assert customers["test-user-1"].status == CustomerStatus.ACTIVE
        assert customers["test-user-2"].status == CustomerStatus.SUSPENDED

    def test_unknown_router(self, db_session, adapter_factory):
        from fastapi import HTTPException

        with pytest.raises(HTTPException) as exc:
            SubscriberSyncService(db_session, adapter_factory).sync_router(999)
        assert exc.value.status_code == 404


class TestPush:
    """Writing admin changes to the router."""

    def test_push_create(self, db_session, router_device, fake_router, adapter_factory):
        service = SubscriberSyncService(db_session, adapter_factory)

        new_id = service.push_create(router_device, "carol", "pw-c", profile="gold")

        secret = fake_router.secret("carol")
        assert secret[".id"] == new_id
        assert secret["profile"] == "gold"
        assert secret["disabled"] == "false"

    def test_push_update_renames(self, db_session, router_device, fake_router, adapter_factory):
        fake_router.add_secret("alice", "pw-a")

        SubscriberSyncService(db_session, adapter_factory).push_update(
            router_device, "alice", name="alice2", password=None
        )

        assert fake_router.secret("alice") is None
        assert fake_router.secret("alice2")["password"] == "pw-a"

    def test_push_update_missing_secret(self, db_session, router_device, adapter_factory):
        with pytest.raises(SubscriberNotFoundError):
            SubscriberSyncService(db_session, adapter_factory).push_update(router_device, "ghost", password="x")

    def test_push_status_disconnects_on_suspend(self, db_session, router_device, fake_router, adapter_factory):
        fake_router.add_secret("alice")
        fake_router.add_session("alice")

        details = SubscriberSyncService(db_session, adapter_factory).push_status(
            router_device, "alice", disabled=True, disconnect=True
        )

        assert details == ["secret disabled", "session disconnected"]
        assert fake_router.secret("alice")["disabled"] == "true"
        assert fake_router.active == []

    def test_push_status_disconnects_without_secret(self, db_session, router_device, fake_router, adapter_factory):
        fake_router.add_session("alice")

        details = SubscriberSyncService(db_session, adapter_factory).push_status(
            router_device, "alice", disabled=True, disconnect=True
        )

        assert details == ["secret not found", "session disconnected"]
        assert fake_router.active == []
        assert fake_router.count("/ppp/secret/set") == 0

    def test_push_delete_tolerates_absent_secret(self, db_session, router_device, fake_router, adapter_factory):
        fake_router.add_secret("alice")
        service = SubscriberSyncService(db_session, adapter_factory)

        service.push_delete(router_device, "alice")
        service.push_delete(router_device, "alice")

        assert fake_router.secrets == []

    def test_try_push_reports_failure(self, db_session, router_device, fake_router, adapter_factory):
        fake_router.reachable = False
        service = SubscriberSyncService(db_session, adapter_factory)

        outcome = service.try_push("create", service.push_create, router_device, "carol", "pw")

        assert outcome.synced is False
        assert "timed out" in outcome.error

    def test_try_push_reports_driver_missing(self, db_session, router_device, offline_factory):
        service = SubscriberSyncService(db_session, offline_factory)

        outcome = service.try_push("create", service.push_create, router_device, "carol", "pw")

        assert outcome.synced is False
        assert "not available" in outcome.error
