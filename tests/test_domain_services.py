from datetime import datetime, timedelta, timezone

import pytest
from fastapi import HTTPException
from sqlmodel import select

from ispdesk.core.constants import CustomerStatus, DataSource, InvoiceStatus
from ispdesk.models.customer import Customer
from ispdesk.models.invoice import Invoice
from ispdesk.models.router import RouterDevice
from ispdesk.services.customer_service import CustomerService, DuplicateUsernameError
from ispdesk.services.invoice_service import InvoiceService
from ispdesk.services.plan_service import PlanInUseError, PlanService
from ispdesk.services.router_service import RouterDeviceService, RouterInUseError
from ispdesk.services.session_service import SessionService
from ispdesk.utils.device_clients.adapters.base import RouterConnectionError
from ispdesk.utils.security import decrypt_data


@pytest.fixture()
def gold_plan(db_session):
    return PlanService(db_session).create_plan({"name": "Gold", "price": 30.0, "rate_limit": "20M/20M", "profile_name": "gold"})


@pytest.fixture()
def customer_service(db_session, adapter_factory):
    return CustomerService(db_session, adapter_factory)


class TestPlanService:
    def test_list_ordered_by_price_with_counts(self, db_session, router_device, gold_plan):
        service = PlanService(db_session)
        service.create_plan({"name": "Basic", "price": 10.0, "rate_limit": "5M/5M"})
        db_session.add(Customer(username="alice", password="pw", router_id=router_device.id, plan_id=gold_plan.id))
        db_session.commit()

        plans = service.get_all_plans()

        assert [(p["name"], p["customer_count"]) for p in plans] == [("Basic", 0), ("Gold", 1)]

    def test_unique_name(self, db_session, gold_plan):
        service = PlanService(db_session)
        with pytest.raises(ValueError):
            service.create_plan({"name": "Gold", "rate_limit": "1M/1M"})
        other = service.create_plan({"name": "Silver", "rate_limit": "1M/1M"})
        with pytest.raises(ValueError):
            service.update_plan(other.id, {"name": "Gold"})

    def test_delete_rejected_while_in_use(self, db_session, router_device, gold_plan):
        db_session.add(Customer(username="alice", password="pw", router_id=router_device.id, plan_id=gold_plan.id))
        db_session.commit()

        with pytest.raises(PlanInUseError):
            PlanService(db_session).delete_plan(gold_plan.id)
        assert db_session.get(type(gold_plan), gold_plan.id) is not None

    def test_delete_unused(self, db_session, gold_plan):
        service = PlanService(db_session)
        service.delete_plan(gold_plan.id)

        with pytest.raises(HTTPException):
            service.get_by_id(gold_plan.id)


class TestCustomerService:
    def test_create_pushes_secret_with_plan_profile(self, customer_service, router_device, fake_router, gold_plan):
        customer, outcome = customer_service.create_customer(
            {"username": "carol", "password": "pw-c", "router_id": router_device.id, "plan_id": gold_plan.id}
        )

        assert customer.status == CustomerStatus.ACTIVE
        assert outcome.synced is True
        assert fake_router.secret("carol")["profile"] == "gold"

    def test_create_kept_when_router_is_down(self, customer_service, db_session, router_device, fake_router):
        fake_router.reachable = False

        customer, outcome = customer_service.create_customer(
            {"username": "carol", "password": "pw-c", "router_id": router_device.id}
        )

        assert outcome.synced is False
        assert outcome.error
        assert customer_service.get_by_username("carol").id == customer.id

    def test_duplicate_username(self, customer_service, router_device):
        data = {"username": "carol", "password": "pw", "router_id": router_device.id}
        customer_service.create_customer(dict(data))

        with pytest.raises(DuplicateUsernameError):
            customer_service.create_customer(dict(data))

    def test_missing_fields_and_unknown_router(self, customer_service):
        with pytest.raises(ValueError):
            customer_service.create_customer({"username": "carol"})
        with pytest.raises(HTTPException) as exc:
            customer_service.create_customer({"username": "carol", "password": "pw", "router_id": 42})
        assert exc.value.status_code == 404

    def test_update_renames_and_changes_password_on_router(self, customer_service, router_device, fake_router):
        customer, _ = customer_service.create_customer({"username": "carol", "password": "pw", "router_id": router_device.id})

        updated, outcome = customer_service.update_customer(customer.id, {"username": "carol2", "password": "new"})

        assert outcome.synced is True
        assert updated.username == "carol2"
        assert fake_router.secret("carol") is None
        assert fake_router.secret("carol2")["password"] == "new"

    def test_update_reports_missing_secret(self, customer_service, db_session, router_device):
        db_session.add(Customer(username="ghost", password="pw", router_id=router_device.id))
        db_session.commit()
        ghost = customer_service.get_by_username("ghost")

        updated, outcome = customer_service.update_customer(ghost.id, {"password": "new"})

        assert updated.password == "new"
        assert outcome.synced is False
        assert "not found" in outcome.error

    def test_suspend_without_secret_still_disconnects(self, customer_service, db_session, router_device, fake_router):
        db_session.add(Customer(username="ghost", password="pw", router_id=router_device.id))
        db_session.commit()
        ghost = customer_service.get_by_username("ghost")
        fake_router.add_session("ghost")

        suspended, outcome = customer_service.set_status(ghost.id, "suspend")

        assert suspended.status == CustomerStatus.SUSPENDED
        assert outcome.synced is True
        assert outcome.details == ["secret not found", "session disconnected"]
        assert fake_router.active == []

    def test_suspend_disables_and_disconnects(self, customer_service, router_device, fake_router):
        customer, _ = customer_service.create_customer({"username": "carol", "password": "pw", "router_id": router_device.id})
        fake_router.add_session("carol")

        suspended, outcome = customer_service.set_status(customer.id, "suspend")

        assert suspended.status == CustomerStatus.SUSPENDED
        assert outcome.details == ["secret disabled", "session disconnected"]
        assert fake_router.secret("carol")["disabled"] == "true"
        assert fake_router.active == []

        activated, outcome = customer_service.set_status(customer.id, "activate")
        assert activated.status == CustomerStatus.ACTIVE
        assert fake_router.secret("carol")["disabled"] == "false"

    def test_invalid_action(self, customer_service, router_device):
        with pytest.raises(ValueError):
            customer_service.set_status(1, "explode")

    def test_delete_removes_secret_and_invoices(self, customer_service, db_session, router_device, fake_router):
        customer, _ = customer_service.create_customer({"username": "carol", "password": "pw", "router_id": router_device.id})
        db_session.add(Invoice(customer_id=customer.id, amount=10, due_date=datetime.now(timezone.utc)))
        db_session.commit()

        outcome = customer_service.delete_customer(customer.id)

        assert outcome.synced is True
        assert fake_router.secret("carol") is None
        assert db_session.exec(select(Invoice)).all() == []
        assert customer_service.get_by_username("carol") is None

    def test_list_includes_router_and_plan(self, customer_service, router_device, gold_plan):
        customer_service.create_customer(
            {"username": "carol", "password": "pw", "router_id": router_device.id, "plan_id": gold_plan.id}
        )

        (row,) = customer_service.get_all_customers()

        assert row["router_label"] == "Core"
        assert row["plan_name"] == "Gold"
        assert row["invoice_count"] == 0


class TestInvoiceService:
    def test_filters_and_order(self, db_session, router_device, adapter_factory):
        alice = Customer(username="alice", password="pw", router_id=router_device.id)
        bob = Customer(username="bob", password="pw", router_id=router_device.id)
        db_session.add_all([alice, bob])
        db_session.commit()
        service = InvoiceService(db_session, adapter_factory)
        now = datetime.now(timezone.utc)
        service.create_invoice({"customer_id": alice.id, "amount": 10, "due_date": now + timedelta(days=2)})
        service.create_invoice({"customer_id": alice.id, "amount": 20, "due_date": now + timedelta(days=1)})
        service.create_invoice({"customer_id": bob.id, "amount": 30, "due_date": now, "status": InvoiceStatus.PAID})

        alice_invoices = service.list_invoices(customer_id=alice.id)
        paid = service.list_invoices(status=InvoiceStatus.PAID)

        assert [i["amount"] for i in alice_invoices] == [20, 10]
        assert alice_invoices[0]["customer_username"] == "alice"
        assert [i["amount"] for i in paid] == [30]

    def test_create_requires_existing_customer(self, db_session, adapter_factory):
        with pytest.raises(HTTPException):
            InvoiceService(db_session, adapter_factory).create_invoice(
                {"customer_id": 99, "amount": 10, "due_date": datetime.now(timezone.utc)}
            )

    def test_update_to_paid_reactivates(self, db_session, router_device, adapter_factory):
        alice = Customer(username="alice", password="pw", router_id=router_device.id, status=CustomerStatus.SUSPENDED)
        db_session.add(alice)
        db_session.commit()
        service = InvoiceService(db_session, adapter_factory)
        invoice = service.create_invoice(
            {"customer_id": alice.id, "amount": 10, "due_date": datetime.now(timezone.utc), "status": InvoiceStatus.OVERDUE}
        )

        result = service.update_invoice(invoice.id, {"status": "PAID"})

        db_session.refresh(alice)
        assert result["customer_reactivated"] is True
        assert alice.status == CustomerStatus.ACTIVE

    def test_update_due_date_is_stored_in_utc(self, db_session, router_device, adapter_factory):
        alice = Customer(username="alice", password="pw", router_id=router_device.id)
        db_session.add(alice)
        db_session.commit()
        service = InvoiceService(db_session, adapter_factory)
        invoice = service.create_invoice({"customer_id": alice.id, "amount": 10, "due_date": datetime(2024, 6, 1)})

        service.update_invoice(invoice.id, {"due_date": datetime(2024, 7, 1, 0, 30, tzinfo=timezone(timedelta(hours=-3)))})

        db_session.refresh(invoice)
        assert invoice.due_date == datetime(2024, 7, 1, 3, 30, tzinfo=timezone.utc)


class TestRouterDeviceService:
    def test_create_checks_connection_encrypts_and_imports(self, db_session, fake_router, adapter_factory):
        fake_router.add_secret("alice")

        result = RouterDeviceService(db_session, adapter_factory).create_router(
            {"host": "10.0.0.9", "api_user": "admin", "password": "s3cret", "label": "Edge"}
        )

        router = result["router"]
        assert result["warning"] is None
        assert result["sync"].created == 1
        assert result["sync"].source == DataSource.LIVE
        assert router.encrypted_api_password != "s3cret"
        assert decrypt_data(router.encrypted_api_password) == "s3cret"

    def test_create_without_driver_saves_with_warning(self, db_session, offline_factory):
        result = RouterDeviceService(db_session, offline_factory).create_router(
            {"host": "10.0.0.9", "api_user": "admin", "password": "s3cret", "label": "Edge"}
        )

        assert result["warning"]
        assert result["sync"].source == DataSource.SYNTHETIC
        assert db_session.exec(select(Customer)).all() != []

    def test_create_rejected_when_unreachable(self, db_session, fake_router, adapter_factory):
        fake_router.reachable = False

        with pytest.raises(RouterConnectionError):
            RouterDeviceService(db_session, adapter_factory).create_router(
                {"host": "10.0.0.9", "api_user": "admin", "password": "s3cret", "label": "Edge"}
            )
        assert db_session.exec(select(RouterDevice)).all() == []

    def test_update_re_encrypts_password(self, db_session, router_device, adapter_factory):
        updated = RouterDeviceService(db_session, adapter_factory).update_router(
            router_device.id, {"password": "rotated", "label": "Core 2"}
        )

        assert updated.label == "Core 2"
        assert decrypt_data(updated.encrypted_api_password) == "rotated"

    def test_delete_rejected_while_in_use(self, db_session, router_device, adapter_factory):
        db_session.add(Customer(username="alice", password="pw", router_id=router_device.id))
        db_session.commit()

        with pytest.raises(RouterInUseError):
            RouterDeviceService(db_session, adapter_factory).delete_router(router_device.id)

    def test_list_hides_password(self, db_session, router_device, adapter_factory):
        (row,) = RouterDeviceService(db_session, adapter_factory).get_all_routers()

        assert "encrypted_api_password" not in row
        assert row["customer_count"] == 0

    def test_test_router(self, db_session, router_device, fake_router, adapter_factory):
        status = RouterDeviceService(db_session, adapter_factory).test_router(router_device.id)

        assert status.connected is True


class TestSessionService:
    def test_lists_sessions_with_customer_and_connect_time(self, db_session, router_device, fake_router, adapter_factory):
        db_session.add(Customer(username="alice", password="pw", router_id=router_device.id))
        db_session.commit()
        fake_router.add_session("alice", uptime="2h30m")
        fake_router.add_session("stranger", uptime="")
        now = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)

        alice, stranger = SessionService(db_session, adapter_factory).list_active_sessions(now=now)

        assert alice["connected_at"] == datetime(2024, 6, 1, 9, 30, 0, tzinfo=timezone.utc)
        assert alice["customer_id"] is not None
        assert alice["router_label"] == "Core"
        assert alice["source"] == DataSource.LIVE
        assert stranger["customer_id"] is None
        assert stranger["connected_at"] == now

    def test_inactive_router_skipped(self, db_session, router_device, fake_router, adapter_factory):
        router_device.is_active = False
        db_session.add(router_device)
        db_session.commit()
        fake_router.add_session("alice")

        assert SessionService(db_session, adapter_factory).list_active_sessions() == []

    def test_disconnect(self, db_session, router_device, fake_router, adapter_factory):
        session = fake_router.add_session("alice")

        SessionService(db_session, adapter_factory).disconnect(router_device.id, session[".id"])

        assert fake_router.active == []
