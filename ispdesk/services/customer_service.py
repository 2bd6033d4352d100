# ispdesk/services/customer_service.py
"""
Customer service layer using SQLModel ORM.

Every mutation is saved to the database first and then pushed to the router.
A router failure never undoes the database change; it is returned as a
DeviceSyncOutcome so the caller can show "saved, not pushed to router".
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy import delete, func
from sqlmodel import Session, select

from ..core.constants import CustomerStatus
from ..models.customer import Customer
from ..models.invoice import Invoice
from ..models.plan import Plan
from ..models.router import RouterDevice
from ..utils.device_clients.adapter_factory import AdapterFactory, get_router_adapter
from .base_service import BaseCRUDService
from .subscriber_sync import DeviceSyncOutcome, SubscriberSyncService

logger = logging.getLogger(__name__)


class DuplicateUsernameError(ValueError):
    pass


class CustomerService(BaseCRUDService[Customer]):
    """
    Service layer for Customer operations using SQLModel ORM.
    """

    def __init__(self, session: Session, adapter_factory: AdapterFactory = get_router_adapter):
        super().__init__(session, Customer)
        self.sync = SubscriberSyncService(session, adapter_factory=adapter_factory)

    # --- Reads ---

    def get_all_customers(self) -> List[Dict[str, Any]]:
        """All customers, newest first, with router label, plan name and invoice count."""
        invoice_counts = dict(
            self.session.exec(
                select(Invoice.customer_id, func.count(Invoice.id)).group_by(Invoice.customer_id)
            ).all()
        )
        statement = (
            select(Customer, RouterDevice.label, Plan.name)
            .join(RouterDevice, Customer.router_id == RouterDevice.id)
            .join(Plan, Customer.plan_id == Plan.id, isouter=True)
            .order_by(Customer.created_at.desc())
        )
        customers = []
        for customer, router_label, plan_name in self.session.exec(statement).all():
            customer_dict = customer.model_dump()
            customer_dict["router_label"] = router_label
            customer_dict["plan_name"] = plan_name
            customer_dict["invoice_count"] = invoice_counts.get(customer.id, 0)
            customers.append(customer_dict)
        return customers

    def get_by_username(self, username: str) -> Optional[Customer]:
        return self.session.exec(select(Customer).where(Customer.username == username)).first()

    def _get_router(self, router_id: int) -> RouterDevice:
        router = self.session.get(RouterDevice, router_id)
        if not router:
            raise HTTPException(status_code=404, detail="Router not found")
        return router

    def _get_plan(self, plan_id: Optional[int]) -> Optional[Plan]:
        if plan_id is None:
            return None
        plan = self.session.get(Plan, plan_id)
        if not plan:
            raise HTTPException(status_code=404, detail="Plan not found")
        return plan

    # --- Mutations ---

    def create_customer(self, data: Dict[str, Any]) -> Tuple[Customer, DeviceSyncOutcome]:
        """
        Saves a new customer and creates its PPPoE secret on the router.
        """
        username = data.get("username")
        password = data.get("password")
        if not username or not password or not data.get("router_id"):
            raise ValueError("Missing required fields")

        router = self._get_router(data["router_id"])
        plan = self._get_plan(data.get("plan_id"))
        if self.get_by_username(username):
            raise DuplicateUsernameError("Username already exists")

        customer = self.create(
            {
                "username": username,
                "password": password,
                "router_id": router.id,
                "plan_id": plan.id if plan else None,
                "status": CustomerStatus.ACTIVE,
            }
        )

        outcome = self.sync.try_push(
            f"create secret '{username}'",
            self.sync.push_create,
            router,
            username,
            password,
            profile=plan.profile_name if plan else "default",
        )
        return customer, outcome

    def update_customer(self, customer_id: int, data: Dict[str, Any]) -> Tuple[Customer, DeviceSyncOutcome]:
        """
        Partial update. Username, password, plan and status changes are
        mirrored onto the router secret (looked up by the previous username).
        """
        if not data:
            raise ValueError("No fields to update provided.")

        customer = self.get_by_id(customer_id)
        previous_username = customer.username

        new_username = data.get("username")
        if new_username and new_username != previous_username and self.get_by_username(new_username):
            raise DuplicateUsernameError("Username already exists")

        plan = self._get_plan(data["plan_id"]) if data.get("plan_id") is not None else None
        if "status" in data and data["status"] is not None:
            data["status"] = CustomerStatus(data["status"])

        customer = self.update(customer_id, data)

        updates: Dict[str, Any] = {}
        if new_username and new_username != previous_username:
            updates["name"] = new_username
        if data.get("password") is not None:
            updates["password"] = data["password"]
        if plan is not None:
            updates["profile"] = plan.profile_name
        if data.get("status") is not None:
            updates["disabled"] = customer.status != CustomerStatus.ACTIVE

        if not updates:
            return customer, DeviceSyncOutcome(synced=True)

        router = self._get_router(customer.router_id)
        outcome = self.sync.try_push(
            f"update secret '{previous_username}'",
            self.sync.push_update,
            router,
            previous_username,
            **updates,
        )
        return customer, outcome

    def set_status(self, customer_id: int, action: str) -> Tuple[Customer, DeviceSyncOutcome]:
        """
        Admin suspend/activate. Suspending also disconnects the live session.
        """
        if action not in ("suspend", "activate"):
            raise ValueError("Action must be 'suspend' or 'activate'")

        new_status = CustomerStatus.SUSPENDED if action == "suspend" else CustomerStatus.ACTIVE
        customer = self.update(customer_id, {"status": new_status})
        router = self._get_router(customer.router_id)

        outcome = self.sync.try_push(
            f"{action} secret '{customer.username}'",
            self.sync.push_status,
            router,
            customer.username,
            disabled=new_status == CustomerStatus.SUSPENDED,
            disconnect=action == "suspend",
        )
        return customer, outcome

    def delete_customer(self, customer_id: int) -> DeviceSyncOutcome:
        """
        Removes the router secret (best-effort) and then the customer with its invoices.
        """
        customer = self.get_by_id(customer_id)
        router = self._get_router(customer.router_id)
        username = customer.username

        outcome = self.sync.try_push(
            f"remove secret '{username}'", self.sync.push_delete, router, username
        )

        self.session.execute(delete(Invoice).where(Invoice.customer_id == customer_id))
        self.session.delete(customer)
        self.session.commit()
        logger.info(f"Customer {username} deleted (router synced: {outcome.synced})")
        return outcome
