# ispdesk/services/billing_service.py
"""
Billing reconciliation: overdue sweep, suspensions and reactivations.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import HTTPException
from sqlalchemy import func
from sqlmodel import Session, select

from ..core.constants import CustomerStatus, InvoiceStatus
from ..models.customer import Customer
from ..models.invoice import Invoice
from ..models.router import RouterDevice
from ..models.types import as_utc, utcnow
from ..utils.device_clients.adapter_factory import AdapterFactory, get_router_adapter
from ..utils.device_clients.adapters.base import RouterCommandError, RouterConnectionError

logger = logging.getLogger(__name__)


class BillingService:
    """
    Service for billing state transitions using SQLModel ORM.

    Every status change is committed before any router call is made; router
    calls are best-effort and never undo a committed transition.
    """

    def __init__(self, session: Session, adapter_factory: AdapterFactory = get_router_adapter):
        self.session = session
        self.adapter_factory = adapter_factory

    def count_overdue(self, customer_id: int) -> int:
        statement = select(func.count(Invoice.id)).where(
            Invoice.customer_id == customer_id,
            Invoice.status == InvoiceStatus.OVERDUE,
        )
        return self.session.exec(statement).one()

    def process_overdue_invoices(self, now: Optional[datetime] = None) -> Dict[str, int]:
        """
        One sweep: PENDING invoices past their due date become OVERDUE and their
        ACTIVE customers are SUSPENDED, then cut on the router.
        """
        now = as_utc(now) or utcnow()
        logger.info("Checking for overdue invoices...")

        statement = select(Invoice).where(
            Invoice.status == InvoiceStatus.PENDING,
            Invoice.due_date < now,
        )
        invoices = self.session.exec(statement).all()
        stats = {"checked": len(invoices), "overdue": 0, "suspended": 0, "device_errors": 0}
        logger.info(f"Found {len(invoices)} overdue invoices")

        for invoice in invoices:
            invoice.status = InvoiceStatus.OVERDUE
            invoice.updated_at = now
            self.session.add(invoice)
            self.session.commit()
            stats["overdue"] += 1

            customer = self.session.get(Customer, invoice.customer_id)
            if customer is None or customer.status != CustomerStatus.ACTIVE:
                continue

            logger.info(f"Suspending customer {customer.username} due to overdue invoice {invoice.id}")
            customer.status = CustomerStatus.SUSPENDED
            customer.updated_at = now
            self.session.add(customer)
            self.session.commit()
            stats["suspended"] += 1

            if not self._suspend_on_router(customer):
                stats["device_errors"] += 1

        logger.info(f"Overdue invoice check completed: {stats}")
        return stats

    def _suspend_on_router(self, customer: Customer) -> bool:
        """Disables the secret and kills the live session. Returns False on any router error."""
        router = self.session.get(RouterDevice, customer.router_id)
        if router is None:
            logger.error(f"Customer {customer.username} has no router; cannot suspend on device")
            return False

        try:
            with self.adapter_factory(router) as adapter:
                secret = adapter.find_subscriber(customer.username, require_live=True)
                if secret is not None:
                    adapter.set_subscriber_disabled(secret.id, True)

                session = adapter.find_session(customer.username, require_live=True)
                if session is not None:
                    adapter.disconnect_session(session.id)
        except (RouterConnectionError, RouterCommandError) as e:
            logger.error(f"Error suspending customer {customer.username} on router {router.host}: {e}")
            return False
        return True

    def _enable_on_router(self, customer: Customer) -> bool:
        router = self.session.get(RouterDevice, customer.router_id)
        if router is None:
            return False
        try:
            with self.adapter_factory(router) as adapter:
                secret = adapter.find_subscriber(customer.username, require_live=True)
                if secret is not None:
                    adapter.set_subscriber_disabled(secret.id, False)
        except (RouterConnectionError, RouterCommandError) as e:
            logger.error(f"Error re-enabling customer {customer.username} on router {router.host}: {e}")
            return False
        return True

    def reactivate_if_settled(self, customer: Customer, enable_on_device: bool = False) -> bool:
        """
        SUSPENDED customers with no OVERDUE invoice left go back to ACTIVE.
        The router secret is only re-enabled when `enable_on_device` is set.

        Returns:
            True if the customer was reactivated.
        """
        if customer.status != CustomerStatus.SUSPENDED:
            return False
        if self.count_overdue(customer.id) > 0:
            logger.info(f"Customer {customer.username} still has overdue invoices; stays suspended")
            return False

        customer.status = CustomerStatus.ACTIVE
        customer.updated_at = utcnow()
        self.session.add(customer)
        self.session.commit()
        self.session.refresh(customer)
        logger.info(f"Customer {customer.username} reactivated")

        if enable_on_device:
            self._enable_on_router(customer)
        return True

    def mark_invoice_paid(
        self, invoice_id: int, reactivate: bool = True, enable_on_device: bool = False
    ) -> Dict[str, Any]:
        invoice = self.session.get(Invoice, invoice_id)
        if not invoice:
            raise HTTPException(status_code=404, detail="Invoice not found")

        invoice.status = InvoiceStatus.PAID
        invoice.updated_at = utcnow()
        self.session.add(invoice)
        self.session.commit()
        self.session.refresh(invoice)

        reactivated = False
        if reactivate:
            customer = self.session.get(Customer, invoice.customer_id)
            if customer is not None:
                reactivated = self.reactivate_if_settled(customer, enable_on_device=enable_on_device)

        return {"invoice": invoice, "customer_reactivated": reactivated}
