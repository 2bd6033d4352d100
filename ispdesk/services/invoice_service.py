# ispdesk/services/invoice_service.py
"""
Invoice service layer using SQLModel ORM.
"""
from typing import Any, Dict, List, Optional

from fastapi import HTTPException
from sqlmodel import Session, select

from ..core.constants import InvoiceStatus
from ..models.customer import Customer
from ..models.invoice import Invoice
from ..models.types import as_utc
from ..utils.device_clients.adapter_factory import AdapterFactory, get_router_adapter
from .base_service import BaseCRUDService
from .billing_service import BillingService


class InvoiceService(BaseCRUDService[Invoice]):
    def __init__(self, session: Session, adapter_factory: AdapterFactory = get_router_adapter):
        super().__init__(session, Invoice)
        self.billing = BillingService(session, adapter_factory=adapter_factory)

    def list_invoices(
        self, customer_id: Optional[int] = None, status: Optional[InvoiceStatus] = None
    ) -> List[Dict[str, Any]]:
        """Invoices ordered by due date, optionally filtered, with the customer's username and status."""
        statement = select(Invoice, Customer.username, Customer.status).join(
            Customer, Invoice.customer_id == Customer.id
        )
        if customer_id is not None:
            statement = statement.where(Invoice.customer_id == customer_id)
        if status is not None:
            statement = statement.where(Invoice.status == status)
        statement = statement.order_by(Invoice.due_date)

        invoices = []
        for invoice, username, customer_status in self.session.exec(statement).all():
            invoice_dict = invoice.model_dump()
            invoice_dict["customer_username"] = username
            invoice_dict["customer_status"] = customer_status
            invoices.append(invoice_dict)
        return invoices

    def create_invoice(self, data: Dict[str, Any]) -> Invoice:
        if not data.get("customer_id") or not data.get("amount") or not data.get("due_date"):
            raise ValueError("Missing required fields")
        if not self.session.get(Customer, data["customer_id"]):
            raise HTTPException(status_code=404, detail="Customer not found")
        data = dict(data)
        data["due_date"] = as_utc(data["due_date"])
        return self.create(data)

    def update_invoice(self, invoice_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Partial update. Setting the status to PAID reactivates the customer
        when no other invoice is overdue.
        """
        if not data:
            raise ValueError("No fields to update provided.")
        if data.get("status") is not None:
            data["status"] = InvoiceStatus(data["status"])
        if data.get("due_date") is not None:
            data["due_date"] = as_utc(data["due_date"])

        invoice = self.update(invoice_id, data)

        reactivated = False
        if invoice.status == InvoiceStatus.PAID and data.get("status") == InvoiceStatus.PAID:
            customer = self.session.get(Customer, invoice.customer_id)
            if customer is not None:
                reactivated = self.billing.reactivate_if_settled(customer)

        return {"invoice": invoice, "customer_reactivated": reactivated}

    def mark_paid(
        self, invoice_id: int, reactivate_customer: bool = True, enable_on_device: bool = False
    ) -> Dict[str, Any]:
        return self.billing.mark_invoice_paid(
            invoice_id, reactivate=reactivate_customer, enable_on_device=enable_on_device
        )
