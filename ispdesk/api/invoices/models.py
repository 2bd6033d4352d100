from datetime import datetime

from pydantic import BaseModel

from ...core.constants import CustomerStatus, InvoiceStatus


class Invoice(BaseModel):
    id: int
    customer_id: int
    amount: float
    due_date: datetime
    status: InvoiceStatus
    description: str | None = None
    created_at: datetime
    updated_at: datetime
    customer_username: str | None = None
    customer_status: CustomerStatus | None = None


class InvoiceCreate(BaseModel):
    customer_id: int
    amount: float
    due_date: datetime
    status: InvoiceStatus = InvoiceStatus.PENDING
    description: str | None = None


class InvoiceUpdate(BaseModel):
    amount: float | None = None
    due_date: datetime | None = None
    status: InvoiceStatus | None = None
    description: str | None = None


class InvoicePayment(BaseModel):
    reactivate_customer: bool = True
    enable_on_device: bool = False


class InvoiceWriteResult(BaseModel):
    invoice: Invoice
    customer_reactivated: bool = False
