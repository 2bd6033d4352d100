# ispdesk/models/invoice.py
"""
Invoice model for customer billing.
"""

from datetime import datetime

from sqlmodel import Field, SQLModel

from ..core.constants import InvoiceStatus
from .types import UTCDateTime, utcnow


class Invoice(SQLModel, table=True):
    """
    Invoice model representing an amount owed by a customer.

    Fields:
    - id: Auto-increment primary key
    - customer_id: Foreign key to customers table (required)
    - amount: Amount due (required)
    - due_date: After this moment a PENDING invoice becomes OVERDUE
    - status: PENDING, OVERDUE, PAID or CANCELLED
    - description: Free text
    """

    __tablename__ = "invoices"

    id: int | None = Field(default=None, primary_key=True)
    customer_id: int = Field(foreign_key="customers.id", nullable=False, index=True)
    amount: float = Field(nullable=False)
    due_date: datetime = Field(nullable=False, index=True, sa_type=UTCDateTime)
    status: InvoiceStatus = Field(default=InvoiceStatus.PENDING, nullable=False, index=True)
    description: str | None = Field(default=None)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
