# ispdesk/models/plan.py
from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel

from ..core.constants import BillingCycle
from .types import UTCDateTime, utcnow


class Plan(SQLModel, table=True):
    __tablename__ = "plans"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(nullable=False, unique=True, index=True)
    price: float = Field(default=0.0)
    billing_cycle: BillingCycle = Field(default=BillingCycle.MONTHLY)
    rate_limit: str = Field(nullable=False)  # ej. "10M/10M"
    # Name of the PPP profile on the router
    profile_name: str = Field(default="default")
    description: Optional[str] = Field(default=None)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
