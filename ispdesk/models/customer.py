# ispdesk/models/customer.py
"""
Customer model for ISP subscribers.
"""
from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel

from ..core.constants import CustomerStatus
from .types import UTCDateTime, utcnow


class Customer(SQLModel, table=True):
    """
    Customer model representing an ISP subscriber.

    Fields:
    - id: Auto-increment primary key
    - username: PPPoE account name, unique across all routers
    - password: PPPoE password (mirrors the router secret)
    - status: ACTIVE, SUSPENDED or DISABLED
    - router_id: Router holding the PPPoE secret
    - plan_id: Optional service plan
    """

    __tablename__ = "customers"

    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(nullable=False, unique=True, index=True)
    password: str = Field(nullable=False)
    status: CustomerStatus = Field(default=CustomerStatus.ACTIVE, nullable=False)
    router_id: int = Field(foreign_key="routers.id", nullable=False, index=True)
    plan_id: Optional[int] = Field(default=None, foreign_key="plans.id", index=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
