from datetime import datetime

from pydantic import BaseModel

from ...core.constants import BillingCycle


class PlanBase(BaseModel):
    name: str
    price: float = 0.0
    billing_cycle: BillingCycle = BillingCycle.MONTHLY
    rate_limit: str
    profile_name: str = "default"
    description: str | None = None
    is_active: bool = True


class PlanCreate(PlanBase):
    pass


class PlanUpdate(BaseModel):
    name: str | None = None
    price: float | None = None
    billing_cycle: BillingCycle | None = None
    rate_limit: str | None = None
    profile_name: str | None = None
    description: str | None = None
    is_active: bool | None = None


class PlanResponse(PlanBase):
    id: int
    created_at: datetime
    updated_at: datetime
    customer_count: int = 0
