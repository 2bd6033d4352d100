from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict

from ...core.constants import CustomerStatus


class Customer(BaseModel):
    id: int
    username: str
    status: CustomerStatus
    router_id: int
    plan_id: int | None = None
    created_at: datetime
    updated_at: datetime
    router_label: str | None = None
    plan_name: str | None = None
    invoice_count: int | None = 0
    model_config = ConfigDict(from_attributes=True)


class CustomerCreate(BaseModel):
    username: str
    password: str
    router_id: int
    plan_id: int | None = None


class CustomerUpdate(BaseModel):
    username: str | None = None
    password: str | None = None
    plan_id: int | None = None
    status: CustomerStatus | None = None


class CustomerStatusChange(BaseModel):
    action: Literal["suspend", "activate"]


class CustomerWriteResult(BaseModel):
    """A saved customer plus whether the change reached the router."""
    customer: Customer
    device_synced: bool
    device_error: str | None = None
    device_details: list[str] = []


class DeviceSyncResult(BaseModel):
    device_synced: bool
    device_error: str | None = None
