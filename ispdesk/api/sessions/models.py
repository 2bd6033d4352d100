from datetime import datetime

from pydantic import BaseModel

from ...core.constants import CustomerStatus, DataSource


class ActiveSessionResponse(BaseModel):
    id: str
    username: str
    address: str = ""
    caller_id: str = ""
    uptime: str = ""
    connected_at: datetime
    bytes_in: int = 0
    bytes_out: int = 0
    router_id: int
    router_label: str
    customer_id: int | None = None
    customer_status: CustomerStatus | None = None
    source: DataSource | None = None
