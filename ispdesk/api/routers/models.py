from datetime import datetime
from typing import Any

from pydantic import BaseModel

from ...core.constants import API_PORT, DataSource


class RouterResponse(BaseModel):
    id: int
    host: str
    api_port: int
    use_ssl: bool
    api_user: str
    label: str
    is_active: bool
    last_sync: datetime | None = None
    created_at: datetime
    updated_at: datetime
    customer_count: int | None = None


class RouterCreate(BaseModel):
    host: str
    api_user: str
    password: str
    label: str
    api_port: int = API_PORT
    use_ssl: bool = False


class RouterUpdate(BaseModel):
    host: str | None = None
    api_user: str | None = None
    password: str | None = None
    label: str | None = None
    api_port: int | None = None
    use_ssl: bool | None = None
    is_active: bool | None = None


class SyncResponse(BaseModel):
    synced: int
    created: int
    updated: int
    unchanged: int
    last_sync: datetime | None = None
    source: DataSource | None = None


class RouterCreateResponse(BaseModel):
    router: RouterResponse
    sync: SyncResponse | None = None
    warning: str | None = None


class ConnectionTestResponse(BaseModel):
    connected: bool
    using_real_api: bool
    message: str
    resources: dict[str, Any] = {}
