# ispdesk/models/router.py
from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel

from ..core.constants import API_PORT
from .types import UTCDateTime, utcnow


class RouterDevice(SQLModel, table=True):
    """
    A managed MikroTik router.

    The API password is stored as a Fernet token (see utils.security);
    it is only kept in clear text when no ENCRYPTION_KEY is configured.
    """

    __tablename__ = "routers"

    id: Optional[int] = Field(default=None, primary_key=True)
    host: str = Field(nullable=False, index=True)
    api_port: int = Field(default=API_PORT)
    use_ssl: bool = Field(default=False)
    api_user: str = Field(nullable=False)
    encrypted_api_password: str = Field(nullable=False)
    label: str = Field(nullable=False)
    is_active: bool = Field(default=True)
    last_sync: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
