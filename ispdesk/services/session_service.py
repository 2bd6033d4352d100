# ispdesk/services/session_service.py
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlmodel import Session, select

from ..models.customer import Customer
from ..models.router import RouterDevice
from ..models.types import as_utc, utcnow
from ..utils.device_clients.adapter_factory import AdapterFactory, get_router_adapter
from ..utils.device_clients.mikrotik.parsers import parse_uptime
from .base_service import BaseCRUDService

logger = logging.getLogger(__name__)


class SessionService:
    """Live PPPoE sessions across every active router."""

    def __init__(self, session: Session, adapter_factory: AdapterFactory = get_router_adapter):
        self.session = session
        self.adapter_factory = adapter_factory
        self.routers = BaseCRUDService(session, RouterDevice)

    def list_active_sessions(self, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
        """
        One row per active session, joined to the local customer by username.
        A router that fails is logged and skipped; the others are still listed.
        """
        now = as_utc(now) or utcnow()
        routers = self.session.exec(select(RouterDevice).where(RouterDevice.is_active == True)).all()  # noqa: E712
        customers = {c.username: c for c in self.session.exec(select(Customer)).all()}

        sessions = []
        for router in routers:
            try:
                with self.adapter_factory(router) as adapter:
                    active = adapter.get_active_sessions()
                    source = adapter.last_source
            except Exception as e:
                logger.error(f"Error listing sessions on router {router.host}: {e}")
                continue

            for item in active:
                customer = customers.get(item.name)
                sessions.append(
                    {
                        "id": item.id,
                        "username": item.name,
                        "address": item.address,
                        "caller_id": item.caller_id,
                        "uptime": item.uptime,
                        "connected_at": now - timedelta(seconds=parse_uptime(item.uptime)),
                        "bytes_in": item.bytes_in,
                        "bytes_out": item.bytes_out,
                        "router_id": router.id,
                        "router_label": router.label,
                        "customer_id": customer.id if customer else None,
                        "customer_status": customer.status if customer else None,
                        "source": source,
                    }
                )
        return sessions

    def disconnect(self, router_id: int, session_id: str) -> None:
        """
        Kills one live session.

        Raises:
            RouterConnectionError / RouterCommandError: the router refused or is unreachable.
        """
        router = self.routers.get_by_id(router_id)
        with self.adapter_factory(router) as adapter:
            adapter.disconnect_session(session_id)
        logger.info(f"Session {session_id} disconnected on router {router.host}")
