# ispdesk/services/router_service.py
import logging
from typing import Any, Dict, List

from sqlalchemy import func
from sqlmodel import Session, select

from ..core.constants import API_PORT
from ..models.customer import Customer
from ..models.router import RouterDevice
from ..utils.device_clients.adapter_factory import AdapterFactory, get_router_adapter
from ..utils.device_clients.adapters.base import ConnectionStatus, RouterConnectionError
from ..utils.security import encrypt_data
from .base_service import BaseCRUDService
from .subscriber_sync import SubscriberSyncService, SyncResult

logger = logging.getLogger(__name__)


class RouterInUseError(ValueError):
    pass


class RouterDeviceService(BaseCRUDService[RouterDevice]):
    """
    Stored routers: CRUD, connection tests and secret imports.
    """

    def __init__(self, session: Session, adapter_factory: AdapterFactory = get_router_adapter):
        super().__init__(session, RouterDevice)
        self.adapter_factory = adapter_factory
        self.sync = SubscriberSyncService(session, adapter_factory=adapter_factory)

    def customer_count(self, router_id: int) -> int:
        statement = select(func.count(Customer.id)).where(Customer.router_id == router_id)
        return self.session.exec(statement).one()

    def get_all_routers(self) -> List[Dict[str, Any]]:
        """All routers, newest first, with their customer counts. Passwords are never returned."""
        statement = (
            select(RouterDevice, func.count(Customer.id))
            .join(Customer, Customer.router_id == RouterDevice.id, isouter=True)
            .group_by(RouterDevice.id)
            .order_by(RouterDevice.created_at.desc())
        )
        routers = []
        for router, customers in self.session.exec(statement).all():
            router_dict = router.model_dump(exclude={"encrypted_api_password"})
            router_dict["customer_count"] = customers
            routers.append(router_dict)
        return routers

    def create_router(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Checks the router answers, stores it with an encrypted password and
        imports its secrets.

        A missing RouterOS driver is tolerated (the router is saved and served
        with synthetic data); a driver that cannot reach the router is not.

        Raises:
            RouterConnectionError: the driver is available but the router did not answer.
        """
        if not data.get("host") or not data.get("api_user") or not data.get("password") or not data.get("label"):
            raise ValueError("Missing required fields")

        router = RouterDevice(
            host=data["host"],
            api_port=data.get("api_port") or API_PORT,
            use_ssl=bool(data.get("use_ssl", False)),
            api_user=data["api_user"],
            encrypted_api_password=encrypt_data(data["password"]),
            label=data["label"],
        )

        status = self.check_status(router)
        warning = None
        if not status.using_real_api:
            warning = "RouterOS API not available; router saved and served with synthetic data"
            logger.warning(f"Router {router.host}: {warning}")
        elif not status.connected:
            raise RouterConnectionError(f"Failed to connect to router: {status.message}")

        router = self.save(router)
        logger.info(f"Router {router.host} ({router.label}) added")

        sync_result = None
        try:
            sync_result = self.sync.sync_router(router.id, require_live=False)
        except Exception as e:
            logger.error(f"Initial sync of router {router.host} failed: {e}")

        return {
            "router": router,
            "sync": sync_result,
            "warning": warning,
        }

    def update_router(self, router_id: int, data: Dict[str, Any]) -> RouterDevice:
        if not data:
            raise ValueError("No fields to update provided.")
        data = dict(data)
        password = data.pop("password", None)
        if password:
            data["encrypted_api_password"] = encrypt_data(password)
        return self.update(router_id, data)

    def delete_router(self, router_id: int) -> None:
        self.get_by_id(router_id)
        if self.customer_count(router_id) > 0:
            raise RouterInUseError("Cannot delete router with associated customers")
        self.delete(router_id)

    def check_status(self, router: RouterDevice) -> ConnectionStatus:
        with self.adapter_factory(router) as adapter:
            return adapter.get_connection_status()

    def test_router(self, router_id: int) -> ConnectionStatus:
        return self.check_status(self.get_by_id(router_id))

    def sync_router(self, router_id: int) -> SyncResult:
        return self.sync.sync_router(router_id, require_live=True)
