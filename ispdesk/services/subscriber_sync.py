# ispdesk/services/subscriber_sync.py
"""
Mirrors router PPPoE secrets and local customers.

Pull: `sync_router` copies the router's secret table into the customers table
(one-way, idempotent on username).

Push: explicit admin actions call the `push_*` methods, which locate the secret
by username on the live router and change it there. The database stays
authoritative: callers save first and use `try_push` so a device failure is
logged and reported, never rolled back.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, List, Optional

from fastapi import HTTPException
from sqlmodel import Session, select

from ..core.constants import CustomerStatus, DataSource
from ..models.customer import Customer
from ..models.router import RouterDevice
from ..models.types import utcnow
from ..utils.device_clients.adapter_factory import AdapterFactory, get_router_adapter
from ..utils.device_clients.adapters.base import (
    RouterCommandError,
    RouterConnectionError,
    RouterDriverUnavailableError,
    Subscriber,
)

logger = logging.getLogger(__name__)


class SubscriberNotFoundError(RouterCommandError):
    """No PPPoE secret with the customer's username exists on the router."""


@dataclass
class SyncResult:
    synced: int = 0
    created: int = 0
    updated: int = 0
    unchanged: int = 0
    last_sync: Optional[datetime] = None
    source: Optional[DataSource] = None


@dataclass
class DeviceSyncOutcome:
    """Result of pushing a change to the router after the database was saved."""
    synced: bool
    error: Optional[str] = None
    details: List[str] = field(default_factory=list)


def status_for_subscriber(subscriber: Subscriber) -> CustomerStatus:
    return CustomerStatus.SUSPENDED if subscriber.disabled else CustomerStatus.ACTIVE


class SubscriberSyncService:
    def __init__(self, session: Session, adapter_factory: AdapterFactory = get_router_adapter):
        self.session = session
        self.adapter_factory = adapter_factory

    def _get_router(self, router_id: int) -> RouterDevice:
        router = self.session.get(RouterDevice, router_id)
        if not router:
            raise HTTPException(status_code=404, detail="Router not found")
        return router

    # --- Pull: router -> database ---

    def sync_router(self, router_id: int, require_live: bool = True) -> SyncResult:
        """
        Pulls all PPPoE secrets of a router into the customers table.

        With `require_live`, the sync refuses to run on synthetic data:

        Raises:
            RouterDriverUnavailableError: no RouterOS API driver is configured.
            RouterConnectionError: the router did not answer.
        """
        router = self._get_router(router_id)

        with self.adapter_factory(router) as adapter:
            if require_live:
                status = adapter.get_connection_status()
                if not status.using_real_api:
                    raise RouterDriverUnavailableError(
                        "Cannot sync: RouterOS API not available. Using mock data only."
                    )
                if not status.connected:
                    raise RouterConnectionError(f"Failed to connect to router: {status.message}")

            subscribers = adapter.get_subscribers()
            source = adapter.last_source

        if require_live and source != DataSource.LIVE:
            raise RouterConnectionError(
                f"Router {router.host} stopped answering during sync; nothing was imported."
            )

        result = self.apply_subscribers(router, subscribers)
        result.source = source
        logger.info(
            f"[Sync] {router.host}: {result.synced} secrets "
            f"({result.created} created, {result.updated} updated, {result.unchanged} unchanged, source={source})"
        )
        return result

    def apply_subscribers(self, router: RouterDevice, subscribers: List[Subscriber]) -> SyncResult:
        """Creates or overwrites customers from a secret list. Unchanged rows are not written."""
        result = SyncResult()

        for subscriber in subscribers:
            if not subscriber.name:
                continue
            status = status_for_subscriber(subscriber)
            customer = self.session.exec(
                select(Customer).where(Customer.username == subscriber.name)
            ).first()

            if customer is None:
                self.session.add(
                    Customer(
                        username=subscriber.name,
                        password=subscriber.password,
                        status=status,
                        router_id=router.id,
                    )
                )
                result.created += 1
            elif (
                customer.password != subscriber.password
                or customer.status != status
                or customer.router_id != router.id
            ):
                customer.password = subscriber.password
                customer.status = status
                customer.router_id = router.id
                customer.updated_at = utcnow()
                self.session.add(customer)
                result.updated += 1
            else:
                result.unchanged += 1
            result.synced += 1

        router.last_sync = utcnow()
        self.session.add(router)
        self.session.commit()
        self.session.refresh(router)
        result.last_sync = router.last_sync
        return result

    # --- Push: database -> router ---

    def push_create(
        self,
        router: RouterDevice,
        username: str,
        password: str,
        profile: str = "default",
        disabled: bool = False,
    ) -> Optional[str]:
        with self.adapter_factory(router) as adapter:
            return adapter.add_subscriber(
                Subscriber(
                    name=username,
                    password=password,
                    service="pppoe",
                    profile=profile,
                    disabled=disabled,
                )
            )

    def push_update(self, router: RouterDevice, username: str, **updates: Any) -> None:
        """Partial update of the secret currently named `username`."""
        updates = {k: v for k, v in updates.items() if v is not None}
        if not updates:
            return
        with self.adapter_factory(router) as adapter:
            secret = adapter.find_subscriber(username, require_live=True)
            if secret is None:
                raise SubscriberNotFoundError(f"PPPoE secret '{username}' not found on {router.host}")
            adapter.update_subscriber(secret.id, **updates)

    def push_status(
        self, router: RouterDevice, username: str, disabled: bool, disconnect: bool = False
    ) -> List[str]:
        """
        Enables or disables the secret; with `disconnect`, also kills the live
        session so the customer is cut immediately. A missing secret is
        reported in the details and does not stop the disconnect.
        """
        details = []
        with self.adapter_factory(router) as adapter:
            secret = adapter.find_subscriber(username, require_live=True)
            if secret is None:
                logger.warning(f"[Sync] Secret '{username}' not found on {router.host}")
                details.append("secret not found")
            else:
                adapter.set_subscriber_disabled(secret.id, disabled)
                details.append("secret disabled" if disabled else "secret enabled")

            if disconnect:
                session = adapter.find_session(username, require_live=True)
                if session is not None:
                    adapter.disconnect_session(session.id)
                    details.append("session disconnected")
        return details

    def push_delete(self, router: RouterDevice, username: str) -> None:
        with self.adapter_factory(router) as adapter:
            secret = adapter.find_subscriber(username, require_live=True)
            if secret is None:
                logger.info(f"[Sync] Secret '{username}' already absent on {router.host}")
                return
            adapter.remove_subscriber(secret.id)

    def try_push(self, description: str, operation: Callable[..., Any], *args, **kwargs) -> DeviceSyncOutcome:
        """
        Runs a push operation without letting device errors escape.
        The database change that preceded it is kept either way.
        """
        try:
            details = operation(*args, **kwargs)
        except (RouterConnectionError, RouterCommandError) as e:
            logger.error(f"[Sync] {description} not applied on router: {e}. Database change kept.")
            return DeviceSyncOutcome(synced=False, error=str(e))
        return DeviceSyncOutcome(synced=True, details=details if isinstance(details, list) else [])
