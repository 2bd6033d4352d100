# ispdesk/api/billing/main.py
from fastapi import APIRouter, BackgroundTasks, Depends
from sqlmodel import Session

from ...core.websockets import manager
from ...db.engine_sync import get_sync_session
from ...services.billing_service import BillingService
from ...utils.device_clients.adapter_factory import AdapterFactory
from ..dependencies import get_adapter_factory

router = APIRouter()


def get_billing_service(
    session: Session = Depends(get_sync_session),
    adapter_factory: AdapterFactory = Depends(get_adapter_factory),
) -> BillingService:
    return BillingService(session, adapter_factory=adapter_factory)


@router.post("/billing/run")
def run_billing(background_tasks: BackgroundTasks, service: BillingService = Depends(get_billing_service)):
    """Runs one overdue-invoice sweep now, outside the schedule."""
    stats = service.process_overdue_invoices()
    if stats["overdue"]:
        background_tasks.add_task(manager.broadcast_event, "invoice_updated", {"action": "overdue_sweep"})
    if stats["suspended"]:
        background_tasks.add_task(manager.broadcast_event, "customer_updated", {"action": "suspended"})
    return stats
