# ispdesk/api/invoices/main.py
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from sqlmodel import Session

from ...core.constants import InvoiceStatus
from ...core.websockets import manager
from ...db.engine_sync import get_sync_session
from ...services.invoice_service import InvoiceService
from ...utils.device_clients.adapter_factory import AdapterFactory
from ..dependencies import get_adapter_factory
from .models import Invoice, InvoiceCreate, InvoicePayment, InvoiceUpdate, InvoiceWriteResult

router = APIRouter()


def get_invoice_service(
    session: Session = Depends(get_sync_session),
    adapter_factory: AdapterFactory = Depends(get_adapter_factory),
) -> InvoiceService:
    return InvoiceService(session, adapter_factory=adapter_factory)


def _notify(background_tasks: BackgroundTasks, action: str, result: dict) -> None:
    invoice = result["invoice"]
    background_tasks.add_task(
        manager.broadcast_event,
        "invoice_updated",
        {"action": action, "invoice_id": invoice.id, "customer_id": invoice.customer_id},
    )
    if result.get("customer_reactivated"):
        background_tasks.add_task(
            manager.broadcast_event,
            "customer_updated",
            {"action": "reactivated", "customer_id": invoice.customer_id},
        )


@router.get("/invoices", response_model=list[Invoice])
def api_get_invoices(
    customer_id: int | None = None,
    invoice_status: InvoiceStatus | None = Query(None, alias="status"),
    service: InvoiceService = Depends(get_invoice_service),
):
    return service.list_invoices(customer_id=customer_id, status=invoice_status)


@router.get("/invoices/{invoice_id}", response_model=Invoice)
def api_get_invoice(invoice_id: int, service: InvoiceService = Depends(get_invoice_service)):
    return service.get_by_id(invoice_id)


@router.post("/invoices", response_model=Invoice, status_code=status.HTTP_201_CREATED)
def api_create_invoice(
    invoice: InvoiceCreate,
    background_tasks: BackgroundTasks,
    service: InvoiceService = Depends(get_invoice_service),
):
    try:
        new_invoice = service.create_invoice(invoice.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    _notify(background_tasks, "created", {"invoice": new_invoice})
    return new_invoice


@router.put("/invoices/{invoice_id}", response_model=InvoiceWriteResult)
def api_update_invoice(
    invoice_id: int,
    invoice_update: InvoiceUpdate,
    background_tasks: BackgroundTasks,
    service: InvoiceService = Depends(get_invoice_service),
):
    try:
        result = service.update_invoice(invoice_id, invoice_update.model_dump(exclude_unset=True))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    _notify(background_tasks, "updated", result)
    return result


@router.post("/invoices/{invoice_id}/pay", response_model=InvoiceWriteResult)
def api_pay_invoice(
    invoice_id: int,
    background_tasks: BackgroundTasks,
    payment: InvoicePayment | None = None,
    service: InvoiceService = Depends(get_invoice_service),
):
    payment = payment or InvoicePayment()
    result = service.mark_paid(
        invoice_id,
        reactivate_customer=payment.reactivate_customer,
        enable_on_device=payment.enable_on_device,
    )
    _notify(background_tasks, "paid", result)
    return result


@router.delete("/invoices/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT)
def api_delete_invoice(
    invoice_id: int,
    background_tasks: BackgroundTasks,
    service: InvoiceService = Depends(get_invoice_service),
):
    service.delete(invoice_id)
    background_tasks.add_task(
        manager.broadcast_event, "invoice_updated", {"action": "deleted", "invoice_id": invoice_id}
    )
    return
