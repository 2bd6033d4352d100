# ispdesk/api/customers/main.py
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from sqlmodel import Session

from ...core.websockets import manager
from ...db.engine_sync import get_sync_session
from ...services.customer_service import CustomerService
from ...services.subscriber_sync import DeviceSyncOutcome
from ...utils.device_clients.adapter_factory import AdapterFactory
from ..dependencies import get_adapter_factory
from .models import (
    Customer,
    CustomerCreate,
    CustomerStatusChange,
    CustomerUpdate,
    CustomerWriteResult,
    DeviceSyncResult,
)

router = APIRouter()


# --- Dependency Injectors ---
def get_customer_service(
    session: Session = Depends(get_sync_session),
    adapter_factory: AdapterFactory = Depends(get_adapter_factory),
) -> CustomerService:
    return CustomerService(session, adapter_factory=adapter_factory)


def _write_result(customer, outcome: DeviceSyncOutcome) -> dict:
    return {
        "customer": customer,
        "device_synced": outcome.synced,
        "device_error": outcome.error,
        "device_details": outcome.details,
    }


# --- Endpoints ---


@router.get("/customers", response_model=list[Customer])
def api_get_all_customers(service: CustomerService = Depends(get_customer_service)):
    return service.get_all_customers()


@router.get("/customers/{customer_id}", response_model=Customer)
def api_get_customer(customer_id: int, service: CustomerService = Depends(get_customer_service)):
    return service.get_by_id(customer_id)


@router.post("/customers", response_model=CustomerWriteResult, status_code=status.HTTP_201_CREATED)
def api_create_customer(
    customer: CustomerCreate,
    background_tasks: BackgroundTasks,
    service: CustomerService = Depends(get_customer_service),
):
    try:
        new_customer, outcome = service.create_customer(customer.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    background_tasks.add_task(
        manager.broadcast_event, "customer_updated", {"action": "created", "customer_id": new_customer.id}
    )
    return _write_result(new_customer, outcome)


@router.put("/customers/{customer_id}", response_model=CustomerWriteResult)
def api_update_customer(
    customer_id: int,
    customer_update: CustomerUpdate,
    background_tasks: BackgroundTasks,
    service: CustomerService = Depends(get_customer_service),
):
    update_fields = customer_update.model_dump(exclude_unset=True)
    try:
        updated, outcome = service.update_customer(customer_id, update_fields)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    background_tasks.add_task(
        manager.broadcast_event, "customer_updated", {"action": "updated", "customer_id": customer_id}
    )
    return _write_result(updated, outcome)


@router.post("/customers/{customer_id}/status", response_model=CustomerWriteResult)
def api_change_customer_status(
    customer_id: int,
    change: CustomerStatusChange,
    background_tasks: BackgroundTasks,
    service: CustomerService = Depends(get_customer_service),
):
    try:
        customer, outcome = service.set_status(customer_id, change.action)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    background_tasks.add_task(
        manager.broadcast_event,
        "customer_updated",
        {"action": change.action, "customer_id": customer_id, "status": customer.status.value},
    )
    return _write_result(customer, outcome)


@router.delete("/customers/{customer_id}", response_model=DeviceSyncResult)
def api_delete_customer(
    customer_id: int,
    background_tasks: BackgroundTasks,
    service: CustomerService = Depends(get_customer_service),
):
    outcome = service.delete_customer(customer_id)
    background_tasks.add_task(
        manager.broadcast_event, "customer_updated", {"action": "deleted", "customer_id": customer_id}
    )
    return {"device_synced": outcome.synced, "device_error": outcome.error}
