# ispdesk/api/routers/main.py
import logging
from dataclasses import asdict
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from sqlmodel import Session

from ...core.websockets import manager
from ...db.engine_sync import get_sync_session
from ...services.router_service import RouterDeviceService
from ...utils.device_clients.adapter_factory import AdapterFactory
from ...utils.device_clients.adapters.base import RouterCommandError, RouterConnectionError
from ..dependencies import get_adapter_factory
from .models import (
    ConnectionTestResponse,
    RouterCreate,
    RouterCreateResponse,
    RouterResponse,
    RouterUpdate,
    SyncResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def get_router_service(
    session: Session = Depends(get_sync_session),
    adapter_factory: AdapterFactory = Depends(get_adapter_factory),
) -> RouterDeviceService:
    return RouterDeviceService(session, adapter_factory=adapter_factory)


def _router_dict(service: RouterDeviceService, router_device) -> dict:
    return {
        **router_device.model_dump(exclude={"encrypted_api_password"}),
        "customer_count": service.customer_count(router_device.id),
    }


# --- Endpoints CRUD ---
@router.get("/routers", response_model=List[RouterResponse])
def get_all_routers(service: RouterDeviceService = Depends(get_router_service)):
    return service.get_all_routers()


@router.get("/routers/{router_id}", response_model=RouterResponse)
def get_router(router_id: int, service: RouterDeviceService = Depends(get_router_service)):
    return _router_dict(service, service.get_by_id(router_id))


@router.post("/routers", response_model=RouterCreateResponse, status_code=status.HTTP_201_CREATED)
def create_router(
    router_data: RouterCreate,
    background_tasks: BackgroundTasks,
    service: RouterDeviceService = Depends(get_router_service),
):
    try:
        result = service.create_router(router_data.model_dump())
    except (ValueError, RouterConnectionError) as e:
        raise HTTPException(status_code=400, detail=str(e))

    if result["sync"] is not None:
        background_tasks.add_task(manager.broadcast_event, "customer_updated", {"action": "synced"})
    return {
        "router": _router_dict(service, result["router"]),
        "sync": asdict(result["sync"]) if result["sync"] else None,
        "warning": result["warning"],
    }


@router.put("/routers/{router_id}", response_model=RouterResponse)
def update_router(
    router_id: int,
    router_update: RouterUpdate,
    service: RouterDeviceService = Depends(get_router_service),
):
    try:
        updated = service.update_router(router_id, router_update.model_dump(exclude_unset=True))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _router_dict(service, updated)


@router.delete("/routers/{router_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_router(router_id: int, service: RouterDeviceService = Depends(get_router_service)):
    try:
        service.delete_router(router_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return


# --- Device actions ---
@router.post("/routers/{router_id}/test", response_model=ConnectionTestResponse)
def test_router(router_id: int, service: RouterDeviceService = Depends(get_router_service)):
    connection_status = service.test_router(router_id)
    return {
        "connected": connection_status.connected,
        "using_real_api": connection_status.using_real_api,
        "message": connection_status.message,
        "resources": connection_status.extra,
    }


@router.post("/routers/{router_id}/sync", response_model=SyncResponse)
def sync_router(
    router_id: int,
    background_tasks: BackgroundTasks,
    service: RouterDeviceService = Depends(get_router_service),
):
    try:
        result = service.sync_router(router_id)
    except (RouterConnectionError, RouterCommandError) as e:
        logger.warning(f"Sync of router {router_id} refused: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    background_tasks.add_task(
        manager.broadcast_event, "customer_updated", {"action": "synced", "router_id": router_id}
    )
    return asdict(result)
