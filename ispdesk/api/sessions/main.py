# ispdesk/api/sessions/main.py
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from sqlmodel import Session

from ...core.websockets import manager
from ...db.engine_sync import get_sync_session
from ...services.session_service import SessionService
from ...utils.device_clients.adapter_factory import AdapterFactory
from ...utils.device_clients.adapters.base import RouterCommandError, RouterConnectionError
from ..dependencies import get_adapter_factory
from .models import ActiveSessionResponse

router = APIRouter()


def get_session_service(
    session: Session = Depends(get_sync_session),
    adapter_factory: AdapterFactory = Depends(get_adapter_factory),
) -> SessionService:
    return SessionService(session, adapter_factory=adapter_factory)


@router.get("/sessions", response_model=List[ActiveSessionResponse])
def get_active_sessions(service: SessionService = Depends(get_session_service)):
    """Live PPPoE sessions on every active router."""
    return service.list_active_sessions()


@router.delete("/sessions/{router_id}/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
def disconnect_session(
    router_id: int,
    session_id: str,
    background_tasks: BackgroundTasks,
    service: SessionService = Depends(get_session_service),
):
    try:
        service.disconnect(router_id, session_id)
    except (RouterConnectionError, RouterCommandError) as e:
        raise HTTPException(status_code=400, detail=f"Failed to disconnect session: {e}")

    background_tasks.add_task(
        manager.broadcast_event,
        "sessions_updated",
        {"action": "disconnected", "router_id": router_id, "session_id": session_id},
    )
    return
