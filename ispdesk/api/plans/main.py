# ispdesk/api/plans/main.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session

from ...db.engine_sync import get_sync_session
from ...services.plan_service import PlanService
from .models import PlanCreate, PlanResponse, PlanUpdate

router = APIRouter()


# --- Dependency Injection ---
def get_plan_service(session: Session = Depends(get_sync_session)) -> PlanService:
    return PlanService(session)


# --- Endpoints ---


@router.get("/plans", response_model=List[PlanResponse])
def get_all_plans(service: PlanService = Depends(get_plan_service)):
    """All plans, cheapest first."""
    return service.get_all_plans()


@router.get("/plans/{plan_id}", response_model=PlanResponse)
def get_plan(plan_id: int, service: PlanService = Depends(get_plan_service)):
    plan = service.get_by_id(plan_id)
    return {**plan.model_dump(), "customer_count": service.customer_count(plan_id)}


@router.post("/plans", response_model=PlanResponse, status_code=status.HTTP_201_CREATED)
def create_plan(plan: PlanCreate, service: PlanService = Depends(get_plan_service)):
    try:
        new_plan = service.create_plan(plan.model_dump())
        return {**new_plan.model_dump(), "customer_count": 0}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.put("/plans/{plan_id}", response_model=PlanResponse)
def update_plan(plan_id: int, plan_update: PlanUpdate, service: PlanService = Depends(get_plan_service)):
    update_fields = plan_update.model_dump(exclude_unset=True)
    if not update_fields:
        raise HTTPException(status_code=400, detail="No fields to update provided.")
    try:
        plan = service.update_plan(plan_id, update_fields)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {**plan.model_dump(), "customer_count": service.customer_count(plan_id)}


@router.delete("/plans/{plan_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_plan(plan_id: int, service: PlanService = Depends(get_plan_service)):
    try:
        service.delete_plan(plan_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return
