"""
Plan catalog endpoints (public).
"""
from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_db
from app.schemas.plan import PlanResponse
from app.services.plan_catalog import find_active_plan, list_active_plans

router = APIRouter(prefix="/plans", tags=["Plans"])


@router.get("", response_model=List[PlanResponse])
def get_plans(db: Session = Depends(get_db)):
    """Active plans, cheapest first."""
    return [PlanResponse.from_plan(plan) for plan in list_active_plans(db)]


@router.get("/{plan_id}", response_model=PlanResponse)
def get_plan(plan_id: str, db: Session = Depends(get_db)):
    return PlanResponse.from_plan(find_active_plan(db, plan_id))
