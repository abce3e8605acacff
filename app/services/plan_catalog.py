"""
Plan catalog service.

Read-only access to subscription plans. Plan writes come from the seed script.
"""
import logging
from typing import List
from sqlalchemy.orm import Session

from app.db.models.plan import Plan
from app.core.config import FREE_PLAN_ID
from app.core.exceptions import PlanNotFound

logger = logging.getLogger(__name__)


def find_active_plan(db: Session, plan_id: str) -> Plan:
    """
    Get an active plan by slug.

    Raises:
        PlanNotFound: If the plan does not exist or has been deactivated
    """
    plan = db.query(Plan).filter(Plan.plan_id == plan_id, Plan.is_active.is_(True)).first()
    if not plan:
        raise PlanNotFound(f"Plan not found: {plan_id}")
    return plan


def list_active_plans(db: Session) -> List[Plan]:
    """List active plans, cheapest first."""
    return (
        db.query(Plan)
        .filter(Plan.is_active.is_(True))
        .order_by(Plan.price.asc(), Plan.plan_id.asc())
        .all()
    )


def is_free_plan(plan: Plan) -> bool:
    """The entry tier never goes through payment activation."""
    return plan.plan_id == FREE_PLAN_ID or (plan.total_amount or 0) <= 0
