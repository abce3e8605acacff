"""
Upsert the default plan catalogue and deactivate retired plans.
Run: python -m scripts.seed_plans
"""
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import logging
from sqlalchemy.orm import Session

from app.db.session import SessionLocal
from app.db.models.plan import Plan
from app.core.config import DEFAULT_CURRENCY
from app.core.plan_defaults import DEFAULT_PLANS, RETIRED_PLAN_IDS

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def seed_plans(db: Session) -> dict:
    """
    Upsert DEFAULT_PLANS by plan_id and deactivate RETIRED_PLAN_IDS.

    Returns:
        Counts of created, updated and deactivated plans
    """
    deactivated = (
        db.query(Plan)
        .filter(Plan.plan_id.in_(RETIRED_PLAN_IDS), Plan.is_active.is_(True))
        .update({Plan.is_active: False}, synchronize_session=False)
    )

    created = updated = 0
    for plan_data in DEFAULT_PLANS:
        plan = db.query(Plan).filter(Plan.plan_id == plan_data["plan_id"]).first()
        if plan is None:
            plan = Plan(plan_id=plan_data["plan_id"], currency=DEFAULT_CURRENCY)
            db.add(plan)
            created += 1
        else:
            updated += 1
        for field, value in plan_data.items():
            setattr(plan, field, value)
        plan.is_active = True

    db.commit()
    logger.info(f"Plans seeded: created={created}, updated={updated}, deactivated={deactivated}")
    return {"created": created, "updated": updated, "deactivated": deactivated}


if __name__ == "__main__":
    db = SessionLocal()
    try:
        seed_plans(db)
    except Exception as e:
        logger.error(f"Plan seeding failed: {e}", exc_info=True)
        db.rollback()
        sys.exit(1)
    finally:
        db.close()
