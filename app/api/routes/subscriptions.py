"""
Subscription endpoints for the current account.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db.models.user import User
from app.core.auth_dependency import get_db, get_current_user_obj
from app.schemas.subscription import InterviewEligibilityResponse, SubscriptionStatusResponse
from app.services.subscription_service import check_interview_eligibility, get_subscription_status

router = APIRouter(prefix="/subscriptions", tags=["Subscriptions"])


@router.get("/me", response_model=SubscriptionStatusResponse)
def my_subscription(
    user: User = Depends(get_current_user_obj),
    db: Session = Depends(get_db)
):
    return get_subscription_status(db, user.id)


@router.get("/me/interview-eligibility", response_model=InterviewEligibilityResponse)
def my_interview_eligibility(
    user: User = Depends(get_current_user_obj),
    db: Session = Depends(get_db)
):
    """Whether the current plan grants an immediate interview call."""
    return check_interview_eligibility(db, user.id)
