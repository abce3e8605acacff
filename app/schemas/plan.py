"""
Pydantic schemas for plan endpoints.
"""
from pydantic import BaseModel, Field


class PlanFeatures(BaseModel):
    can_apply: bool
    recruiter_priority: str = Field(..., description="none | medium | highest")
    immediate_interview_call: bool
    profile_boosted: bool
    dedicated_manager: bool
    resume_review_count: int
    job_posting_limit: int = Field(0, description="Active posting units granted to employers")


class PlanResponse(BaseModel):
    """Public view of a plan."""
    plan_id: str = Field(..., description="Plan slug")
    name: str
    price: float
    gst: float
    total_amount: float
    currency: str
    validity_months: int
    billing_type: str
    features: PlanFeatures

    @classmethod
    def from_plan(cls, plan) -> "PlanResponse":
        return cls(
            plan_id=plan.plan_id,
            name=plan.name,
            price=plan.price,
            gst=plan.gst,
            total_amount=plan.total_amount,
            currency=plan.currency,
            validity_months=plan.validity_months,
            billing_type=plan.billing_type,
            features=PlanFeatures(
                can_apply=plan.can_apply,
                recruiter_priority=plan.recruiter_priority,
                immediate_interview_call=plan.immediate_interview_call,
                profile_boosted=plan.profile_boosted,
                dedicated_manager=plan.dedicated_manager,
                resume_review_count=plan.resume_review_count,
                job_posting_limit=plan.job_posting_limit or 0,
            ),
        )

    class Config:
        json_schema_extra = {
            "example": {
                "plan_id": "starter",
                "name": "Starter",
                "price": 15000,
                "gst": 2700,
                "total_amount": 17700,
                "currency": "INR",
                "validity_months": 6,
                "billing_type": "one-time",
                "features": {
                    "can_apply": True,
                    "recruiter_priority": "medium",
                    "immediate_interview_call": False,
                    "profile_boosted": True,
                    "dedicated_manager": False,
                    "resume_review_count": 1,
                    "job_posting_limit": 0,
                },
            }
        }
