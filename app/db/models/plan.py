"""
Plan model: subscription tiers and their entitlements.
"""
from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime
from sqlalchemy.sql import func
from app.db.base import Base

RECRUITER_PRIORITIES = ("none", "medium", "highest")
BILLING_TYPES = ("one-time", "monthly", "yearly")


class Plan(Base):
    """
    Subscription plan offered on the pricing page.

    Plans are never deleted; retiring a plan sets is_active=False. Edits only
    affect future activations since subscriptions snapshot what they need.
    """
    __tablename__ = "plans"

    id = Column(Integer, primary_key=True, index=True)
    plan_id = Column(String, unique=True, nullable=False, index=True)  # slug, e.g. "starter"
    name = Column(String, nullable=False)

    # Pricing
    price = Column(Float, nullable=False, default=0)
    gst = Column(Float, nullable=False, default=0)
    total_amount = Column(Float, nullable=False, default=0)
    currency = Column(String(3), nullable=False, default="INR")
    validity_months = Column(Integer, nullable=False, default=0)
    billing_type = Column(String, nullable=False, default="one-time")  # one-time | monthly | yearly

    # Features
    can_apply = Column(Boolean, nullable=False, default=True)
    recruiter_priority = Column(String, nullable=False, default="none")  # none | medium | highest
    immediate_interview_call = Column(Boolean, nullable=False, default=False)
    profile_boosted = Column(Boolean, nullable=False, default=False)
    dedicated_manager = Column(Boolean, nullable=False, default=False)
    resume_review_count = Column(Integer, nullable=False, default=0)

    # Employer plans: active posting units granted on activation
    job_posting_limit = Column(Integer, nullable=False, default=0)

    is_active = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Plan(plan_id='{self.plan_id}', price={self.price}, active={self.is_active})>"
