"""
Pydantic schemas for subscription endpoints.
"""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field


class SubscriptionStatusResponse(BaseModel):
    plan_type: str
    status: str = Field(..., description="active | expired")
    is_active: bool
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    card_number: Optional[str] = Field(None, description="12-digit membership card number")
    expiry_month: Optional[str] = None
    expiry_year: Optional[str] = None
    immediate_interview_call: bool = False

    class Config:
        json_schema_extra = {
            "example": {
                "plan_type": "premium",
                "status": "active",
                "is_active": True,
                "start_date": "2026-01-31T10:00:00",
                "end_date": "2027-01-31T10:00:00",
                "card_number": "451234567890",
                "expiry_month": "01",
                "expiry_year": "2027",
                "immediate_interview_call": True,
            }
        }


class InterviewEligibilityResponse(BaseModel):
    has_immediate_call: bool
    plan_type: str
    is_active: bool
