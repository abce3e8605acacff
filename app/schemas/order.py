"""
Pydantic schemas for order endpoints.
"""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field


class OrderResponse(BaseModel):
    """Schema for an order in the ledger."""
    order_id: str = Field(..., description="Gateway transaction id")
    gateway: str
    plan_id: str
    amount: float
    currency: str
    status: str = Field(..., description="created | pending | paid | failed | cancelled")
    gateway_payment_id: Optional[str] = None
    error_message: Optional[str] = None
    subscription_start: Optional[datetime] = None
    subscription_end: Optional[datetime] = None
    verified_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True
