"""
Pydantic schemas for payment endpoints.
"""
from typing import Dict, Optional
from pydantic import BaseModel, Field

from app.schemas.order import OrderResponse
from app.schemas.subscription import SubscriptionStatusResponse


class CreateCheckoutSessionRequest(BaseModel):
    """Request schema for creating a Stripe checkout session."""
    plan_id: str = Field(..., description="Plan slug to purchase")
    success_url: Optional[str] = Field(None, description="URL to redirect after successful payment")
    cancel_url: Optional[str] = Field(None, description="URL to redirect if payment is canceled")

    class Config:
        json_schema_extra = {
            "example": {
                "plan_id": "starter",
                "success_url": "http://localhost:3000/price-page?status=success",
                "cancel_url": "http://localhost:3000/price-page?status=cancelled"
            }
        }


class CreateCheckoutSessionResponse(BaseModel):
    """Response schema for checkout session creation."""
    checkout_url: str = Field(..., description="Stripe checkout session URL")
    session_id: str = Field(..., description="Stripe checkout session ID")
    order_id: str = Field(..., description="Order created for this checkout")


class PayUOrderRequest(BaseModel):
    """Request schema for starting a PayU payment."""
    plan_id: str = Field(..., description="Plan slug to purchase")
    txnid: Optional[str] = Field(None, description="Client transaction id; generated when omitted", max_length=64)


class PayUOrderResponse(BaseModel):
    order_id: str
    amount: float
    action: str = Field(..., description="PayU payment URL the form posts to")
    fields: Dict[str, str] = Field(..., description="Signed form fields")


class PayUVerifyRequest(BaseModel):
    txnid: str = Field(..., min_length=1)


class PaymentResultResponse(BaseModel):
    """Outcome of settling an order."""
    order: OrderResponse
    subscription: Optional[SubscriptionStatusResponse] = None
    already_activated: bool = False


class BillingErrorResponse(BaseModel):
    """Error response schema for domain errors."""
    error: str = Field(..., description="Error code")
    detail: Optional[str] = Field(None, description="Additional error details")

    class Config:
        json_schema_extra = {
            "example": {
                "error": "invalid_plan_for_payment",
                "detail": "Silver plan is free and does not require payment"
            }
        }
