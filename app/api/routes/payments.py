"""
Payment endpoints for Stripe Checkout and the PayU redirect flow.

Each checkout creates an order first; the gateway outcome (webhook, callback
or server-side verify) settles it through the order ledger and activates the
subscription. Confirmation emails go out as background tasks.
"""
import logging
from typing import Dict, Union
from urllib.parse import urlencode
from fastapi import APIRouter, BackgroundTasks, Depends, Header, Request, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from app.db.models.order import Order, GATEWAY_PAYU, GATEWAY_STRIPE, ORDER_FAILED, ORDER_CANCELLED
from app.db.models.user import User
from app.core.auth_dependency import get_db, get_current_user_obj
from app.core.config import FRONTEND_URL
from app.core.exceptions import (
    ConflictError,
    GatewayError,
    InvalidPlanForPayment,
    MarketplaceError,
    SignatureVerificationFailed,
)
from app.core.logging_config import sanitize_log_data
from app.schemas.order import OrderResponse
from app.schemas.billing import (
    CreateCheckoutSessionRequest,
    CreateCheckoutSessionResponse,
    PaymentResultResponse,
    PayUOrderRequest,
    PayUOrderResponse,
    PayUVerifyRequest,
)
from app.services import payu_service, stripe_service
from app.services.order_ledger import create_order, mark_failed
from app.services.plan_catalog import find_active_plan, is_free_plan
from app.services.subscription_service import (
    ActivationResult,
    get_subscription_status,
    schedule_confirmation,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["Payments"])


def _payable_plan(db: Session, plan_id: str):
    plan = find_active_plan(db, plan_id)
    if is_free_plan(plan):
        raise InvalidPlanForPayment(f"{plan.name} plan is free and does not require payment")
    return plan


def _payment_result(
    db: Session,
    background_tasks: BackgroundTasks,
    result: Union[ActivationResult, Order],
) -> PaymentResultResponse:
    if isinstance(result, ActivationResult):
        schedule_confirmation(background_tasks, db, result)
        return PaymentResultResponse(
            order=OrderResponse.model_validate(result.order),
            subscription=get_subscription_status(db, result.order.user_id),
            already_activated=result.already_activated,
        )
    return PaymentResultResponse(order=OrderResponse.model_validate(result))


def _frontend_redirect(**params) -> RedirectResponse:
    query = urlencode({k: v for k, v in params.items() if v})
    return RedirectResponse(f"{FRONTEND_URL}/price-page?{query}", status_code=status.HTTP_303_SEE_OTHER)


async def raw_body(request: Request) -> bytes:
    """Raw request body for webhook signature verification."""
    return await request.body()


async def form_params(request: Request) -> Dict[str, str]:
    form = await request.form()
    return {key: str(value) for key, value in form.items()}


# ---------------------------------------------------------------------------
# Stripe
# ---------------------------------------------------------------------------

@router.post("/stripe/checkout", response_model=CreateCheckoutSessionResponse)
def stripe_checkout(
    payload: CreateCheckoutSessionRequest,
    user: User = Depends(get_current_user_obj),
    db: Session = Depends(get_db)
):
    plan = _payable_plan(db, payload.plan_id)
    order = create_order(db, user.id, plan.plan_id, plan.total_amount, GATEWAY_STRIPE, currency=plan.currency)

    try:
        session = stripe_service.create_checkout_session(
            order, plan, user, success_url=payload.success_url, cancel_url=payload.cancel_url
        )
    except GatewayError as e:
        mark_failed(db, order.order_id, e.message)
        raise

    order.gateway_session_id = session.id
    db.commit()

    return CreateCheckoutSessionResponse(checkout_url=session.url, session_id=session.id, order_id=order.order_id)


@router.post("/stripe/webhook")
def stripe_webhook(
    background_tasks: BackgroundTasks,
    payload: bytes = Depends(raw_body),
    stripe_signature: str = Header(None),
    db: Session = Depends(get_db)
):
    event = stripe_service.verify_webhook(payload, stripe_signature)

    try:
        result = stripe_service.dispatch_event(event, db)
    except ConflictError as e:
        # Terminal orders cannot move again; acknowledge so Stripe stops retrying
        logger.warning(f"Webhook ignored: event_id={event['id']}, type={event['type']}, reason={e.message}")
        return {"status": "ignored", "detail": e.message}

    if isinstance(result, ActivationResult):
        schedule_confirmation(background_tasks, db, result)

    return {"status": "success"}


# ---------------------------------------------------------------------------
# PayU
# ---------------------------------------------------------------------------

@router.post("/payu/orders", status_code=status.HTTP_201_CREATED, response_model=PayUOrderResponse)
def payu_create_order(
    payload: PayUOrderRequest,
    user: User = Depends(get_current_user_obj),
    db: Session = Depends(get_db)
):
    plan = _payable_plan(db, payload.plan_id)
    order = create_order(
        db, user.id, plan.plan_id, plan.total_amount, GATEWAY_PAYU,
        order_id=payload.txnid, currency=plan.currency,
    )

    try:
        form = payu_service.build_payment_form(order, plan, user)
    except GatewayError as e:
        mark_failed(db, order.order_id, e.message)
        raise

    return PayUOrderResponse(order_id=order.order_id, amount=order.amount, action=form["action"], fields=form["fields"])


@router.post("/payu/callback")
def payu_callback(
    background_tasks: BackgroundTasks,
    params: Dict[str, str] = Depends(form_params),
    db: Session = Depends(get_db)
):
    """PayU posts the payment outcome here (surl/furl); the browser is sent back to the frontend."""
    txnid = params.get("txnid", "")
    logger.info(f"PayU callback received: {sanitize_log_data(params)}")

    try:
        result = payu_service.handle_callback(db, params)
    except SignatureVerificationFailed:
        return _frontend_redirect(status="failed", txnid=txnid, error="hash_verification_failed")
    except MarketplaceError as e:
        logger.warning(f"PayU callback rejected: txnid={txnid}, error={e.code}")
        return _frontend_redirect(status="error", txnid=txnid, error=e.code)

    if isinstance(result, ActivationResult):
        schedule_confirmation(background_tasks, db, result)
        return _frontend_redirect(status="success", txnid=txnid)
    if result.status in (ORDER_FAILED, ORDER_CANCELLED):
        return _frontend_redirect(status="failed", txnid=txnid)
    return _frontend_redirect(status="pending", txnid=txnid)


@router.post("/payu/verify", response_model=PaymentResultResponse)
def payu_verify(
    payload: PayUVerifyRequest,
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user_obj),
    db: Session = Depends(get_db)
):
    """Settle a PayU order from PayU's verify_payment API."""
    result = payu_service.verify_order(db, payload.txnid, user.id)
    return _payment_result(db, background_tasks, result)
