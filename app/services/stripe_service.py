"""
Stripe service for one-time plan checkout and webhook handling.

The checkout session carries order_id, user_id and plan_id in its metadata;
the webhook resolves everything from there and settles the order through the
order ledger and the subscription activator.
"""
import json
import logging
from typing import Callable, Dict, Optional, Union
import stripe
from sqlalchemy.orm import Session

from app.db.models.order import Order
from app.db.models.plan import Plan
from app.db.models.user import User
from app.core.config import STRIPE_SECRET_KEY, STRIPE_WEBHOOK_SECRET, FRONTEND_URL
from app.core.exceptions import GatewayError, MissingFields, SignatureVerificationFailed
from app.services.order_ledger import mark_failed
from app.services.subscription_service import ActivationResult, activate_subscription

logger = logging.getLogger(__name__)

# Initialize Stripe client
if STRIPE_SECRET_KEY:
    stripe.api_key = STRIPE_SECRET_KEY
else:
    logger.warning("STRIPE_SECRET_KEY not configured - Stripe features disabled")


def to_minor_units(amount: float) -> int:
    """Stripe amounts are integers in the currency's smallest unit."""
    return int(round(float(amount) * 100))


def create_checkout_session(
    order: Order,
    plan: Plan,
    user: User,
    success_url: Optional[str] = None,
    cancel_url: Optional[str] = None,
):
    """
    Create a one-time payment Checkout session for an order.

    Args:
        order: Order in created status
        plan: Plan being purchased
        user: Paying account
        success_url: Redirect after payment (defaults to FRONTEND_URL/price-page?status=success)
        cancel_url: Redirect if the user cancels (defaults to FRONTEND_URL/price-page?status=cancelled)

    Returns:
        Stripe checkout session object

    Raises:
        GatewayError: If Stripe is not configured or the API call fails
    """
    if not STRIPE_SECRET_KEY:
        raise GatewayError("Stripe not configured - STRIPE_SECRET_KEY required")

    if not success_url:
        success_url = f"{FRONTEND_URL}/price-page?status=success&txnid={order.order_id}"
    if not cancel_url:
        cancel_url = f"{FRONTEND_URL}/price-page?status=cancelled&txnid={order.order_id}"

    metadata = {
        "order_id": order.order_id,
        "user_id": str(user.id),
        "plan_id": plan.plan_id,
    }

    try:
        session = stripe.checkout.Session.create(
            customer_email=user.email,
            payment_method_types=["card"],
            mode="payment",
            line_items=[{
                "price_data": {
                    "currency": order.currency.lower(),
                    "unit_amount": to_minor_units(order.amount),
                    "product_data": {"name": f"{plan.name} plan ({plan.validity_months} months)"},
                },
                "quantity": 1,
            }],
            success_url=success_url,
            cancel_url=cancel_url,
            client_reference_id=order.order_id,
            metadata=metadata,
            payment_intent_data={"metadata": metadata},
        )
    except stripe.error.StripeError as e:
        logger.error(f"Stripe error creating checkout session: order_id={order.order_id}, error={e}")
        raise GatewayError(f"Failed to create checkout session: {str(e)}")

    logger.info(f"Created checkout session: session_id={session.id}, order_id={order.order_id}, user_id={user.id}")
    return session


def fetch_payment(payment_intent_id: str) -> Dict:
    """
    Look up a payment on Stripe.

    Returns:
        Dictionary with id, status, amount (major units) and currency
    """
    try:
        intent = stripe.PaymentIntent.retrieve(payment_intent_id)
    except stripe.error.StripeError as e:
        logger.error(f"Stripe error fetching payment: payment_id={payment_intent_id}, error={e}")
        raise GatewayError(f"Failed to fetch payment: {str(e)}")

    return {
        "id": intent["id"],
        "status": intent["status"],
        "amount": intent["amount"] / 100,
        "currency": intent["currency"],
    }


def verify_webhook(request_body: bytes, signature: Optional[str]) -> Dict:
    """
    Verify and parse a Stripe webhook event.

    Raises:
        GatewayError: If STRIPE_WEBHOOK_SECRET is not configured
        SignatureVerificationFailed: If the payload or signature is invalid
    """
    if not STRIPE_WEBHOOK_SECRET:
        raise GatewayError("STRIPE_WEBHOOK_SECRET not configured")

    try:
        stripe.Webhook.construct_event(request_body, signature, STRIPE_WEBHOOK_SECRET)
        # Plain dicts downstream regardless of the StripeObject implementation
        event = json.loads(request_body)
    except ValueError as e:
        logger.error(f"Invalid webhook payload: {e}")
        raise SignatureVerificationFailed(f"Invalid webhook payload: {e}")
    except stripe.error.SignatureVerificationError as e:
        logger.error(f"Webhook signature verification failed: {e}")
        raise SignatureVerificationFailed(f"Invalid signature: {e}")

    logger.info(f"Verified webhook event: {event['type']}, id={event['id']}")
    return event


def _session_metadata(session_data: Dict) -> Dict:
    metadata = session_data.get("metadata") or {}
    order_id = metadata.get("order_id") or session_data.get("client_reference_id")
    user_id = metadata.get("user_id")
    if not order_id or not user_id:
        raise MissingFields("Checkout session is missing order_id or user_id metadata")
    return {"order_id": order_id, "user_id": int(user_id), "plan_id": metadata.get("plan_id")}


def handle_checkout_session_completed(event_data: Dict, db: Session) -> Optional[ActivationResult]:
    """
    Handle checkout.session.completed (and async_payment_succeeded).

    Sessions completed with a delayed payment method report payment_status
    "unpaid"; those are left pending until the async outcome arrives.
    """
    session_data = event_data.get("object", {})
    meta = _session_metadata(session_data)

    if session_data.get("payment_status") not in ("paid", "no_payment_required"):
        logger.info(f"Checkout completed without payment yet: order_id={meta['order_id']}")
        return None

    result = activate_subscription(
        db,
        user_id=meta["user_id"],
        order_id=meta["order_id"],
        plan_id=meta["plan_id"],
        gateway_payment_id=session_data.get("payment_intent"),
    )
    logger.info(
        f"Checkout completed: order_id={meta['order_id']}, user_id={meta['user_id']}, "
        f"already_activated={result.already_activated}"
    )
    return result


def handle_checkout_session_expired(event_data: Dict, db: Session) -> Order:
    meta = _session_metadata(event_data.get("object", {}))
    return mark_failed(db, meta["order_id"], "Checkout session expired", cancelled=True)


def handle_async_payment_failed(event_data: Dict, db: Session) -> Order:
    meta = _session_metadata(event_data.get("object", {}))
    return mark_failed(db, meta["order_id"], "Asynchronous payment failed")


WEBHOOK_HANDLERS: Dict[str, Callable[[Dict, Session], Union[ActivationResult, Order, None]]] = {
    "checkout.session.completed": handle_checkout_session_completed,
    "checkout.session.async_payment_succeeded": handle_checkout_session_completed,
    "checkout.session.expired": handle_checkout_session_expired,
    "checkout.session.async_payment_failed": handle_async_payment_failed,
}


def dispatch_event(event, db: Session) -> Union[ActivationResult, Order, None]:
    """Route a verified event to its handler. Unhandled types are ignored."""
    event_type = event["type"]
    handler = WEBHOOK_HANDLERS.get(event_type)
    if handler is None:
        logger.info(f"Unhandled webhook event type: {event_type}")
        return None
    return handler(event["data"], db)
