"""
Subscription activation service.

Turns a successful payment into a created or extended subscription, issues a
unique membership card number, and keeps the order ledger in step.

The order's paid transition and the subscription write are committed in one
transaction. Card number uniqueness is enforced by the unique index on
subscriptions.card_number: each attempt writes a candidate and a constraint
violation rolls the whole attempt back and retries with a new candidate.
Each attempt holds the account row lock, so two activations for the same
account extend the subscription one after the other.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional
from fastapi import BackgroundTasks
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.db.models.user import User
from app.db.models.plan import Plan
from app.db.models.order import Order, ORDER_PAID, ORDER_FAILED, ORDER_CANCELLED
from app.db.models.subscription import Subscription, SUBSCRIPTION_ACTIVE, SUBSCRIPTION_EXPIRED
from app.core.config import CARD_NUMBER_MAX_ATTEMPTS, FREE_PLAN_ID
from app.core.exceptions import (
    CardNumberExhausted,
    InvalidOrderState,
    InvalidPlanForPayment,
    OrderNotFound,
    SubjectNotFound,
)
from app.services.card_numbers import CardNumberGenerator
from app.services.order_ledger import claim_paid, get_order
from app.services.plan_catalog import find_active_plan, is_free_plan
from app.services import email_service
from app.utils.dates import add_months, utc_now

logger = logging.getLogger(__name__)


@dataclass
class ActivationResult:
    """Outcome of an activation call. already_activated marks an idempotent repeat."""
    order: Order
    subscription: Optional[Subscription]
    already_activated: bool = False


def is_subscription_active(subscription: Optional[Subscription], now: Optional[datetime] = None) -> bool:
    if subscription is None:
        return False
    now = now or utc_now()
    return subscription.status == SUBSCRIPTION_ACTIVE and subscription.end_date is not None and subscription.end_date > now


def get_subscription(db: Session, user_id: int) -> Optional[Subscription]:
    return db.query(Subscription).filter(Subscription.user_id == user_id).first()


def _is_card_number_conflict(error: IntegrityError) -> bool:
    return "card_number" in str(getattr(error, "orig", error))


def _is_subscriber_conflict(error: IntegrityError) -> bool:
    """A concurrent activation inserted this account's subscription row first."""
    message = str(getattr(error, "orig", error))
    return "subscriptions.user_id" in message or "uq_subscriptions_user_id" in message


def _lock_subscriber(db: Session, user_id: int) -> User:
    """SELECT ... FOR UPDATE on the account row; held until the attempt commits or rolls back."""
    user = (
        db.query(User)
        .filter(User.id == user_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if not user:
        raise SubjectNotFound(f"Account not found: {user_id}")
    return user


def _already_activated(db: Session, order: Order) -> ActivationResult:
    db.refresh(order)
    logger.info(f"Subscription already activated for order: order_id={order.order_id}, user_id={order.user_id}")
    return ActivationResult(order=order, subscription=get_subscription(db, order.user_id), already_activated=True)


def _write_subscription(
    db: Session,
    user: User,
    plan: Plan,
    order: Order,
    card_number: str,
    gateway_payment_id: Optional[str],
    now: datetime,
) -> Subscription:
    """Stage the subscription snapshot and order window. Caller commits."""
    subscription = get_subscription(db, user.id)

    # Extend from the current end date when there is still time left on it
    start_date = now
    if is_subscription_active(subscription, now):
        start_date = subscription.end_date
    end_date = add_months(start_date, plan.validity_months)

    if subscription is None:
        subscription = Subscription(user_id=user.id)
        db.add(subscription)

    subscription.plan_type = plan.plan_id
    subscription.start_date = start_date
    subscription.end_date = end_date
    subscription.status = SUBSCRIPTION_ACTIVE if end_date > now else SUBSCRIPTION_EXPIRED
    subscription.card_number = card_number
    subscription.expiry_month = f"{end_date.month:02d}"
    subscription.expiry_year = str(end_date.year)
    subscription.issued_at = now
    subscription.payment_id = gateway_payment_id or order.order_id
    subscription.amount = float(order.amount)
    subscription.immediate_interview_call = bool(plan.immediate_interview_call)

    db.query(Order).filter(Order.id == order.id).update(
        {Order.subscription_start: start_date, Order.subscription_end: end_date},
        synchronize_session=False,
    )

    if user.is_employer and plan.job_posting_limit:
        db.query(User).filter(User.id == user.id).update(
            {User.remaining_active_postings: User.remaining_active_postings + plan.job_posting_limit},
            synchronize_session=False,
        )

    db.flush()
    return subscription


def activate_subscription(
    db: Session,
    user_id: int,
    order_id: str,
    plan_id: Optional[str] = None,
    gateway_payment_id: Optional[str] = None,
    now: Optional[datetime] = None,
    card_numbers: Optional[CardNumberGenerator] = None,
    max_attempts: int = CARD_NUMBER_MAX_ATTEMPTS,
) -> ActivationResult:
    """
    Activate (or extend) a subscription for a paid order.

    Args:
        db: Database session
        user_id: Subscribing account
        order_id: Gateway transaction id of the order being settled
        plan_id: Plan slug; defaults to the plan recorded on the order
        gateway_payment_id: Provider payment id stored on the order
        now: Activation time (naive UTC); defaults to the current time
        card_numbers: Candidate generator (injectable for tests)
        max_attempts: Card number attempts before giving up

    Returns:
        ActivationResult. A repeat call for an already-paid order returns the
        current subscription with already_activated=True and changes nothing.

    Raises:
        OrderNotFound: Order missing or owned by another account
        InvalidOrderState: Order failed or was cancelled
        PlanNotFound: Plan missing or inactive
        InvalidPlanForPayment: Free tier, or plan differs from the order
        SubjectNotFound: Account missing
        CardNumberExhausted: No unique card number within max_attempts
    """
    order = get_order(db, order_id)
    if order.user_id != user_id:
        raise OrderNotFound(f"Order not found: {order_id}")

    if order.status == ORDER_PAID:
        return _already_activated(db, order)
    if order.status in (ORDER_FAILED, ORDER_CANCELLED):
        raise InvalidOrderState(f"Order {order_id} is {order.status} and cannot be activated")

    plan_id = plan_id or order.plan_id
    if plan_id != order.plan_id:
        raise InvalidPlanForPayment(f"Plan {plan_id} does not match order plan {order.plan_id}")

    plan = find_active_plan(db, plan_id)
    if is_free_plan(plan):
        raise InvalidPlanForPayment(f"{plan.name} plan is free and does not require payment")

    now = now or utc_now()
    card_numbers = card_numbers or CardNumberGenerator()

    for attempt in range(1, max_attempts + 1):
        candidate = card_numbers.candidate()
        # Serializes activations of one account so each reads the latest end_date
        user = _lock_subscriber(db, user_id)
        try:
            if not claim_paid(db, order_id, gateway_payment_id):
                # Lost the race to a concurrent activation, or the order went terminal
                db.rollback()
                order = get_order(db, order_id)
                if order.status == ORDER_PAID:
                    return _already_activated(db, order)
                raise InvalidOrderState(f"Order {order_id} is {order.status} and cannot be activated")

            subscription = _write_subscription(db, user, plan, order, candidate, gateway_payment_id, now)
            db.commit()
        except IntegrityError as e:
            db.rollback()
            if _is_subscriber_conflict(e):
                logger.warning(f"Subscription row created concurrently, retrying: attempt={attempt}, order_id={order_id}")
                continue
            if not _is_card_number_conflict(e):
                raise
            card_numbers.record_collision()
            logger.warning(
                f"Card number collision: attempt={attempt}, order_id={order_id}, next_prefix={card_numbers.prefix}"
            )
            continue

        db.refresh(subscription)
        db.refresh(order)
        logger.info(
            f"Subscription activated: user_id={user_id}, order_id={order_id}, plan={plan.plan_id}, "
            f"start={subscription.start_date.isoformat()}, end={subscription.end_date.isoformat()}"
        )
        return ActivationResult(order=order, subscription=subscription, already_activated=False)

    logger.error(f"Card number generation exhausted: order_id={order_id}, attempts={max_attempts}")
    raise CardNumberExhausted(f"Failed to generate unique card number after {max_attempts} attempts")


def schedule_confirmation(background_tasks: BackgroundTasks, db: Session, result: ActivationResult) -> None:
    """
    Queue the membership confirmation email after a fresh activation.

    Runs after the response is sent; the task never raises.
    """
    if result.already_activated or result.subscription is None:
        return

    user = db.query(User).filter(User.id == result.order.user_id).first()
    if not user or not user.email:
        logger.warning(f"No email address for confirmation: user_id={result.order.user_id}")
        return

    subscription = result.subscription
    background_tasks.add_task(
        email_service.send_subscription_confirmation,
        to_email=user.email,
        full_name=user.full_name,
        plan_type=subscription.plan_type,
        card_number=subscription.card_number,
        start_date=subscription.start_date,
        end_date=subscription.end_date,
    )


def expire_lapsed_subscriptions(db: Session, now: Optional[datetime] = None) -> int:
    """
    Flip active subscriptions whose end date has passed to expired.

    Returns:
        Number of subscriptions expired
    """
    now = now or utc_now()
    expired = (
        db.query(Subscription)
        .filter(Subscription.status == SUBSCRIPTION_ACTIVE, Subscription.end_date <= now)
        .update({Subscription.status: SUBSCRIPTION_EXPIRED}, synchronize_session=False)
    )
    db.commit()
    logger.info(f"Subscription sweep complete: expired={expired}")
    return expired


def get_subscription_status(db: Session, user_id: int, now: Optional[datetime] = None) -> Dict:
    """Subscription summary for the account dashboard."""
    subscription = get_subscription(db, user_id)
    active = is_subscription_active(subscription, now)

    if subscription is None:
        return {
            "plan_type": FREE_PLAN_ID,
            "status": SUBSCRIPTION_EXPIRED,
            "is_active": False,
            "start_date": None,
            "end_date": None,
            "card_number": None,
            "expiry_month": None,
            "expiry_year": None,
            "immediate_interview_call": False,
        }

    return {
        "plan_type": subscription.plan_type,
        "status": SUBSCRIPTION_ACTIVE if active else SUBSCRIPTION_EXPIRED,
        "is_active": active,
        "start_date": subscription.start_date,
        "end_date": subscription.end_date,
        "card_number": subscription.card_number,
        "expiry_month": subscription.expiry_month,
        "expiry_year": subscription.expiry_year,
        "immediate_interview_call": subscription.immediate_interview_call,
    }


def check_interview_eligibility(db: Session, user_id: int, now: Optional[datetime] = None) -> Dict:
    """
    Immediate interview calls need an active subscription whose snapshot grants
    them and whose plan still offers them.
    """
    subscription = get_subscription(db, user_id)
    active = is_subscription_active(subscription, now)
    plan_type = subscription.plan_type if subscription else FREE_PLAN_ID

    has_immediate_call = False
    if active and subscription.immediate_interview_call:
        plan = db.query(Plan).filter(Plan.plan_id == plan_type, Plan.is_active.is_(True)).first()
        has_immediate_call = bool(plan and plan.immediate_interview_call)

    return {
        "has_immediate_call": has_immediate_call,
        "plan_type": plan_type,
        "is_active": active,
    }
