"""
Order ledger service.

Records payment attempts and their outcomes. Every status transition is a
conditional UPDATE on the current status so concurrent or repeated gateway
deliveries converge on one terminal state (first writer wins).
"""
import logging
import secrets
import time
from typing import List, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.db.models.order import (
    Order,
    ORDER_CREATED,
    ORDER_PENDING,
    ORDER_PAID,
    ORDER_FAILED,
    ORDER_CANCELLED,
    LIVE_ORDER_STATUSES,
    GATEWAY_PAYU,
)
from app.core.config import DEFAULT_CURRENCY
from app.core.exceptions import DuplicateOrder, InvalidOrderState, OrderNotFound
from app.utils.dates import utc_now

logger = logging.getLogger(__name__)


def generate_order_id() -> str:
    """Server-side transaction id: TXN<epoch millis><6 random digits>."""
    return f"TXN{int(time.time() * 1000)}{secrets.randbelow(10 ** 6):06d}"


def get_order(db: Session, order_id: str) -> Order:
    order = db.query(Order).filter(Order.order_id == order_id).first()
    if not order:
        raise OrderNotFound(f"Order not found: {order_id}")
    return order


def list_orders_for_user(db: Session, user_id: int) -> List[Order]:
    return (
        db.query(Order)
        .filter(Order.user_id == user_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .all()
    )


def create_order(
    db: Session,
    user_id: int,
    plan_id: str,
    amount: float,
    gateway: str,
    order_id: Optional[str] = None,
    currency: str = DEFAULT_CURRENCY,
) -> Order:
    """
    Create an order for a checkout attempt.

    Args:
        db: Database session
        user_id: Paying account
        plan_id: Plan slug being purchased
        amount: Amount charged
        gateway: "stripe" (initial status created) or "payu" (initial status pending)
        order_id: Client-generated transaction id; generated server-side when omitted
        currency: ISO currency code

    Returns:
        The persisted order

    Raises:
        DuplicateOrder: If order_id is already taken
    """
    order = Order(
        order_id=order_id or generate_order_id(),
        gateway=gateway,
        user_id=user_id,
        plan_id=plan_id,
        amount=float(amount),
        currency=currency,
        status=ORDER_PENDING if gateway == GATEWAY_PAYU else ORDER_CREATED,
    )
    db.add(order)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning(f"Duplicate order rejected: order_id={order.order_id}, user_id={user_id}")
        raise DuplicateOrder(f"Order already exists: {order.order_id}")
    db.refresh(order)

    logger.info(
        f"Order created: order_id={order.order_id}, user_id={user_id}, plan={plan_id}, "
        f"amount={order.amount}, gateway={gateway}, status={order.status}"
    )
    return order


def claim_paid(db: Session, order_id: str, gateway_payment_id: Optional[str]) -> bool:
    """
    Conditionally move a live order to paid without committing.

    Returns True if this call performed the transition, False if the order
    was no longer live (another writer got there first, or it is terminal).
    """
    now = utc_now()
    updated = (
        db.query(Order)
        .filter(Order.order_id == order_id, Order.status.in_(LIVE_ORDER_STATUSES))
        .update(
            {
                Order.status: ORDER_PAID,
                Order.gateway_payment_id: gateway_payment_id,
                Order.verified_at: now,
                Order.updated_at: now,
            },
            synchronize_session=False,
        )
    )
    return updated == 1


def mark_paid(db: Session, order_id: str, gateway_payment_id: Optional[str]) -> Order:
    """
    Mark an order as paid. Idempotent: an already-paid order is returned unchanged.

    Raises:
        OrderNotFound: If the order does not exist
        InvalidOrderState: If the order already failed or was cancelled
    """
    transitioned = claim_paid(db, order_id, gateway_payment_id)
    db.commit()

    order = get_order(db, order_id)
    db.refresh(order)
    if transitioned:
        logger.info(f"Order paid: order_id={order_id}, payment_id={gateway_payment_id}")
        return order

    if order.status == ORDER_PAID:
        logger.info(f"Order already paid, ignoring repeat: order_id={order_id}")
        return order

    raise InvalidOrderState(f"Order {order_id} is {order.status} and cannot be paid")


def mark_failed(db: Session, order_id: str, reason: Optional[str], cancelled: bool = False) -> Order:
    """
    Mark an order as failed (or cancelled). Repeating on a failed/cancelled order is a no-op.

    Raises:
        OrderNotFound: If the order does not exist
        InvalidOrderState: If the order is already paid
    """
    target = ORDER_CANCELLED if cancelled else ORDER_FAILED
    now = utc_now()
    updated = (
        db.query(Order)
        .filter(Order.order_id == order_id, Order.status.in_(LIVE_ORDER_STATUSES))
        .update(
            {
                Order.status: target,
                Order.error_message: (reason or "Payment not successful")[:1000],
                Order.verified_at: now,
                Order.updated_at: now,
            },
            synchronize_session=False,
        )
    )
    db.commit()

    order = get_order(db, order_id)
    db.refresh(order)
    if updated == 1:
        logger.warning(f"Order {target}: order_id={order_id}, reason={reason}")
        return order

    if order.status == ORDER_PAID:
        raise InvalidOrderState(f"Order {order_id} is already paid")

    logger.info(f"Order already {order.status}, ignoring repeat: order_id={order_id}")
    return order
