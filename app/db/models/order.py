"""
Order model: one payment attempt, keyed by the gateway transaction id.
"""
from sqlalchemy import Column, Integer, String, Float, Text, DateTime, ForeignKey, Index
from sqlalchemy.sql import func
from app.db.base import Base

ORDER_CREATED = "created"
ORDER_PENDING = "pending"
ORDER_PAID = "paid"
ORDER_FAILED = "failed"
ORDER_CANCELLED = "cancelled"

LIVE_ORDER_STATUSES = (ORDER_CREATED, ORDER_PENDING)
TERMINAL_ORDER_STATUSES = (ORDER_PAID, ORDER_FAILED, ORDER_CANCELLED)

GATEWAY_STRIPE = "stripe"
GATEWAY_PAYU = "payu"


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(String, unique=True, nullable=False, index=True)  # gateway transaction id
    gateway = Column(String, nullable=False)  # stripe | payu
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    plan_id = Column(String, nullable=False)

    amount = Column(Float, nullable=False)
    currency = Column(String(3), nullable=False, default="INR")
    status = Column(String, nullable=False, default=ORDER_CREATED, index=True)

    gateway_payment_id = Column(String, nullable=True)
    gateway_session_id = Column(String, nullable=True)
    error_message = Column(Text, nullable=True)

    # Subscription window granted by this order (history)
    subscription_start = Column(DateTime, nullable=True)
    subscription_end = Column(DateTime, nullable=True)

    verified_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("idx_orders_user_created", "user_id", "created_at"),
    )

    def __repr__(self):
        return f"<Order(order_id='{self.order_id}', status='{self.status}', user_id={self.user_id})>"
