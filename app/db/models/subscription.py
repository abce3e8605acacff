from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, ForeignKey, UniqueConstraint
from app.db.base import Base

SUBSCRIPTION_ACTIVE = "active"
SUBSCRIPTION_EXPIRED = "expired"


class Subscription(Base):
    __tablename__ = "subscriptions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)

    plan_type = Column(String, nullable=False)  # plan slug at activation time
    status = Column(String, nullable=False, default=SUBSCRIPTION_ACTIVE)  # active | expired
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False, index=True)

    # Membership card
    card_number = Column(String(12), nullable=False)
    expiry_month = Column(String(2), nullable=False)
    expiry_year = Column(String(4), nullable=False)
    issued_at = Column(DateTime, nullable=False)

    payment_id = Column(String, nullable=True)
    amount = Column(Float, nullable=False, default=0)
    immediate_interview_call = Column(Boolean, nullable=False, default=False)

    # Card numbers are unique across all subscribers; activation retries on violation
    __table_args__ = (
        UniqueConstraint("card_number", name="uq_subscriptions_card_number"),
    )
