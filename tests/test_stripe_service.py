"""
Unit tests for Stripe checkout and webhook dispatch.
Stripe API calls are replaced with mocks.
"""
import json
import pytest
import stripe
from unittest.mock import MagicMock
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.base import Base
from app.db.models.user import User
from app.db.models.plan import Plan
from app.db.models.order import ORDER_CANCELLED, ORDER_CREATED, ORDER_FAILED, ORDER_PAID
from app.core.exceptions import GatewayError, MissingFields, SignatureVerificationFailed
from app.services import stripe_service
from app.services.order_ledger import create_order, get_order
from app.services.subscription_service import ActivationResult, get_subscription


TEST_DATABASE_URL = "sqlite:///:memory:"
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=test_engine)
    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def user(db):
    user = User(full_name="Meera Iyer", email="meera@example.com", password_hash="x", role="employee")
    db.add(user)
    db.add(Plan(plan_id="premium", name="Premium", price=30000, gst=5400, total_amount=35400, validity_months=12))
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def plan(db, user):
    return db.query(Plan).filter(Plan.plan_id == "premium").first()


@pytest.fixture
def order(db, user):
    return create_order(db, user.id, "premium", 35400, "stripe")


def session_event(event_type, order, user, payment_status="paid"):
    return {
        "id": "evt_test_1",
        "type": event_type,
        "data": {
            "object": {
                "id": "cs_test_1",
                "payment_status": payment_status,
                "payment_intent": "pi_test_1",
                "client_reference_id": order.order_id,
                "metadata": {"order_id": order.order_id, "user_id": str(user.id), "plan_id": "premium"},
            }
        },
    }


def test_to_minor_units():
    assert stripe_service.to_minor_units(35400) == 3540000
    assert stripe_service.to_minor_units(59.99) == 5999


def test_completed_event_activates(db, order, user):
    result = stripe_service.dispatch_event(session_event("checkout.session.completed", order, user), db)

    assert isinstance(result, ActivationResult)
    assert result.order.status == ORDER_PAID
    assert result.order.gateway_payment_id == "pi_test_1"
    assert get_subscription(db, user.id).plan_type == "premium"


def test_completed_event_delivered_twice(db, order, user):
    event = session_event("checkout.session.completed", order, user)
    first = stripe_service.dispatch_event(event, db)
    second = stripe_service.dispatch_event(event, db)

    assert second.already_activated is True
    assert second.subscription.card_number == first.subscription.card_number


def test_unpaid_completion_waits(db, order, user):
    event = session_event("checkout.session.completed", order, user, payment_status="unpaid")

    assert stripe_service.dispatch_event(event, db) is None
    assert get_order(db, order.order_id).status == ORDER_CREATED


def test_async_success_activates(db, order, user):
    event = session_event("checkout.session.async_payment_succeeded", order, user)
    assert stripe_service.dispatch_event(event, db).order.status == ORDER_PAID


def test_expired_event_cancels(db, order, user):
    result = stripe_service.dispatch_event(session_event("checkout.session.expired", order, user, "unpaid"), db)
    assert result.status == ORDER_CANCELLED


def test_async_failure_marks_failed(db, order, user):
    result = stripe_service.dispatch_event(session_event("checkout.session.async_payment_failed", order, user, "unpaid"), db)
    assert result.status == ORDER_FAILED


def test_unknown_event_ignored(db, order, user):
    assert stripe_service.dispatch_event(session_event("invoice.paid", order, user), db) is None
    assert get_order(db, order.order_id).status == ORDER_CREATED


def test_missing_metadata(db):
    event = {"id": "evt_1", "type": "checkout.session.completed", "data": {"object": {"payment_status": "paid"}}}
    with pytest.raises(MissingFields):
        stripe_service.dispatch_event(event, db)


def test_verify_webhook_parses_event(monkeypatch):
    monkeypatch.setattr(stripe_service, "STRIPE_WEBHOOK_SECRET", "whsec_test")
    construct = MagicMock()
    monkeypatch.setattr(stripe.Webhook, "construct_event", construct)
    body = json.dumps({"id": "evt_1", "type": "checkout.session.completed", "data": {"object": {}}}).encode()

    event = stripe_service.verify_webhook(body, "t=1,v1=abc")

    assert event["type"] == "checkout.session.completed"
    construct.assert_called_once_with(body, "t=1,v1=abc", "whsec_test")


def test_verify_webhook_bad_signature(monkeypatch):
    monkeypatch.setattr(stripe_service, "STRIPE_WEBHOOK_SECRET", "whsec_test")

    def reject(*args, **kwargs):
        raise stripe.error.SignatureVerificationError("No signatures found", "bad")

    monkeypatch.setattr(stripe.Webhook, "construct_event", reject)
    with pytest.raises(SignatureVerificationFailed):
        stripe_service.verify_webhook(b"{}", "bad")


def test_verify_webhook_requires_secret(monkeypatch):
    monkeypatch.setattr(stripe_service, "STRIPE_WEBHOOK_SECRET", None)
    with pytest.raises(GatewayError):
        stripe_service.verify_webhook(b"{}", "sig")


def test_create_checkout_session(monkeypatch, order, plan, user):
    monkeypatch.setattr(stripe_service, "STRIPE_SECRET_KEY", "sk_test")
    create = MagicMock(return_value=MagicMock(id="cs_test_1", url="https://checkout.stripe.com/c/cs_test_1"))
    monkeypatch.setattr(stripe.checkout.Session, "create", create)

    session = stripe_service.create_checkout_session(order, plan, user)

    assert session.id == "cs_test_1"
    kwargs = create.call_args.kwargs
    assert kwargs["mode"] == "payment"
    assert kwargs["line_items"][0]["price_data"]["unit_amount"] == 3540000
    assert kwargs["metadata"] == {"order_id": order.order_id, "user_id": str(user.id), "plan_id": "premium"}
    assert order.order_id in kwargs["success_url"]


def test_create_checkout_session_requires_key(monkeypatch, order, plan, user):
    monkeypatch.setattr(stripe_service, "STRIPE_SECRET_KEY", None)
    with pytest.raises(GatewayError):
        stripe_service.create_checkout_session(order, plan, user)


def test_create_checkout_session_stripe_error(monkeypatch, order, plan, user):
    monkeypatch.setattr(stripe_service, "STRIPE_SECRET_KEY", "sk_test")

    def fail(**kwargs):
        raise stripe.error.APIConnectionError("network down")

    monkeypatch.setattr(stripe.checkout.Session, "create", fail)
    with pytest.raises(GatewayError):
        stripe_service.create_checkout_session(order, plan, user)


def test_fetch_payment(monkeypatch):
    intent = {"id": "pi_1", "status": "succeeded", "amount": 3540000, "currency": "inr"}
    monkeypatch.setattr(stripe.PaymentIntent, "retrieve", MagicMock(return_value=intent))

    assert stripe_service.fetch_payment("pi_1") == {
        "id": "pi_1", "status": "succeeded", "amount": 35400.0, "currency": "inr",
    }
