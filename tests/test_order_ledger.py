"""
Unit tests for the order ledger state machine.
"""
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.base import Base
from app.db.models.user import User
from app.db.models.order import ORDER_CREATED, ORDER_PENDING, ORDER_PAID, ORDER_FAILED, ORDER_CANCELLED
from app.core.exceptions import DuplicateOrder, InvalidOrderState, OrderNotFound
from app.services.order_ledger import (
    create_order,
    generate_order_id,
    get_order,
    list_orders_for_user,
    mark_failed,
    mark_paid,
)


# Setup in-memory SQLite database for testing
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
def test_user(db):
    user = User(full_name="Asha Rao", email="asha@example.com", password_hash="x", role="employee")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def test_generate_order_id_format():
    order_id = generate_order_id()
    assert order_id.startswith("TXN")
    assert order_id[3:].isdigit()


def test_initial_status_depends_on_gateway(db, test_user):
    stripe_order = create_order(db, test_user.id, "starter", 17700, "stripe")
    payu_order = create_order(db, test_user.id, "starter", 17700, "payu")

    assert stripe_order.status == ORDER_CREATED
    assert payu_order.status == ORDER_PENDING
    assert stripe_order.order_id != payu_order.order_id


def test_client_supplied_order_id_is_kept(db, test_user):
    order = create_order(db, test_user.id, "starter", 17700, "payu", order_id="TXN-CLIENT-1")
    assert order.order_id == "TXN-CLIENT-1"


def test_duplicate_order_id_rejected(db, test_user):
    create_order(db, test_user.id, "starter", 17700, "payu", order_id="TXN-DUP")
    with pytest.raises(DuplicateOrder):
        create_order(db, test_user.id, "premium", 35400, "payu", order_id="TXN-DUP")

    assert get_order(db, "TXN-DUP").plan_id == "starter"


def test_get_order_missing(db):
    with pytest.raises(OrderNotFound):
        get_order(db, "TXN-NOPE")


def test_mark_paid_is_idempotent(db, test_user):
    order = create_order(db, test_user.id, "starter", 17700, "stripe")

    first = mark_paid(db, order.order_id, "pi_123")
    assert first.status == ORDER_PAID
    assert first.gateway_payment_id == "pi_123"
    assert first.verified_at is not None

    second = mark_paid(db, order.order_id, "pi_other")
    assert second.status == ORDER_PAID
    assert second.gateway_payment_id == "pi_123"


def test_failed_order_cannot_be_paid(db, test_user):
    order = create_order(db, test_user.id, "starter", 17700, "payu")
    mark_failed(db, order.order_id, "card declined")

    with pytest.raises(InvalidOrderState):
        mark_paid(db, order.order_id, "mihpay_1")
    assert get_order(db, order.order_id).status == ORDER_FAILED


def test_mark_failed_repeat_is_noop(db, test_user):
    order = create_order(db, test_user.id, "starter", 17700, "payu")
    mark_failed(db, order.order_id, "first reason")
    again = mark_failed(db, order.order_id, "second reason")

    assert again.status == ORDER_FAILED
    assert again.error_message == "first reason"


def test_cancelled_is_terminal(db, test_user):
    order = create_order(db, test_user.id, "starter", 17700, "stripe")
    cancelled = mark_failed(db, order.order_id, "expired", cancelled=True)
    assert cancelled.status == ORDER_CANCELLED

    # A later failure does not overwrite cancelled
    assert mark_failed(db, order.order_id, "late failure").status == ORDER_CANCELLED


def test_paid_order_cannot_fail(db, test_user):
    order = create_order(db, test_user.id, "starter", 17700, "stripe")
    mark_paid(db, order.order_id, "pi_1")

    with pytest.raises(InvalidOrderState):
        mark_failed(db, order.order_id, "late failure")
    assert get_order(db, order.order_id).status == ORDER_PAID


def test_list_orders_newest_first(db, test_user):
    first = create_order(db, test_user.id, "starter", 17700, "stripe")
    second = create_order(db, test_user.id, "premium", 35400, "stripe")

    orders = list_orders_for_user(db, test_user.id)
    assert [o.order_id for o in orders] == [second.order_id, first.order_id]
    assert list_orders_for_user(db, test_user.id + 100) == []
