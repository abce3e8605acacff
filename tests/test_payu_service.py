"""
Unit tests for PayU hashing and settlement.
"""
import hashlib
import pytest
from unittest.mock import MagicMock
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.base import Base
from app.db.models.user import User
from app.db.models.plan import Plan
from app.db.models.order import ORDER_FAILED, ORDER_PAID, ORDER_PENDING
from app.core import config
from app.core.exceptions import GatewayError, MissingFields, OrderNotFound, SignatureVerificationFailed
from app.services import payu_service
from app.services.order_ledger import create_order, get_order, mark_paid
from app.services.subscription_service import ActivationResult, get_subscription


TEST_DATABASE_URL = "sqlite:///:memory:"
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

KEY = "gtKFFx"
SALT = "eCwWELxi"


@pytest.fixture(autouse=True)
def payu_credentials(monkeypatch):
    monkeypatch.setattr(config, "PAYU_MERCHANT_KEY", KEY)
    monkeypatch.setattr(config, "PAYU_SALT", SALT)


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
    user = User(full_name="Ravi Kumar", email="ravi@example.com", password_hash="x", role="employee", phone="9999999999")
    db.add(user)
    db.add(Plan(plan_id="starter", name="Starter", price=15000, gst=2700, total_amount=17700, validity_months=6))
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def order(db, user):
    return create_order(db, user.id, "starter", 17700, "payu", order_id="TXN1700000000000123")


def sha512(value):
    return hashlib.sha512(value.encode("utf-8")).hexdigest()


def callback_params(order, user, status="success", **extra):
    params = {
        "txnid": order.order_id,
        "status": status,
        "amount": "17700.00",
        "productinfo": "starter",
        "firstname": "Ravi",
        "email": user.email,
        "udf1": str(user.id),
        "udf2": "starter",
        "mihpayid": "403993715531077182",
    }
    params.update(extra)
    params["hash"] = payu_service.build_response_hash(params)
    return params


def test_request_hash_layout():
    params = {
        "txnid": "TXN1", "amount": "17700.00", "productinfo": "starter",
        "firstname": "Ravi", "email": "ravi@example.com", "udf1": "7", "udf2": "starter",
    }
    expected = sha512(f"{KEY}|TXN1|17700.00|starter|Ravi|ravi@example.com|7|starter|||||||||{SALT}")
    assert payu_service.build_request_hash(params) == expected


def test_response_hash_layout():
    params = {
        "status": "success", "txnid": "TXN1", "amount": "17700.00", "productinfo": "starter",
        "firstname": "Ravi", "email": "ravi@example.com", "udf1": "7", "udf2": "starter",
    }
    expected = sha512(f"{SALT}|success|||||||||starter|7|ravi@example.com|Ravi|starter|17700.00|TXN1|{KEY}")
    assert payu_service.build_response_hash(params) == expected


def test_verify_response_hash_detects_tampering(order, user):
    params = callback_params(order, user)
    assert payu_service.verify_response_hash(params) is True

    tampered = dict(params, amount="1.00")
    assert payu_service.verify_response_hash(tampered) is False

    assert payu_service.verify_response_hash(dict(params, hash=params["hash"].upper())) is True
    assert payu_service.verify_response_hash(dict(params, hash="")) is False


def test_build_payment_form(db, order, user):
    plan = db.query(Plan).filter(Plan.plan_id == "starter").first()
    form = payu_service.build_payment_form(order, plan, user)

    fields = form["fields"]
    assert form["action"] == f"{config.PAYU_BASE_URL}/_payment"
    assert fields["txnid"] == order.order_id
    assert fields["amount"] == "17700.00"
    assert fields["firstname"] == "Ravi"
    assert fields["surl"].endswith("/payments/payu/callback")
    assert fields["hash"] == payu_service.build_request_hash(fields)


def test_build_payment_form_requires_credentials(db, order, user, monkeypatch):
    monkeypatch.setattr(config, "PAYU_SALT", "")
    plan = db.query(Plan).filter(Plan.plan_id == "starter").first()
    with pytest.raises(GatewayError):
        payu_service.build_payment_form(order, plan, user)


def test_callback_success_activates(db, order, user):
    result = payu_service.handle_callback(db, callback_params(order, user))

    assert isinstance(result, ActivationResult)
    assert result.order.status == ORDER_PAID
    assert result.order.gateway_payment_id == "403993715531077182"
    assert get_subscription(db, user.id).plan_type == "starter"


def test_callback_bad_hash_marks_failed(db, order, user):
    params = callback_params(order, user)
    params["hash"] = "0" * 128

    with pytest.raises(SignatureVerificationFailed):
        payu_service.handle_callback(db, params)

    assert get_order(db, order.order_id).status == ORDER_FAILED
    assert get_subscription(db, user.id) is None


def test_forged_callback_leaves_paid_order_alone(db, order, user):
    mark_paid(db, order.order_id, "real-payment")
    params = dict(callback_params(order, user, status="failure"), hash="f" * 128)

    with pytest.raises(SignatureVerificationFailed):
        payu_service.handle_callback(db, params)
    assert get_order(db, order.order_id).status == ORDER_PAID


def test_callback_failure_marks_failed(db, order, user):
    result = payu_service.handle_callback(db, callback_params(order, user, status="failure", error_Message="Bank declined"))

    assert result.status == ORDER_FAILED
    assert result.error_message == "Bank declined"


def test_callback_unknown_status_leaves_order_pending(db, order, user):
    result = payu_service.handle_callback(db, callback_params(order, user, status="in progress"))
    assert result.status == ORDER_PENDING


def test_callback_missing_fields(db):
    with pytest.raises(MissingFields):
        payu_service.handle_callback(db, {"txnid": "TXN1"})


def test_callback_unknown_order(db, order, user):
    params = callback_params(order, user)
    params["txnid"] = "TXN-UNKNOWN"
    with pytest.raises(OrderNotFound):
        payu_service.handle_callback(db, params)


def test_fetch_payment(monkeypatch):
    response = MagicMock()
    response.json.return_value = {
        "status": 1,
        "transaction_details": {"TXN1": {"status": "success", "mihpayid": "123", "txnid": "TXN1"}},
    }
    post = MagicMock(return_value=response)
    monkeypatch.setattr(payu_service.requests, "post", post)

    details = payu_service.fetch_payment("TXN1")

    assert details["status"] == "success"
    sent = post.call_args.kwargs["data"]
    assert sent["command"] == "verify_payment"
    assert sent["var1"] == "TXN1"
    assert sent["hash"] == sha512(f"{KEY}|verify_payment|TXN1|{SALT}")


def test_fetch_payment_network_error(monkeypatch):
    def boom(*args, **kwargs):
        raise payu_service.requests.ConnectionError("down")

    monkeypatch.setattr(payu_service.requests, "post", boom)
    with pytest.raises(GatewayError):
        payu_service.fetch_payment("TXN1")


def test_verify_order_activates_for_owner(db, order, user, monkeypatch):
    monkeypatch.setattr(payu_service, "fetch_payment", lambda txnid: {
        "status": "success", "mihpayid": "999", "udf2": "starter", "txnid": txnid,
    })

    result = payu_service.verify_order(db, order.order_id, user.id)
    assert isinstance(result, ActivationResult)
    assert result.order.status == ORDER_PAID

    with pytest.raises(OrderNotFound):
        payu_service.verify_order(db, order.order_id, user.id + 1)
