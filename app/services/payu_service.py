"""
PayU redirect-flow integration.

The browser is sent to PayU with a signed form; PayU posts the outcome back to
our callback with a reverse hash that must verify before anything is settled.
"""
import hashlib
import hmac
import logging
import re
from typing import Dict, Optional, Union
import requests
from sqlalchemy.orm import Session

from app.db.models.order import Order, LIVE_ORDER_STATUSES
from app.db.models.plan import Plan
from app.db.models.user import User
from app.core import config
from app.core.exceptions import GatewayError, MissingFields, OrderNotFound, SignatureVerificationFailed
from app.services.order_ledger import get_order, mark_failed
from app.services.subscription_service import ActivationResult, activate_subscription

logger = logging.getLogger(__name__)

UDF_FIELDS = ("udf1", "udf2", "udf3", "udf4", "udf5")
CALLBACK_REQUIRED_FIELDS = ("txnid", "status", "hash", "amount", "productinfo", "firstname", "email")
SUCCESS_STATUS = "success"
FAILURE_STATUSES = ("failure", "failed", "cancelled", "usercancelled", "dropped", "bounced")
VERIFY_TIMEOUT_SECONDS = 15


def _sha512(value: str) -> str:
    return hashlib.sha512(value.encode("utf-8")).hexdigest()


def format_amount(amount: float) -> str:
    return f"{float(amount):.2f}"


def build_request_hash(params: Dict, key: Optional[str] = None, salt: Optional[str] = None) -> str:
    """sha512(key|txnid|amount|productinfo|firstname|email|udf1..udf5||||||salt)"""
    key = key if key is not None else config.PAYU_MERCHANT_KEY
    salt = salt if salt is not None else config.PAYU_SALT
    fields = [key, params["txnid"], params["amount"], params["productinfo"], params["firstname"], params["email"]]
    fields += [params.get(name) or "" for name in UDF_FIELDS]
    fields += [""] * 5
    fields.append(salt)
    return _sha512("|".join(str(f) for f in fields))


def build_response_hash(params: Dict, key: Optional[str] = None, salt: Optional[str] = None) -> str:
    """sha512(salt|status||||||udf5|udf4|udf3|udf2|udf1|email|firstname|productinfo|amount|txnid|key)"""
    key = key if key is not None else config.PAYU_MERCHANT_KEY
    salt = salt if salt is not None else config.PAYU_SALT
    fields = [salt, params.get("status", "")]
    fields += [""] * 5
    fields += [params.get(name) or "" for name in reversed(UDF_FIELDS)]
    fields += [params.get(name, "") for name in ("email", "firstname", "productinfo", "amount", "txnid")]
    fields.append(key)
    return _sha512("|".join(str(f) for f in fields))


def verify_response_hash(params: Dict, key: Optional[str] = None, salt: Optional[str] = None) -> bool:
    received = (params.get("hash") or "").lower()
    expected = build_response_hash(params, key=key, salt=salt)
    return hmac.compare_digest(received, expected)


def build_payment_form(order: Order, plan: Plan, user: User) -> Dict:
    """
    Signed form fields the frontend posts to PayU.

    Returns:
        {"action": <PayU payment URL>, "fields": {...}}
    """
    if not config.PAYU_MERCHANT_KEY or not config.PAYU_SALT:
        raise GatewayError("PayU not configured - PAYU_MERCHANT_KEY and PAYU_SALT required")

    callback_url = f"{config.BACKEND_URL}/payments/payu/callback"
    fields = {
        "key": config.PAYU_MERCHANT_KEY,
        "txnid": order.order_id,
        "amount": format_amount(order.amount),
        "productinfo": re.sub(r"[^a-zA-Z0-9]", "", plan.plan_id),
        "firstname": (user.full_name or "").split(" ")[0] or "Customer",
        "email": user.email,
        "phone": user.phone or "",
        "surl": callback_url,
        "furl": callback_url,
        "udf1": str(user.id),
        "udf2": plan.plan_id,
        "udf3": "",
        "udf4": "",
        "udf5": "",
    }
    fields["hash"] = build_request_hash(fields)

    logger.info(f"Built PayU payment form: order_id={order.order_id}, user_id={user.id}")
    return {"action": f"{config.PAYU_BASE_URL}/_payment", "fields": fields}


def fetch_payment(txnid: str) -> Dict:
    """
    Ask PayU for the authoritative state of a transaction (verify_payment API).

    Returns:
        The transaction_details entry for txnid

    Raises:
        GatewayError: On network failure or an unusable response
    """
    command = "verify_payment"
    data = {
        "key": config.PAYU_MERCHANT_KEY,
        "command": command,
        "var1": txnid,
        "hash": _sha512(f"{config.PAYU_MERCHANT_KEY}|{command}|{txnid}|{config.PAYU_SALT}"),
    }
    try:
        response = requests.post(config.PAYU_VERIFY_URL, data=data, timeout=VERIFY_TIMEOUT_SECONDS)
        response.raise_for_status()
        payload = response.json()
    except (requests.RequestException, ValueError) as e:
        logger.error(f"PayU verify_payment failed: txnid={txnid}, error={e}")
        raise GatewayError(f"PayU verification request failed: {e}")

    details = (payload.get("transaction_details") or {}).get(txnid)
    if not details:
        raise GatewayError(f"PayU returned no transaction details for {txnid}")
    return details


def _settle(db: Session, order: Order, params: Dict) -> Union[ActivationResult, Order]:
    status = (params.get("status") or "").lower()
    if status == SUCCESS_STATUS:
        return activate_subscription(
            db,
            user_id=order.user_id,
            order_id=order.order_id,
            plan_id=params.get("udf2") or order.plan_id,
            gateway_payment_id=params.get("mihpayid"),
        )

    if status in FAILURE_STATUSES:
        reason = params.get("error_Message") or params.get("field9") or f"PayU status: {status}"
        return mark_failed(db, order.order_id, reason)

    logger.warning(f"PayU payment not settled: order_id={order.order_id}, status={status or 'unknown'}")
    return order


def handle_callback(db: Session, params: Dict) -> Union[ActivationResult, Order]:
    """
    Settle an order from PayU's posted response.

    Raises:
        MissingFields: Required response fields absent
        OrderNotFound: Unknown txnid
        SignatureVerificationFailed: Reverse hash mismatch (the order is marked failed)
    """
    missing = [name for name in CALLBACK_REQUIRED_FIELDS if not params.get(name)]
    if missing:
        raise MissingFields(f"Missing required fields: {', '.join(missing)}")

    order = get_order(db, params["txnid"])

    if not verify_response_hash(params):
        logger.warning(f"PayU hash verification failed: order_id={order.order_id}")
        if order.status in LIVE_ORDER_STATUSES:
            mark_failed(db, order.order_id, "hash_verification_failed")
        raise SignatureVerificationFailed()

    return _settle(db, order, params)


def verify_order(db: Session, txnid: str, user_id: int) -> Union[ActivationResult, Order]:
    """Settle an order owned by user_id using PayU's server-side verify API."""
    order = get_order(db, txnid)
    if order.user_id != user_id:
        raise OrderNotFound(f"Order not found: {txnid}")

    details = fetch_payment(txnid)
    logger.info(f"PayU verify_payment: order_id={txnid}, status={details.get('status')}")
    return _settle(db, order, details)
