"""
Domain exceptions for plans, orders, subscriptions and job postings.

Services raise these; app.main registers a handler that renders them as
{"error": code, "detail": message} with the class status code.
"""
from fastapi import status


class MarketplaceError(Exception):
    """Base class for all domain errors."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "unexpected_error"

    def __init__(self, message: str = None):
        self.message = message or self.__class__.__doc__ or self.code
        super().__init__(self.message)


# ---------------------------------------------------------------------------
# NotFound
# ---------------------------------------------------------------------------

class NotFoundError(MarketplaceError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class OrderNotFound(NotFoundError):
    """Order not found"""
    code = "order_not_found"


class PlanNotFound(NotFoundError):
    """Plan not found"""
    code = "plan_not_found"


class SubjectNotFound(NotFoundError):
    """Account not found"""
    code = "subject_not_found"


class JobNotFound(NotFoundError):
    """Job not found"""
    code = "job_not_found"


# ---------------------------------------------------------------------------
# Conflict
# ---------------------------------------------------------------------------

class ConflictError(MarketplaceError):
    status_code = status.HTTP_409_CONFLICT
    code = "conflict"


class DuplicateOrder(ConflictError):
    """An order with this transaction id already exists"""
    code = "duplicate_order"


class InvalidOrderState(ConflictError):
    """Order is in a terminal state"""
    code = "invalid_order_state"


class SingleActiveJobLimit(ConflictError):
    """Currently one job is active. Without a subscription, you cannot activate another job."""
    code = "single_active_job_limit"


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

class ValidationError(MarketplaceError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "validation_error"


class MissingFields(ValidationError):
    """Missing required fields"""
    code = "missing_fields"


class InvalidPlanForPayment(ValidationError):
    """Free plan does not require payment"""
    code = "invalid_plan_for_payment"


# ---------------------------------------------------------------------------
# External services
# ---------------------------------------------------------------------------

class ExternalServiceError(MarketplaceError):
    status_code = status.HTTP_502_BAD_GATEWAY
    code = "external_service_error"


class SignatureVerificationFailed(ExternalServiceError):
    """Payment signature verification failed"""
    code = "signature_verification_failed"


class CardNumberExhausted(ExternalServiceError):
    """Failed to generate unique card number"""
    code = "card_number_exhausted"


class GatewayError(ExternalServiceError):
    """Payment gateway request failed"""
    code = "gateway_error"
