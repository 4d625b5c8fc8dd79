"""
Domain exceptions raised by services and mapped to HTTP responses by the API
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional


class SpinError(Exception):
    """Base class for spin rejections; carries the HTTP status and response body."""

    status_code = 400
    headers: Optional[Dict[str, str]] = None

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message}


class InvalidTierError(SpinError):
    status_code = 400

    def __init__(self, tier: Any):
        super().__init__("Invalid tier")
        self.tier = tier


class InsufficientBalanceError(SpinError):
    status_code = 403

    def __init__(self, balance: Decimal, required: Decimal):
        super().__init__("Insufficient balance")
        self.balance = balance
        self.required = required

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body["balance"] = float(self.balance)
        body["required"] = float(self.required)
        return body


class NoPrizesAvailableError(SpinError):
    status_code = 503

    def __init__(self, message: str = "No prizes available"):
        super().__init__(message)


class InvalidSpinTokenError(SpinError):
    status_code = 403

    def __init__(self, message: str = "Invalid or expired token"):
        super().__init__(message)


class TokenAlreadyUsedError(SpinError):
    status_code = 403

    def __init__(self):
        super().__init__("Token already used")


class PaymentNotFoundError(SpinError):
    status_code = 403

    def __init__(self):
        super().__init__("No valid payment found")


class SpinAuthenticationError(SpinError):
    status_code = 401
    headers = {"WWW-Authenticate": "Bearer"}

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message)


class SpinFailedError(SpinError):
    status_code = 500

    def __init__(self, message: str = "Spin failed, please try again"):
        super().__init__(message)


class FulfillmentError(Exception):
    """Admin fulfillment failure with the HTTP status to report."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class PaymentVerificationError(Exception):
    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class CatalogValidationError(ValueError):
    """Prize edit would break a catalog invariant."""

    def __init__(self, problems: List[str]):
        super().__init__("; ".join(problems))
        self.problems = problems


class ExternalServiceError(RuntimeError):
    """A SaaS collaborator call failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class EmailDeliveryError(ExternalServiceError):
    pass


class WorkflowWebhookError(ExternalServiceError):
    pass


class PaymentGatewayError(ExternalServiceError):
    pass


class RetryExhaustedError(RuntimeError):
    """All attempts of a retried call failed; last_error is the final cause."""

    def __init__(self, attempts: int, last_error: BaseException):
        super().__init__(f"Gave up after {attempts} attempts: {last_error}")
        self.attempts = attempts
        self.last_error = last_error
