"""
Payment error classification and retry policy.

Gateways may raise anything. classify_error() maps a raised exception to a
PaymentError so the settlement service can decide whether to retry and
what to tell the user.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, TypeVar

from pydantic import BaseModel

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PaymentErrorType(str, Enum):
    INSUFFICIENT_BALANCE = "insufficient_balance"
    NETWORK_ERROR = "network_error"
    INVALID_ADDRESS = "invalid_address"
    TRANSACTION_FAILED = "transaction_failed"
    PAYPAL_ERROR = "paypal_error"
    WALLET_ERROR = "wallet_error"
    USER_REJECTED = "user_rejected"
    UNKNOWN_ERROR = "unknown_error"


class PaymentError(BaseModel):
    type: PaymentErrorType
    message: str
    details: Optional[str] = None
    recoverable: bool = True
    suggested_action: Optional[str] = None


class RetryStrategy(BaseModel):
    should_retry: bool
    max_retries: int
    backoff_seconds: float


class GatewayError(Exception):
    """Raised by gateways that already know what went wrong."""

    def __init__(self, error_type: PaymentErrorType, message: str = ""):
        self.error_type = error_type
        super().__init__(message or error_type.value)


_MESSAGES = {
    PaymentErrorType.INSUFFICIENT_BALANCE: (
        "Insufficient balance", True,
        "Add more funds to your wallet or try PayPal instead"
    ),
    PaymentErrorType.NETWORK_ERROR: (
        "Network error", True,
        "Check your internet connection and try again"
    ),
    PaymentErrorType.INVALID_ADDRESS: (
        "Invalid wallet address", False,
        "Please contact support"
    ),
    PaymentErrorType.TRANSACTION_FAILED: (
        "Transaction failed", True,
        "Try again with higher gas fees or check contract state"
    ),
    PaymentErrorType.PAYPAL_ERROR: (
        "PayPal payment failed", True,
        "Try again or use PYUSD payment instead"
    ),
    PaymentErrorType.WALLET_ERROR: (
        "Wallet connection error", True,
        "Please ensure your wallet is connected and try again"
    ),
    PaymentErrorType.USER_REJECTED: (
        "Transaction cancelled", True,
        "Please approve the transaction to continue"
    ),
    PaymentErrorType.UNKNOWN_ERROR: (
        "Payment failed", True,
        "Please try again or contact support"
    ),
}

_CODES = {
    "INSUFFICIENT_FUNDS": PaymentErrorType.INSUFFICIENT_BALANCE,
    "USER_REJECTED": PaymentErrorType.USER_REJECTED,
    "ACTION_REJECTED": PaymentErrorType.USER_REJECTED,
    4001: PaymentErrorType.USER_REJECTED,
    "NETWORK_ERROR": PaymentErrorType.NETWORK_ERROR,
    -32002: PaymentErrorType.NETWORK_ERROR,
    "INVALID_ARGUMENT": PaymentErrorType.INVALID_ADDRESS,
}

_RETRY = {
    PaymentErrorType.NETWORK_ERROR: RetryStrategy(should_retry=True, max_retries=2, backoff_seconds=2.0),
    PaymentErrorType.TRANSACTION_FAILED: RetryStrategy(should_retry=True, max_retries=2, backoff_seconds=5.0),
    PaymentErrorType.PAYPAL_ERROR: RetryStrategy(should_retry=True, max_retries=2, backoff_seconds=3.0),
    PaymentErrorType.USER_REJECTED: RetryStrategy(should_retry=False, max_retries=0, backoff_seconds=0.0),
    PaymentErrorType.INSUFFICIENT_BALANCE: RetryStrategy(should_retry=False, max_retries=0, backoff_seconds=0.0),
    PaymentErrorType.INVALID_ADDRESS: RetryStrategy(should_retry=False, max_retries=0, backoff_seconds=0.0),
}
_DEFAULT_RETRY = RetryStrategy(should_retry=True, max_retries=1, backoff_seconds=1.0)


def build_payment_error(error_type: PaymentErrorType, details: Optional[str] = None) -> PaymentError:
    """PaymentError with the stock message and suggested action for error_type."""
    message, recoverable, action = _MESSAGES[error_type]
    return PaymentError(
        type=error_type,
        message=message,
        details=details,
        recoverable=recoverable,
        suggested_action=action
    )


def classify_error(error: Any) -> PaymentError:
    """Map a raised gateway exception to a PaymentError."""
    if isinstance(error, PaymentError):
        return error

    if isinstance(error, GatewayError):
        return build_payment_error(error.error_type, str(error))

    text = str(error) if error is not None else ""
    lowered = text.lower()

    # Wallet / JSON-RPC style error codes
    code = getattr(error, "code", None)
    if isinstance(code, (str, int)) and code in _CODES:
        return build_payment_error(_CODES[code], text)

    # Processor HTTP errors carry the response body
    response = getattr(error, "response", None)
    if response is not None and getattr(response, "data", None):
        data = response.data
        details = None
        if isinstance(data, dict):
            details = data.get("message") or data.get("error_description")
        return build_payment_error(PaymentErrorType.PAYPAL_ERROR, details or "Unknown PayPal error")

    if isinstance(error, (ConnectionError, TimeoutError, asyncio.TimeoutError)):
        return build_payment_error(PaymentErrorType.NETWORK_ERROR, text or "Connection to payment network failed")

    if "wallet" in lowered or "metamask" in lowered:
        return build_payment_error(PaymentErrorType.WALLET_ERROR, text)

    if "insufficient" in lowered:
        return build_payment_error(PaymentErrorType.INSUFFICIENT_BALANCE, text)

    if "network" in lowered or "connection" in lowered:
        return build_payment_error(PaymentErrorType.NETWORK_ERROR, text)

    if "transaction" in lowered or "reverted" in lowered:
        return build_payment_error(PaymentErrorType.TRANSACTION_FAILED, text)

    return build_payment_error(PaymentErrorType.UNKNOWN_ERROR, text or "An unknown error occurred")


def get_retry_strategy(error_type: PaymentErrorType) -> RetryStrategy:
    return _RETRY.get(error_type, _DEFAULT_RETRY)


def format_error_for_user(error: PaymentError) -> str:
    return f"{error.message}\n\n{error.suggested_action or 'Please try again.'}"


async def retry_operation(
    operation: Callable[[], Awaitable[T]],
    context: str = "operation",
    backoff_scale: float = 1.0
) -> T:
    """
    Await operation(), retrying according to the strategy of each failure.

    Terminal error kinds are re-raised immediately. Backoff doubles with
    each retry (base, 2 x base, ...) and stops at the strategy's max_retries.
    """
    attempt = 0
    while True:
        try:
            return await operation()
        except Exception as exc:
            error = classify_error(exc)
            strategy = get_retry_strategy(error.type)
            if not strategy.should_retry or attempt >= strategy.max_retries:
                raise

            attempt += 1
            logger.warning(
                "%s failed (%s), retry %d/%d",
                context, error.type.value, attempt, strategy.max_retries
            )
            delay = strategy.backoff_seconds * 2 ** (attempt - 1) * backoff_scale
            if delay > 0:
                await asyncio.sleep(delay)
