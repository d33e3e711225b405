import pytest
from unittest.mock import AsyncMock

from payhive.utils.payment_errors import (
    GatewayError,
    PaymentErrorType,
    build_payment_error,
    classify_error,
    format_error_for_user,
    get_retry_strategy,
    retry_operation,
)


class CodedError(Exception):
    def __init__(self, message, code):
        super().__init__(message)
        self.code = code


class _Response:
    def __init__(self, data):
        self.data = data


class ProcessorError(Exception):
    def __init__(self, data):
        super().__init__("Request failed with status code 422")
        self.response = _Response(data)


@pytest.mark.parametrize("error, expected", [
    (CodedError("user denied", 4001), PaymentErrorType.USER_REJECTED),
    (CodedError("denied", "ACTION_REJECTED"), PaymentErrorType.USER_REJECTED),
    (CodedError("low funds", "INSUFFICIENT_FUNDS"), PaymentErrorType.INSUFFICIENT_BALANCE),
    (CodedError("rpc busy", -32002), PaymentErrorType.NETWORK_ERROR),
    (CodedError("bad address", "INVALID_ARGUMENT"), PaymentErrorType.INVALID_ADDRESS),
    (ConnectionError(), PaymentErrorType.NETWORK_ERROR),
    (TimeoutError("read timed out"), PaymentErrorType.NETWORK_ERROR),
    (RuntimeError("MetaMask is locked"), PaymentErrorType.WALLET_ERROR),
    (RuntimeError("insufficient funds for gas"), PaymentErrorType.INSUFFICIENT_BALANCE),
    (RuntimeError("network changed"), PaymentErrorType.NETWORK_ERROR),
    (RuntimeError("execution reverted"), PaymentErrorType.TRANSACTION_FAILED),
    (RuntimeError("something odd"), PaymentErrorType.UNKNOWN_ERROR),
    (GatewayError(PaymentErrorType.INVALID_ADDRESS), PaymentErrorType.INVALID_ADDRESS),
])
def test_classify_error(error, expected):
    assert classify_error(error).type == expected


def test_unknown_code_falls_through_to_message():
    error = classify_error(CodedError("wallet not connected", 9999))
    assert error.type == PaymentErrorType.WALLET_ERROR


def test_processor_error_uses_response_message():
    error = classify_error(ProcessorError({"message": "Payee account is restricted"}))

    assert error.type == PaymentErrorType.PAYPAL_ERROR
    assert error.details == "Payee account is restricted"
    assert error.recoverable is True


def test_classified_error_passes_through():
    known = build_payment_error(PaymentErrorType.WALLET_ERROR, "locked")
    assert classify_error(known) is known


def test_invalid_address_is_not_recoverable():
    error = build_payment_error(PaymentErrorType.INVALID_ADDRESS)

    assert error.recoverable is False
    assert format_error_for_user(error) == "Invalid wallet address\n\nPlease contact support"


@pytest.mark.parametrize("error_type, should_retry, max_retries, backoff", [
    (PaymentErrorType.NETWORK_ERROR, True, 2, 2.0),
    (PaymentErrorType.TRANSACTION_FAILED, True, 2, 5.0),
    (PaymentErrorType.PAYPAL_ERROR, True, 2, 3.0),
    (PaymentErrorType.USER_REJECTED, False, 0, 0.0),
    (PaymentErrorType.INSUFFICIENT_BALANCE, False, 0, 0.0),
    (PaymentErrorType.INVALID_ADDRESS, False, 0, 0.0),
    (PaymentErrorType.WALLET_ERROR, True, 1, 1.0),
    (PaymentErrorType.UNKNOWN_ERROR, True, 1, 1.0),
])
def test_retry_strategy(error_type, should_retry, max_retries, backoff):
    strategy = get_retry_strategy(error_type)
    assert (strategy.should_retry, strategy.max_retries, strategy.backoff_seconds) == (
        should_retry, max_retries, backoff
    )


@pytest.mark.asyncio
async def test_retry_operation_returns_first_success():
    operation = AsyncMock(side_effect=[RuntimeError("execution reverted"), "ok"])

    assert await retry_operation(operation, backoff_scale=0) == "ok"
    assert operation.await_count == 2


@pytest.mark.asyncio
async def test_retry_operation_reraises_terminal_error():
    operation = AsyncMock(side_effect=CodedError("user denied", 4001))

    with pytest.raises(CodedError):
        await retry_operation(operation, backoff_scale=0)
    assert operation.await_count == 1


@pytest.mark.asyncio
async def test_retry_operation_stops_after_max_retries():
    operation = AsyncMock(side_effect=RuntimeError("something odd"))

    with pytest.raises(RuntimeError):
        await retry_operation(operation, backoff_scale=0)
    assert operation.await_count == 2


@pytest.mark.asyncio
async def test_retry_operation_backs_off_exponentially(monkeypatch):
    delays = []

    async def fake_sleep(delay):
        delays.append(delay)

    monkeypatch.setattr("payhive.utils.payment_errors.asyncio.sleep", fake_sleep)
    operation = AsyncMock(side_effect=RuntimeError("execution reverted"))

    with pytest.raises(RuntimeError):
        await retry_operation(operation, backoff_scale=0.5)

    # transaction_failed: 5s base, two retries
    assert delays == [2.5, 5.0]
    assert operation.await_count == 3


@pytest.mark.asyncio
async def test_network_errors_get_three_attempts(monkeypatch):
    delays = []

    async def fake_sleep(delay):
        delays.append(delay)

    monkeypatch.setattr("payhive.utils.payment_errors.asyncio.sleep", fake_sleep)
    operation = AsyncMock(side_effect=ConnectionError("reset"))

    with pytest.raises(ConnectionError):
        await retry_operation(operation)

    assert delays == [2.0, 4.0]
    assert operation.await_count == 3
