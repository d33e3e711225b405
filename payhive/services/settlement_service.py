"""
SettlementService - executes one planned settlement through a payment rail.

Flow:
1. Resolve debtor and creditor to rail identities via the group's members
2. Pick a rail (preferred first, then PYUSD, then PayPal)
3. Check the payer can cover the amount, when the gateway can tell
4. Call the gateway once, retrying only per the error's retry strategy
5. Fold the rail result into a PaymentResult

Nothing is written back to the ledger: a successful transfer does not mark
the settlement as settled.
"""

import asyncio
import logging
from typing import Dict, Iterable, List, Optional

from pydantic import TypeAdapter

from payhive.core.config import settings
from payhive.models.group import Group
from payhive.models.member import Member
from payhive.models.payment import (
    PaymentRail,
    PaymentResult,
    PayPalResult,
    PyusdResult,
    RailResult,
    TransferRequest,
)
from payhive.models.settlement import Settlement
from payhive.services.gateways import PaymentGateway, payment_identity
from payhive.utils.errors import LedgerValidationError
from payhive.utils.expense_validation import validate_member
from payhive.utils.payment_errors import (
    PaymentErrorType,
    build_payment_error,
    classify_error,
    format_error_for_user,
    retry_operation,
)

logger = logging.getLogger(__name__)

RAIL_PRIORITY = (PaymentRail.PYUSD, PaymentRail.PAYPAL)

_rail_result_adapter = TypeAdapter(RailResult)


def settlement_key(group_id: str, settlement: Settlement) -> str:
    return f"{group_id}:{settlement.key}"


class SettlementService:
    """
    Runs at most one gateway call per settlement key at a time. A second
    settle() for the same key while the first is pending joins it instead
    of paying twice.
    """

    def __init__(
        self,
        gateways: Iterable[PaymentGateway] = (),
        backoff_scale: Optional[float] = None,
        default_rail: Optional[PaymentRail] = None
    ):
        self._gateways: Dict[PaymentRail, PaymentGateway] = {PaymentRail(g.rail): g for g in gateways}
        self._default_rail = PaymentRail(default_rail or settings.DEFAULT_PAYMENT_RAIL)
        self._backoff_scale = (
            settings.PAYMENT_BACKOFF_SCALE if backoff_scale is None else backoff_scale
        )
        self._in_flight: Dict[str, asyncio.Task] = {}

    async def available_rails(self) -> List[PaymentRail]:
        rails = []
        for rail in RAIL_PRIORITY:
            gateway = self._gateways.get(rail)
            if gateway is not None and await self._is_available(gateway):
                rails.append(rail)
        return rails

    def is_in_flight(self, key: str) -> bool:
        task = self._in_flight.get(key)
        return task is not None and not task.done()

    def cancel(self, key: str) -> bool:
        """Abandon a pending settlement. Waiters get a user_rejected result."""
        task = self._in_flight.get(key)
        if task is None or task.done():
            return False
        logger.info("Cancelling settlement %s", key)
        task.cancel()
        return True

    async def settle(
        self,
        group: Group,
        settlement: Settlement,
        preferred_rail: Optional[PaymentRail] = None
    ) -> PaymentResult:
        """
        Pay one settlement. Gateway failures come back as a failed
        PaymentResult; invalid members raise LedgerValidationError.
        """
        validate_member(group, settlement.from_user_id)
        validate_member(group, settlement.to_user_id)
        if settlement.from_user_id == settlement.to_user_id:
            raise LedgerValidationError("A member cannot settle with themselves")

        key = settlement_key(group.id, settlement)
        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._execute(group, settlement, preferred_rail))
            self._in_flight[key] = task
            task.add_done_callback(lambda t, key=key: self._forget(key, t))
        else:
            logger.info("Settlement %s already in flight, joining it", key)

        try:
            # Shielded so one waiter going away does not abort the payment
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            if task.cancelled():
                error = build_payment_error(
                    PaymentErrorType.USER_REJECTED,
                    "Settlement abandoned before the gateway answered"
                )
                return PaymentResult.failed(
                    amount=settlement.amount,
                    error=format_error_for_user(error),
                    error_type=error.type.value
                )
            raise

    async def estimate_fees(self, settlement: Settlement, rail: PaymentRail) -> float:
        """
        Rough fee in USD for paying settlement on rail.

        PayPal: 2.9% + 0.30. PYUSD: gas price x gas limit converted to USD,
        0 when the gateway cannot quote a gas price.
        """
        if PaymentRail(rail) == PaymentRail.PAYPAL:
            return max(
                settlement.amount * settings.PAYPAL_FEE_RATE + settings.PAYPAL_FEE_FIXED,
                settings.PAYPAL_FEE_FIXED
            )

        gas_price_wei = getattr(self._gateways.get(PaymentRail.PYUSD), "gas_price_wei", None)
        if gas_price_wei is None:
            return 0.0
        try:
            price = await gas_price_wei()
            return price * settings.PYUSD_GAS_LIMIT / 10**18 * settings.ETH_USD_PRICE
        except Exception as exc:
            logger.warning("Fee estimate for %s failed: %s", settlement.key, exc)
            return 0.0

    # ===== PRIVATE HELPERS =====

    def _forget(self, key: str, task: asyncio.Task) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]

    async def _is_available(self, gateway: PaymentGateway) -> bool:
        try:
            return await gateway.is_available()
        except Exception as exc:
            logger.warning("Health check for %s failed: %s", PaymentRail(gateway.rail).value, exc)
            return False

    async def _select_gateway(
        self,
        debtor: Member,
        creditor: Member,
        preferred_rail: Optional[PaymentRail]
    ) -> Optional[PaymentGateway]:
        candidates = [preferred_rail or self._default_rail]
        candidates += [r for r in RAIL_PRIORITY if r not in candidates]

        for rail in candidates:
            gateway = self._gateways.get(rail)
            if gateway is None:
                continue
            if not payment_identity(debtor, rail) or not payment_identity(creditor, rail):
                logger.debug("Skipping %s: missing payment identity", rail.value)
                continue
            if await self._is_available(gateway):
                return gateway
        return None

    async def _execute(
        self,
        group: Group,
        settlement: Settlement,
        preferred_rail: Optional[PaymentRail]
    ) -> PaymentResult:
        debtor = group.find_member(settlement.from_user_id)
        creditor = group.find_member(settlement.to_user_id)

        gateway = await self._select_gateway(debtor, creditor, preferred_rail)
        if gateway is None:
            logger.warning("No payment rail available for %s", settlement.key)
            return PaymentResult.failed(
                amount=settlement.amount,
                error="No payment methods available",
                error_type=PaymentErrorType.UNKNOWN_ERROR.value
            )

        rail = PaymentRail(gateway.rail)
        request = TransferRequest(
            from_identity=payment_identity(debtor, rail),
            to_identity=payment_identity(creditor, rail),
            amount=settlement.amount,
            description=f"{settings.SETTLEMENT_DESCRIPTION_PREFIX} {group.name}",
            rail=rail,
            group_id=group.id
        )

        try:
            has_sufficient_balance = getattr(gateway, "has_sufficient_balance", None)
            if has_sufficient_balance is not None:
                funded = await retry_operation(
                    lambda: has_sufficient_balance(request.from_identity, request.amount),
                    context=f"{rail.value} balance check {settlement.key}",
                    backoff_scale=self._backoff_scale
                )
                if not funded:
                    logger.warning("%s settlement %s: payer balance too low", rail.value, settlement.key)
                    error = build_payment_error(
                        PaymentErrorType.INSUFFICIENT_BALANCE,
                        f"Insufficient {rail.value.upper()} balance"
                    )
                    return PaymentResult.failed(
                        amount=settlement.amount,
                        error=format_error_for_user(error),
                        error_type=error.type.value,
                        rail=rail,
                        from_identity=request.from_identity,
                        to_identity=request.to_identity
                    )

            result = await retry_operation(
                lambda: gateway.transfer(request),
                context=f"{rail.value} transfer {settlement.key}",
                backoff_scale=self._backoff_scale
            )
        except Exception as exc:
            error = classify_error(exc)
            logger.error(
                "%s settlement %s failed: %s (%s)",
                rail.value, settlement.key, error.type.value, error.details
            )
            return PaymentResult.failed(
                amount=settlement.amount,
                error=format_error_for_user(error),
                error_type=error.type.value,
                rail=rail,
                from_identity=request.from_identity,
                to_identity=request.to_identity
            )

        try:
            if not isinstance(result, (PyusdResult, PayPalResult)):
                result = _rail_result_adapter.validate_python(result)
        except ValueError as exc:
            logger.error("%s gateway returned an unreadable result: %s", rail.value, exc)
            return PaymentResult.failed(
                amount=settlement.amount,
                error=format_error_for_user(
                    build_payment_error(PaymentErrorType.UNKNOWN_ERROR, str(exc))
                ),
                error_type=PaymentErrorType.UNKNOWN_ERROR.value,
                rail=rail,
                from_identity=request.from_identity,
                to_identity=request.to_identity
            )

        payment = PaymentResult.from_rail_result(result, settlement.amount)
        logger.info(
            "%s settlement %s submitted: %s (%s)",
            rail.value, settlement.key, payment.transaction_id, payment.status.value
        )
        return payment
