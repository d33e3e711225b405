"""Contract for the external payment rails used to execute settlements."""
from typing import Protocol, runtime_checkable

from payhive.models.member import Member
from payhive.models.payment import PaymentRail, RailResult, TransferRequest


@runtime_checkable
class PaymentGateway(Protocol):
    """
    One payment rail (blockchain token transfer or payment processor).

    transfer() may be slow and is not idempotent. Failures are raised;
    GatewayError carries a known kind, anything else gets classified.

    Optional hooks, used when a gateway defines them:
    - async has_sufficient_balance(identity, amount) -> bool, checked
      before every transfer
    - async gas_price_wei() -> int, used for fee estimates on chain rails
    """
    rail: PaymentRail

    async def is_available(self) -> bool:
        ...

    async def transfer(self, request: TransferRequest) -> RailResult:
        ...


def payment_identity(member: Member, rail: PaymentRail) -> str:
    """Address a member on a rail: wallet for PYUSD, email for PayPal. Empty if unknown."""
    if rail == PaymentRail.PYUSD:
        return member.wallet_address or ""
    return str(member.email)
