"""
Payment models shared by the settlement service and the gateways.

Each rail returns its own result shape; both are folded into a single
PaymentResult before leaving the settlement service.
"""

from typing import Annotated, Literal, Optional, Union
from datetime import datetime
from enum import Enum

from pydantic import Field

from payhive.models.base import LedgerModel, _utcnow


class PaymentRail(str, Enum):
    PYUSD = "pyusd"    # blockchain stablecoin transfer
    PAYPAL = "paypal"  # traditional payment processor


class TransactionStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class TransferRequest(LedgerModel):
    """What a gateway is asked to move. Identities are rail specific."""
    from_identity: str  # wallet address or email
    to_identity: str
    amount: float = Field(..., gt=0)
    description: str
    rail: PaymentRail
    group_id: str


class PyusdResult(LedgerModel):
    rail: Literal["pyusd"] = "pyusd"
    tx_hash: str
    from_address: str
    to_address: str
    status: Literal["pending", "confirmed", "failed"] = "pending"
    gas_used: Optional[str] = None


class PayPalResult(LedgerModel):
    rail: Literal["paypal"] = "paypal"
    order_id: str
    order_status: str = "CREATED"  # PayPal order status, upper case
    payer_email: str
    payee_email: str


RailResult = Annotated[Union[PyusdResult, PayPalResult], Field(discriminator="rail")]


class PaymentResult(LedgerModel):
    success: bool
    transaction_id: str = ""
    rail: Optional[PaymentRail] = None
    amount: float
    from_identity: str = ""
    to_identity: str = ""
    status: TransactionStatus
    timestamp: datetime = Field(default_factory=_utcnow)
    gas_used: Optional[str] = None
    error: Optional[str] = None
    error_type: Optional[str] = None

    @classmethod
    def from_rail_result(cls, result: Union[PyusdResult, PayPalResult], amount: float) -> "PaymentResult":
        if isinstance(result, PyusdResult):
            status = {
                "pending": TransactionStatus.PENDING,
                "confirmed": TransactionStatus.COMPLETED,
            }.get(result.status, TransactionStatus.FAILED)
            return cls(
                success=status != TransactionStatus.FAILED,
                transaction_id=result.tx_hash,
                rail=PaymentRail.PYUSD,
                amount=amount,
                from_identity=result.from_address,
                to_identity=result.to_address,
                status=status,
                gas_used=result.gas_used
            )

        status = {
            "COMPLETED": TransactionStatus.COMPLETED,
            "APPROVED": TransactionStatus.PENDING,
            "CREATED": TransactionStatus.PENDING,
            "SAVED": TransactionStatus.PENDING,
            "PAYER_ACTION_REQUIRED": TransactionStatus.PENDING,
        }.get(result.order_status.upper(), TransactionStatus.FAILED)
        return cls(
            success=status != TransactionStatus.FAILED,
            transaction_id=result.order_id,
            rail=PaymentRail.PAYPAL,
            amount=amount,
            from_identity=result.payer_email,
            to_identity=result.payee_email,
            status=status
        )

    @classmethod
    def failed(
        cls,
        amount: float,
        error: str,
        error_type: Optional[str] = None,
        rail: Optional[PaymentRail] = None,
        from_identity: str = "",
        to_identity: str = ""
    ) -> "PaymentResult":
        return cls(
            success=False,
            rail=rail,
            amount=amount,
            from_identity=from_identity,
            to_identity=to_identity,
            status=TransactionStatus.FAILED,
            error=error,
            error_type=error_type
        )
