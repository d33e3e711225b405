from pydantic import Field

from payhive.models.base import LedgerModel


class Settlement(LedgerModel):
    """Transient transfer instruction: from_user_id owes to_user_id amount."""
    from_user_id: str
    to_user_id: str
    amount: float = Field(..., gt=0)

    @property
    def key(self) -> str:
        return f"{self.from_user_id}->{self.to_user_id}"

    @property
    def display_amount(self) -> str:
        return f"{self.amount:.2f}"
