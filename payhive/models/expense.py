"""
Expense model - a shared cost awaiting (or past) group approval.

Lifecycle: pending -> authorized. Authorized is terminal; only approvals
and the authorization flag ever change after creation.
"""

from typing import List
from datetime import datetime
from enum import Enum

from pydantic import Field, field_validator

from payhive.models.base import LedgerModel, _utcnow, new_id


class ExpenseStatus(str, Enum):
    PENDING = "pending"
    AUTHORIZED = "authorized"


class Expense(LedgerModel):
    """
    Invariants:
    - amount > 0
    - participants is non-empty and holds no duplicates
    - approvals holds no duplicates (approving twice is a no-op)
    - is_authorized is derived from approvals and group size
    """
    id: str = Field(default_factory=lambda: new_id("expense"))
    group_id: str
    description: str
    amount: float = Field(..., gt=0)  # USD-equivalent, currency-less

    paid_by: str
    participants: List[str] = Field(..., min_length=1)
    approvals: List[str] = []
    is_authorized: bool = False

    created_at: datetime = Field(default_factory=_utcnow)

    @field_validator("participants")
    @classmethod
    def participants_unique(cls, value: List[str]) -> List[str]:
        if len(set(value)) != len(value):
            raise ValueError("participants must be unique")
        return value

    @field_validator("approvals")
    @classmethod
    def approvals_unique(cls, value: List[str]) -> List[str]:
        # Keep first occurrence; stored documents may carry repeats
        return list(dict.fromkeys(value))

    @property
    def status(self) -> ExpenseStatus:
        return ExpenseStatus.AUTHORIZED if self.is_authorized else ExpenseStatus.PENDING

    @property
    def share(self) -> float:
        """Even split owed by each participant."""
        return self.amount / len(self.participants)
