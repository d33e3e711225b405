from typing import List, Optional
from datetime import datetime

from pydantic import Field, model_validator

from payhive.models.base import LedgerModel, _utcnow, new_id
from payhive.models.expense import Expense
from payhive.models.member import Member


class Group(LedgerModel):
    """
    Aggregate root: owns its members (append-only, join order) and expenses.
    """
    id: str = Field(default_factory=lambda: new_id("group"))
    name: str = Field(..., min_length=1)
    description: Optional[str] = None

    members: List[Member] = []
    expenses: List[Expense] = []

    created_at: datetime = Field(default_factory=_utcnow)
    created_by: str

    @model_validator(mode="after")
    def members_unique(self) -> "Group":
        ids = [m.user_id for m in self.members]
        if len(set(ids)) != len(ids):
            raise ValueError("member user ids must be unique within a group")
        return self

    @property
    def member_ids(self) -> List[str]:
        return [m.user_id for m in self.members]

    def find_member(self, user_id: str) -> Optional[Member]:
        for member in self.members:
            if member.user_id == user_id:
                return member
        return None

    def find_expense(self, expense_id: str) -> Optional[Expense]:
        for expense in self.expenses:
            if expense.id == expense_id:
                return expense
        return None

    def authorized_expenses(self) -> List[Expense]:
        return [e for e in self.expenses if e.is_authorized]
