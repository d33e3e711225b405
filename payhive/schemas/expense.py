from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel


class ExpenseCreate(BaseModel):
    description: str
    amount: float
    paid_by: str
    participants: Optional[List[str]] = None  # defaults to every member


class ApprovalCreate(BaseModel):
    """Member approving an expense."""
    member_id: str


class ApprovalProgress(BaseModel):
    """Approvals so far vs. quorum, e.g. 1/2."""
    expense_id: str
    approvals: int
    required: int
    is_authorized: bool


class ExpenseResponse(BaseModel):
    id: str
    group_id: str
    description: str
    amount: float
    paid_by: str
    participants: List[str]
    approvals: List[str]
    is_authorized: bool
    share: float
    required_approvals: int
    created_at: datetime

    model_config = {"from_attributes": True}


