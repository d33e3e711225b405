from typing import Dict, List, Optional
from pydantic import BaseModel

from payhive.models.payment import PaymentRail
from payhive.models.settlement import Settlement


class GroupSummary(BaseModel):
    group_id: str
    member_count: int
    expense_count: int
    authorized_expense_count: int
    pending_expense_count: int
    total_authorized_amount: float
    is_settled_up: bool


class BalancesResponse(BaseModel):
    """Signed net balance per member (positive = is owed)."""
    group_id: str
    balances: Dict[str, float]


class SettlementListResponse(BaseModel):
    group_id: str
    settlements: List[Settlement]
    settled_up: bool


class SettleRequest(BaseModel):
    """Execute one planned transfer."""
    from_user_id: str
    to_user_id: str
    preferred_rail: Optional[PaymentRail] = None
