"""
GroupService - owns Group aggregates and exposes the ledger operations.

All mutations of a group are synchronous; callers serialize writes per
group. Groups share no state, so independent groups need no locking.
"""

import logging
from typing import Dict, Iterable, List, Optional, Union
from decimal import Decimal

from payhive.models.expense import Expense
from payhive.models.group import Group
from payhive.models.member import Member, User
from payhive.models.settlement import Settlement
from payhive.schemas.expense import ApprovalProgress
from payhive.schemas.ledger import GroupSummary
from payhive.services.approval_service import ApprovalService
from payhive.services.ledger_service import LedgerService
from payhive.utils.errors import LedgerValidationError, NotFoundError
from payhive.utils.expense_validation import (
    validate_amount,
    validate_description,
    validate_member,
    validate_participants,
)

logger = logging.getLogger(__name__)


class GroupService:
    """In-memory owner of groups and their expenses."""

    def __init__(self, groups: Optional[Iterable[Group]] = None):
        self._groups: Dict[str, Group] = {}
        for group in groups or []:
            self.add_group(group)

    # ===== GROUPS =====

    def create_group(
        self,
        name: str,
        creator: User,
        members: Iterable[User] = (),
        description: Optional[str] = None
    ) -> Group:
        """Create a group; the creator becomes its first member."""
        if not (name or "").strip():
            raise LedgerValidationError("Group name is required")

        group_members: List[Member] = []
        seen = set()
        for user in [creator, *members]:
            if user.id in seen:
                continue
            seen.add(user.id)
            group_members.append(self._member_from_user(user))

        group = Group(
            name=name.strip(),
            description=description,
            members=group_members,
            created_by=creator.id
        )
        self._groups[group.id] = group
        logger.info("Created group %s with %d members", group.id, len(group.members))
        return group

    def add_group(self, group: Group) -> Group:
        """Register an existing aggregate, e.g. one loaded from storage."""
        if group.id in self._groups:
            raise LedgerValidationError(f"Group {group.id} already exists")
        self._groups[group.id] = group
        return group

    def get_group(self, group_id: str) -> Group:
        group = self._groups.get(group_id)
        if group is None:
            raise NotFoundError(f"Group {group_id} not found")
        return group

    def list_groups(self, user_id: Optional[str] = None) -> List[Group]:
        """All groups, or only those user_id belongs to."""
        groups = list(self._groups.values())
        if user_id is None:
            return groups
        return [g for g in groups if g.find_member(user_id) is not None]

    def add_member(self, group_id: str, user: User) -> Member:
        """
        Append a member. Existing expenses keep their authorization; call
        recompute_authorization to re-derive it for the new group size.
        """
        group = self.get_group(group_id)
        if group.find_member(user.id) is not None:
            raise LedgerValidationError(f"User {user.id} is already a member")

        member = self._member_from_user(user)
        group.members.append(member)
        logger.info("User %s joined group %s", user.id, group_id)
        return member

    # ===== EXPENSES =====

    def add_expense(
        self,
        group_id: str,
        description: str,
        amount: Union[int, float, Decimal, str],
        paid_by: str,
        participants: Optional[Iterable[str]] = None
    ) -> Expense:
        """
        Log a pending expense. The payer's approval is recorded up front.
        """
        group = self.get_group(group_id)
        validate_member(group, paid_by)

        expense = Expense(
            group_id=group.id,
            description=validate_description(description),
            amount=validate_amount(amount),
            paid_by=paid_by,
            participants=validate_participants(group, participants),
            approvals=[paid_by]
        )
        group.expenses.append(expense)
        logger.info("Expense %s (%.2f) added to group %s", expense.id, expense.amount, group_id)
        return expense

    def get_expense(self, group_id: str, expense_id: str) -> Expense:
        group = self.get_group(group_id)
        expense = group.find_expense(expense_id)
        if expense is None:
            raise NotFoundError(f"Expense {expense_id} not found in group {group_id}")
        return expense

    def record_approval(self, group_id: str, expense_id: str, member_id: str) -> Expense:
        """Approve an expense; approving twice is a no-op."""
        group = self.get_group(group_id)
        expense = self.get_expense(group_id, expense_id)
        ApprovalService.record_approval(group, expense, member_id)
        return expense

    def recompute_authorization(self, group_id: str, expense_id: str) -> Expense:
        group = self.get_group(group_id)
        expense = self.get_expense(group_id, expense_id)
        ApprovalService.recompute_authorization(group, expense)
        return expense

    def get_approval_progress(self, group_id: str, expense_id: str) -> ApprovalProgress:
        group = self.get_group(group_id)
        expense = self.get_expense(group_id, expense_id)
        return ApprovalService.approval_progress(group, expense)

    # ===== BALANCES & SETTLEMENTS =====

    def get_balances(self, group_id: str) -> Dict[str, float]:
        return LedgerService.calculate_balances(self.get_group(group_id))

    def get_settlements(self, group_id: str, member_id: Optional[str] = None) -> List[Settlement]:
        """Planned transfers for the group, optionally only those involving member_id."""
        group = self.get_group(group_id)
        settlements = LedgerService.plan_settlements(LedgerService.calculate_balances(group))
        if member_id is None:
            return settlements

        validate_member(group, member_id)
        return LedgerService.settlements_for_member(settlements, member_id)

    def find_settlement(self, group_id: str, from_user_id: str, to_user_id: str) -> Settlement:
        for settlement in self.get_settlements(group_id):
            if settlement.from_user_id == from_user_id and settlement.to_user_id == to_user_id:
                return settlement
        raise NotFoundError(
            f"No outstanding settlement from {from_user_id} to {to_user_id} in group {group_id}"
        )

    def get_summary(self, group_id: str) -> GroupSummary:
        return LedgerService.summarize(self.get_group(group_id))

    # ===== PRIVATE HELPERS =====

    @staticmethod
    def _member_from_user(user: User) -> Member:
        try:
            return Member.from_user(user)
        except ValueError as exc:
            raise LedgerValidationError(str(exc))
