import logging
import math

from payhive.models.expense import Expense
from payhive.models.group import Group
from payhive.schemas.expense import ApprovalProgress
from payhive.utils.expense_validation import validate_member

logger = logging.getLogger(__name__)


class ApprovalService:
    """
    Quorum rules for expenses.

    An expense is authorized once ceil(member_count / 2) distinct members
    have approved it. Authorization never reverts.
    """

    @staticmethod
    def required_approvals(member_count: int) -> int:
        return math.ceil(member_count / 2)

    @staticmethod
    def recompute_authorization(group: Group, expense: Expense) -> bool:
        """Re-derive is_authorized from the current approvals. Idempotent."""
        if expense.is_authorized:
            return True

        required = ApprovalService.required_approvals(len(group.members))
        if len(expense.approvals) >= required:
            expense.is_authorized = True
            logger.info(
                "Expense %s in group %s authorized (%d/%d approvals)",
                expense.id, group.id, len(expense.approvals), required
            )
        return expense.is_authorized

    @staticmethod
    def record_approval(group: Group, expense: Expense, member_id: str) -> bool:
        """
        Add member_id to the expense's approvals.

        Any group member may approve, not only participants. Returns False
        when the member had already approved, in which case nothing changes.
        """
        validate_member(group, member_id)

        if member_id in expense.approvals:
            return False

        expense.approvals.append(member_id)
        logger.debug("Member %s approved expense %s", member_id, expense.id)
        ApprovalService.recompute_authorization(group, expense)
        return True

    @staticmethod
    def approval_progress(group: Group, expense: Expense) -> ApprovalProgress:
        return ApprovalProgress(
            expense_id=expense.id,
            approvals=len(expense.approvals),
            required=ApprovalService.required_approvals(len(group.members)),
            is_authorized=expense.is_authorized
        )
