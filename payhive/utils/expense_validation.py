"""Expense validation utilities."""
import math
from decimal import Decimal
from typing import Iterable, List, Optional, Union

from payhive.models.group import Group
from payhive.utils.errors import InvalidMemberError, LedgerValidationError


def validate_member(group: Group, member_id: str) -> None:
    """Raise InvalidMemberError unless member_id is (or was) in the group."""
    if group.find_member(member_id) is None:
        raise InvalidMemberError(member_id, group.id)


def validate_amount(amount: Union[int, float, Decimal, str]) -> float:
    """
    Coerce and check an expense amount.

    Rules:
    - must parse as a number
    - must be finite and strictly positive
    """
    if isinstance(amount, bool):
        raise LedgerValidationError(f"Amount must be a number, got {amount!r}")
    try:
        value = float(amount)
    except (TypeError, ValueError):
        raise LedgerValidationError(f"Amount must be a number, got {amount!r}")

    if not math.isfinite(value) or value <= 0:
        raise LedgerValidationError(f"Amount must be positive: {amount}")
    return value


def validate_description(description: str) -> str:
    cleaned = (description or "").strip()
    if not cleaned:
        raise LedgerValidationError("Expense description is required")
    return cleaned


def validate_participants(group: Group, participants: Optional[Iterable[str]]) -> List[str]:
    """
    Resolve the participant list for a new expense.

    Rules:
    - None means every current member, in join order
    - the list must be non-empty and hold no duplicates
    - every id must be a group member
    """
    if participants is None:
        return group.member_ids

    resolved = list(participants)
    if not resolved:
        raise LedgerValidationError("An expense needs at least one participant")

    if len(set(resolved)) != len(resolved):
        raise LedgerValidationError("Participants must be unique")

    for member_id in resolved:
        validate_member(group, member_id)

    return resolved
