"""Errors raised by the ledger core. Never retried; they signal caller misuse."""


class SettlementEngineError(Exception):
    """Base class for ledger core errors."""
    pass


class LedgerValidationError(SettlementEngineError):
    """Invalid input to a core operation (amount, participants, member refs)."""
    pass


class InvalidMemberError(LedgerValidationError):
    """Member id does not belong to the group."""

    def __init__(self, member_id: str, group_id: str):
        self.member_id = member_id
        self.group_id = group_id
        super().__init__(f"User {member_id} is not a member of group {group_id}")


class NotFoundError(SettlementEngineError):
    """Referenced group or expense does not exist."""
    pass
