from typing import Optional
from datetime import datetime

from pydantic import ConfigDict, EmailStr, Field

from payhive.models.base import LedgerModel, _utcnow


class User(LedgerModel):
    """Identity handed over by the auth provider. Never validated here."""
    id: str
    email: Optional[EmailStr] = None
    name: Optional[str] = None
    wallet_address: Optional[str] = None


class Member(LedgerModel):
    """
    A user's identity inside one group.

    Members are immutable and never removed so past expenses keep
    resolving their payer and participants.
    """
    model_config = ConfigDict(frozen=True)

    user_id: str = Field(..., min_length=1)
    email: EmailStr
    name: Optional[str] = None
    wallet_address: Optional[str] = None
    joined_at: datetime = Field(default_factory=_utcnow)

    @classmethod
    def from_user(cls, user: User) -> "Member":
        if not user.email:
            raise ValueError(f"User {user.id} has no email and cannot join a group")
        return cls(
            user_id=user.id,
            email=user.email,
            name=user.name,
            wallet_address=user.wallet_address
        )

    @property
    def display_name(self) -> str:
        return self.name or self.email.split("@")[0]
