"""Group request schemas."""
from typing import List, Optional
from pydantic import BaseModel, Field

from payhive.models.member import User


class GroupCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    creator: User
    members: List[User] = []  # additional members besides the creator


class MemberAdd(BaseModel):
    """Add a user to a group."""
    user: User
