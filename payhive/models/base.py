from datetime import datetime, timezone
from uuid import uuid4

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id(prefix: str) -> str:
    """Short prefixed identifier, e.g. ``expense_3f9a1c2b7``."""
    return f"{prefix}_{uuid4().hex[:9]}"


class LedgerModel(BaseModel):
    # Documents written by the web client use camelCase keys (paidBy, isAuthorized)
    model_config = ConfigDict(
        populate_by_name=True,
        alias_generator=to_camel,
        from_attributes=True
    )
