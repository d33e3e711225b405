from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from payhive.api.deps import get_group_service
from payhive.models.group import Group
from payhive.models.member import Member
from payhive.schemas.group import GroupCreate, MemberAdd
from payhive.services.group_service import GroupService
from payhive.utils.errors import LedgerValidationError, NotFoundError

router = APIRouter()


@router.post(
    "/",
    response_model=Group,
    response_model_by_alias=False,
    status_code=status.HTTP_201_CREATED
)
async def create_group(
    group_in: GroupCreate,
    service: GroupService = Depends(get_group_service)
):
    """Create a group; the creator becomes the first member."""
    try:
        return service.create_group(
            name=group_in.name,
            creator=group_in.creator,
            members=group_in.members,
            description=group_in.description
        )
    except LedgerValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


@router.get("/", response_model=List[Group], response_model_by_alias=False)
async def list_groups(
    user_id: Optional[str] = None,
    service: GroupService = Depends(get_group_service)
):
    """List groups, optionally only those a user belongs to."""
    return service.list_groups(user_id)


@router.get("/{group_id}", response_model=Group, response_model_by_alias=False)
async def get_group(
    group_id: str,
    service: GroupService = Depends(get_group_service)
):
    try:
        return service.get_group(group_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@router.post(
    "/{group_id}/members",
    response_model=Member,
    response_model_by_alias=False,
    status_code=status.HTTP_201_CREATED
)
async def add_member(
    group_id: str,
    payload: MemberAdd,
    service: GroupService = Depends(get_group_service)
):
    """Add a member to a group."""
    try:
        return service.add_member(group_id, payload.user)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except LedgerValidationError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
