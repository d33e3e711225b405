from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status

from payhive.api.deps import get_group_service, get_settlement_service
from payhive.models.payment import PaymentResult
from payhive.schemas.ledger import (
    BalancesResponse,
    GroupSummary,
    SettlementListResponse,
    SettleRequest,
)
from payhive.services.group_service import GroupService
from payhive.services.settlement_service import SettlementService
from payhive.utils.errors import LedgerValidationError, NotFoundError

router = APIRouter()


@router.get("/{group_id}/balances", response_model=BalancesResponse)
async def get_balances(
    group_id: str,
    service: GroupService = Depends(get_group_service)
):
    """Net balance per member from authorized expenses."""
    try:
        return BalancesResponse(group_id=group_id, balances=service.get_balances(group_id))
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@router.get("/{group_id}/settlements", response_model=SettlementListResponse, response_model_by_alias=False)
async def get_settlements(
    group_id: str,
    member_id: Optional[str] = None,
    service: GroupService = Depends(get_group_service)
):
    """Planned transfers; pass member_id to see only that member's."""
    try:
        settlements = service.get_settlements(group_id, member_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except LedgerValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return SettlementListResponse(
        group_id=group_id,
        settlements=settlements,
        settled_up=not settlements
    )


@router.get("/{group_id}/summary", response_model=GroupSummary)
async def get_summary(
    group_id: str,
    service: GroupService = Depends(get_group_service)
):
    try:
        return service.get_summary(group_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@router.post("/{group_id}/settlements/execute", response_model=PaymentResult, response_model_by_alias=False)
async def execute_settlement(
    group_id: str,
    payload: SettleRequest,
    service: GroupService = Depends(get_group_service),
    settlement_service: SettlementService = Depends(get_settlement_service)
):
    """
    Pay one planned settlement through a payment rail.

    Gateway failures are reported in the result body, not as HTTP errors.
    """
    try:
        group = service.get_group(group_id)
        settlement = service.find_settlement(group_id, payload.from_user_id, payload.to_user_id)
        return await settlement_service.settle(group, settlement, payload.preferred_rail)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except LedgerValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
