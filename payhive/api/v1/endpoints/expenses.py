from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from payhive.api.deps import get_group_service
from payhive.models.expense import Expense
from payhive.schemas.expense import (
    ApprovalCreate,
    ApprovalProgress,
    ExpenseCreate,
    ExpenseResponse,
)
from payhive.services.approval_service import ApprovalService
from payhive.services.group_service import GroupService
from payhive.utils.errors import LedgerValidationError, NotFoundError

router = APIRouter()


def _to_response(service: GroupService, expense: Expense) -> ExpenseResponse:
    group = service.get_group(expense.group_id)
    return ExpenseResponse(
        id=expense.id,
        group_id=expense.group_id,
        description=expense.description,
        amount=expense.amount,
        paid_by=expense.paid_by,
        participants=expense.participants,
        approvals=expense.approvals,
        is_authorized=expense.is_authorized,
        share=expense.share,
        required_approvals=ApprovalService.required_approvals(len(group.members)),
        created_at=expense.created_at
    )


@router.get("/{group_id}/expenses", response_model=List[ExpenseResponse])
async def list_expenses(
    group_id: str,
    service: GroupService = Depends(get_group_service)
):
    try:
        group = service.get_group(group_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    return [_to_response(service, e) for e in group.expenses]


@router.post(
    "/{group_id}/expenses",
    response_model=ExpenseResponse,
    status_code=status.HTTP_201_CREATED
)
async def create_expense(
    group_id: str,
    expense_in: ExpenseCreate,
    service: GroupService = Depends(get_group_service)
):
    """Log an expense. It stays pending until it reaches quorum."""
    try:
        expense = service.add_expense(
            group_id,
            description=expense_in.description,
            amount=expense_in.amount,
            paid_by=expense_in.paid_by,
            participants=expense_in.participants
        )
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except LedgerValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return _to_response(service, expense)


@router.post("/{group_id}/expenses/{expense_id}/approvals", response_model=ExpenseResponse)
async def approve_expense(
    group_id: str,
    expense_id: str,
    payload: ApprovalCreate,
    service: GroupService = Depends(get_group_service)
):
    """Approve an expense. Repeated approvals by the same member are ignored."""
    try:
        expense = service.record_approval(group_id, expense_id, payload.member_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except LedgerValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return _to_response(service, expense)


@router.post("/{group_id}/expenses/{expense_id}/authorization", response_model=ApprovalProgress)
async def recompute_authorization(
    group_id: str,
    expense_id: str,
    service: GroupService = Depends(get_group_service)
):
    """Re-derive authorization, e.g. after the group grew."""
    try:
        service.recompute_authorization(group_id, expense_id)
        return service.get_approval_progress(group_id, expense_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
