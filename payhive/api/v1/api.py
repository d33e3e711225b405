from fastapi import APIRouter
from payhive.api.v1.endpoints import groups, expenses, ledger

api_router = APIRouter()

api_router.include_router(groups.router, prefix="/groups", tags=["groups"])
api_router.include_router(expenses.router, prefix="/groups", tags=["expenses"])
api_router.include_router(ledger.router, prefix="/groups", tags=["ledger"])
