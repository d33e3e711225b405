"""FastAPI dependencies shared by the v1 endpoints."""
from fastapi import Request

from payhive.services.group_service import GroupService
from payhive.services.settlement_service import SettlementService


def get_group_service(request: Request) -> GroupService:
    """Return the application's group store."""
    return request.app.state.group_service


def get_settlement_service(request: Request) -> SettlementService:
    """Return the settlement service wired with the configured gateways."""
    return request.app.state.settlement_service
