import logging

from fastapi import FastAPI

from payhive.api.v1.api import api_router
from payhive.core.config import settings
from payhive.services.group_service import GroupService
from payhive.services.settlement_service import SettlementService

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)

app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.PROJECT_VERSION,
    description=settings.DESCRIPTION
)

# No payment rails are wired by default; hosts register gateways here
app.state.group_service = GroupService()
app.state.settlement_service = SettlementService()

@app.get("/")
async def root():
    return {"message": "Welcome to PayHive API"}

app.include_router(api_router, prefix=settings.API_V1_STR)
