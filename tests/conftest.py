import pytest
from unittest.mock import AsyncMock, MagicMock
from fastapi.testclient import TestClient

from payhive.main import app
from payhive.models.member import User
from payhive.models.payment import PaymentRail
from payhive.services.group_service import GroupService
from payhive.services.settlement_service import SettlementService


@pytest.fixture
def alice():
    return User(id="alice", email="alice@example.com", name="Alice", wallet_address="0xA11CE")


@pytest.fixture
def bob():
    return User(id="bob", email="bob@example.com", name="Bob", wallet_address="0xB0B")


@pytest.fixture
def carol():
    return User(id="carol", email="carol@example.com", name="Carol")


@pytest.fixture
def dave():
    return User(id="dave", email="dave@example.com")


@pytest.fixture
def group_service():
    """Fresh in-memory group store."""
    return GroupService()


@pytest.fixture
def pair_group(group_service, alice, bob):
    """Group {alice, bob}."""
    return group_service.create_group("Flat", creator=alice, members=[bob])


@pytest.fixture
def trio_group(group_service, alice, bob, carol):
    """Group {alice, bob, carol}."""
    return group_service.create_group("Trip", creator=alice, members=[bob, carol])


@pytest.fixture
def quad_group(group_service, alice, bob, carol, dave):
    """Group {alice, bob, carol, dave}."""
    return group_service.create_group("Ski Trip", creator=alice, members=[bob, carol, dave])


@pytest.fixture
def make_gateway():
    """Build a mocked payment gateway for a rail."""
    def _make(rail: PaymentRail, result=None, side_effect=None, available=True, funded=True):
        gateway = MagicMock()
        gateway.rail = rail
        gateway.is_available = AsyncMock(return_value=available)
        gateway.has_sufficient_balance = AsyncMock(return_value=funded)
        gateway.gas_price_wei = AsyncMock(return_value=20 * 10**9)
        gateway.transfer = AsyncMock(return_value=result, side_effect=side_effect)
        return gateway
    return _make


@pytest.fixture
def test_client():
    """FastAPI test client backed by empty services."""
    app.state.group_service = GroupService()
    app.state.settlement_service = SettlementService(backoff_scale=0)
    with TestClient(app) as client:
        yield client
