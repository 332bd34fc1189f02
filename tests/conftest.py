"""Shared test fixtures and configuration."""

import json
import os
from decimal import Decimal
from typing import Any, Callable, Dict, List

import httpx
import pytest

# Set up test environment variables before importing modules
os.environ.setdefault("API_KEY", "test_api_key_12345")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from utr_recon.config import GatewaySettings
from utr_recon.database import Database
from utr_recon.reconciliation import (
    GatewayConfig,
    GatewayStatus,
    GatewayType,
    InMemoryGatewayConfigStore,
    InMemoryOrderStore,
    InMemoryTransactionStore,
    Order,
)


def mock_client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
    """Build an AsyncClient whose requests are answered by ``handler``."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def json_handler(body: Any, status_code: int = 200, seen: List[httpx.Request] = None):
    """Handler returning a fixed JSON body and recording each request."""
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status_code, content=json.dumps(body).encode(),
                              headers={"Content-Type": "application/json"})
    return handler


@pytest.fixture
def settings() -> GatewaySettings:
    return GatewaySettings(
        razorpay_base_url="https://razorpay.test/v1",
        paytm_base_url="https://paytm.test",
        bharatpe_base_url="https://bharatpe.test",
    )


@pytest.fixture
def razorpay_config() -> GatewayConfig:
    return GatewayConfig(
        id="gw_razorpay",
        name="Razorpay main",
        type=GatewayType.RAZORPAY,
        merchant_id="M123",
        api_details={"apiSecret": "rzp_key,rzp_secret"},
        status=GatewayStatus.ACTIVE,
        created_by="user_1",
    )


@pytest.fixture
def paytm_config() -> GatewayConfig:
    return GatewayConfig(
        id="gw_paytm",
        name="Paytm",
        type=GatewayType.PAYTM,
        merchant_id="PAYTM_MID",
        api_key="paytm_key",
        api_details={"apiToken": "paytm_token", "apiSecret": "paytm_checksum"},
        status=GatewayStatus.ACTIVE,
    )


@pytest.fixture
def bharatpe_config() -> GatewayConfig:
    return GatewayConfig(
        id="gw_bharatpe",
        name="BharatPe",
        type=GatewayType.BHARATPE,
        merchant_id="BP_MID",
        upi_id="shop@bharatpe",
        api_key="bp_key",
        api_details={"apiToken": "bp_token", "apiSecret": "bp_secret"},
        status=GatewayStatus.ACTIVE,
    )


@pytest.fixture
def stripe_config() -> GatewayConfig:
    return GatewayConfig(
        id="gw_stripe",
        name="Stripe",
        type=GatewayType.STRIPE,
        api_key="sk_test_dummy",
        status=GatewayStatus.ACTIVE,
    )


@pytest.fixture
def order() -> Order:
    return Order(
        order_id="ORD-1",
        gateway_id="gw_razorpay",
        amount=Decimal("1500.00"),
        customer_email="payer@example.com",
    )


@pytest.fixture
def razorpay_payment() -> Dict[str, Any]:
    return {
        "id": "pay_1",
        "amount": 150000,
        "captured": True,
        "status": "captured",
        "acquirer_data": {"rrn": "RRN999999999"},
    }


@pytest.fixture
def order_store(order) -> InMemoryOrderStore:
    return InMemoryOrderStore({order.order_id: order})


@pytest.fixture
def gateway_store(razorpay_config) -> InMemoryGatewayConfigStore:
    return InMemoryGatewayConfigStore({razorpay_config.id: razorpay_config})


@pytest.fixture
def transaction_store() -> InMemoryTransactionStore:
    return InMemoryTransactionStore()


@pytest.fixture
async def database():
    """Create an in-memory SQLite database for testing."""
    db = Database("sqlite+aiosqlite:///:memory:")
    await db.connect()
    yield db
    await db.disconnect()


@pytest.fixture
async def db_session(database):
    async with database.session() as session:
        yield session
