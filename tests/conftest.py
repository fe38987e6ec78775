import os
from typing import Any, AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Test configuration: in-memory store, fake Razorpay credentials
os.environ["RAZORPAY_KEY_ID"] = "rzp_test_coursepay"
os.environ["RAZORPAY_KEY_SECRET"] = "test_key_secret"
os.environ["RAZORPAY_WEBHOOK_SECRET"] = "test_webhook_secret"
os.environ["DATASTORE_BACKEND"] = "memory"
os.environ["CAPABILITIES"] = "order-creation,payment-link-creation,checkout-verification,webhook-ingestion"

KEY_SECRET = "test_key_secret"
WEBHOOK_SECRET = "test_webhook_secret"


class FakeResource:
    def __init__(self, response: dict[str, Any]):
        self.response = response
        self.calls: list[dict[str, Any]] = []
        self.error: Exception | None = None

    def create(self, data: dict[str, Any]) -> dict[str, Any]:
        self.calls.append(data)
        if self.error is not None:
            raise self.error
        return {**self.response, "amount": data["amount"], "currency": data["currency"]}


class FakeRazorpayClient:
    def __init__(self) -> None:
        self.order = FakeResource({"id": "order_Test123", "entity": "order", "status": "created"})
        self.payment_link = FakeResource({"id": "plink_Test123", "short_url": "https://rzp.io/i/test123"})


@pytest.fixture(autouse=True)
def store():
    from coursepay.storage.base import get_entitlement_store
    get_entitlement_store.cache_clear()
    yield get_entitlement_store()
    get_entitlement_store.cache_clear()


@pytest.fixture
def fake_gateway(monkeypatch) -> FakeRazorpayClient:
    from coursepay.services import gateway
    fake = FakeRazorpayClient()
    monkeypatch.setattr(gateway, "get_razorpay_client", lambda: fake)
    return fake


@pytest.fixture
def settings():
    from coursepay.core.config import get_settings
    return get_settings()


@pytest_asyncio.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    from coursepay.main import app
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
