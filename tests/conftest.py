import os

# Pas de Redis en tests: le lifespan désactive fastapi-limiter
os.environ.setdefault("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")

import json
from typing import Callable, Dict, Generator, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient
from pydantic import SecretStr
from unittest.mock import MagicMock

from checkout_backend.app import app as fastapi_app
from checkout_backend.config import CheckoutSettings
from checkout_backend.dependencies import get_commerce_client, get_gateway_client, get_settings
from checkout_backend.orders.commerce_client import CommerceOrderClient
from checkout_backend.payments.gateway_client import GatewayOrderClient

GATEWAY_SECRET = "rzp_test_secret_value"
STORE_DOMAIN = "test-shop.myshopify.com"

# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "/tests/unit/" in nodeid or nodeid.startswith("tests/unit/"):
            item.add_marker(pytest.mark.unit)
        elif "/tests/integration/" in nodeid or nodeid.startswith("tests/integration/"):
            item.add_marker(pytest.mark.integration)
        elif "/tests/functional/" in nodeid or nodeid.startswith("tests/functional/"):
            item.add_marker(pytest.mark.functional)


class RecordingTransport:
    """
    Handler httpx.MockTransport qui journalise les requêtes reçues.
    routes: {("POST", "/v1/orders"): callable(request) -> httpx.Response}
    """
    def __init__(self, routes: Optional[Dict[tuple, Callable[[httpx.Request], httpx.Response]]] = None):
        self.routes = dict(routes or {})
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404, json={"error": {"description": "no route"}})
        return handler(request)

    def json_bodies(self) -> List[dict]:
        return [json.loads(r.content) for r in self.requests if r.content]


@pytest.fixture
def settings() -> CheckoutSettings:
    return CheckoutSettings(
        gateway_key_id="rzp_test_key",
        gateway_key_secret=SecretStr(GATEWAY_SECRET),
        gateway_api_base="https://api.razorpay.test/v1",
        store_domain=STORE_DOMAIN,
        access_token=SecretStr("shpat_test_token"),
        oauth_client_id="client-id",
        oauth_client_secret=SecretStr("client-secret"),
        home_country="India",
        currency="INR",
        order_tags=("SSCheckout",),
        request_timeout=5.0,
        base_url="https://checkout.example.test",
    )

@pytest.fixture
def gateway_transport() -> RecordingTransport:
    def _create_order(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        n = len(gateway.requests)
        return httpx.Response(200, json={
            "id": f"order_{n}",
            "amount": body["amount"],
            "currency": body["currency"],
            "receipt": body["receipt"],
            "status": "created",
        })

    def _fetch_payment(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"id": request.url.path.rsplit("/", 1)[-1], "status": "captured"})

    gateway = RecordingTransport({("POST", "/v1/orders"): _create_order})
    gateway.routes[("GET", "/v1/payments/pay_123")] = _fetch_payment
    return gateway

@pytest.fixture
def platform_transport() -> RecordingTransport:
    def _create(request: httpx.Request) -> httpx.Response:
        return httpx.Response(201, json={"order": {"id": 5550001, "order_number": 1001, "line_items": []}})

    return RecordingTransport({("POST", "/admin/api/2025-01/orders.json"): _create})

@pytest.fixture
def gateway_client(settings, gateway_transport) -> GatewayOrderClient:
    http = httpx.Client(
        base_url=settings.gateway_api_base,
        transport=httpx.MockTransport(gateway_transport),
        auth=(settings.gateway_key_id, settings.gateway_key_secret.get_secret_value()),
    )
    return GatewayOrderClient(settings, http_client=http)

@pytest.fixture
def commerce_client(settings, platform_transport) -> CommerceOrderClient:
    http = httpx.Client(transport=httpx.MockTransport(platform_transport))
    return CommerceOrderClient(settings, http_client=http)

@pytest.fixture(scope="session")
def app():
    return fastapi_app

@pytest.fixture
def client(app, settings, gateway_client, commerce_client) -> Generator[TestClient, None, None]:
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_gateway_client] = lambda: gateway_client
    app.dependency_overrides[get_commerce_client] = lambda: commerce_client
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()

# Aucun accès Supabase réel pendant les tests
@pytest.fixture(autouse=True)
def mock_supabase(monkeypatch):
    fake = MagicMock()
    monkeypatch.setattr("checkout_backend.infra.supabase_client.get_service_supabase", lambda: fake)
    return fake
