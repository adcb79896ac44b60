import httpx
from pydantic import SecretStr

from checkout_backend.dependencies import get_settings
from checkout_backend.payments.signature import compute_signature

GATEWAY_SECRET = "rzp_test_secret_value"

CHECKOUT = {
    "items": [{"variant_id": "101", "quantity": 2}],
    "customer": {"name": "Asha Rao", "email": "a@b.com"},
    "shipping": {"address": "1 MG Road", "city": "Pune", "postal_code": "411001"},
    "total_amount": 99800,
}

def _verify_body(**overrides):
    body = {
        "intent_id": "order_ABC",
        "payment_id": "pay_123",
        "signature": compute_signature("order_ABC", "pay_123", GATEWAY_SECRET),
        "checkout": CHECKOUT,
    }
    body.update(overrides)
    return body

# --- /intents ---
def test_create_intent_generates_receipt(client, gateway_transport):
    r = client.post("/api/v1/payments/intents", json={"amount": 99800})
    assert r.status_code == 200
    data = r.json()
    assert data["success"] is True
    assert data["key_id"] == "rzp_test_key"
    assert data["intent"]["amount"] == 99800
    assert data["intent"]["receipt"].startswith("rcpt_")
    assert gateway_transport.json_bodies()[0]["receipt"] == data["intent"]["receipt"]

def test_create_intent_accepts_amount_paise_alias(client):
    r = client.post("/api/v1/payments/intents", json={"amountPaise": 500, "receipt": "rcpt_custom"})
    assert r.status_code == 200
    assert r.json()["intent"]["receipt"] == "rcpt_custom"

def test_two_calls_give_two_receipts(client, gateway_transport):
    client.post("/api/v1/payments/intents", json={"amount": 100})
    client.post("/api/v1/payments/intents", json={"amount": 100})
    receipts = [b["receipt"] for b in gateway_transport.json_bodies()]
    assert len(set(receipts)) == 2

def test_create_intent_zero_amount(client, gateway_transport):
    r = client.post("/api/v1/payments/intents", json={"amount": 0})
    assert r.status_code == 400
    assert r.json()["error"] == "invalid_amount"
    assert gateway_transport.requests == []

def test_create_intent_bad_payload(client):
    r = client.post("/api/v1/payments/intents", json={"amount": "abc"})
    assert r.status_code == 400
    assert r.json()["error"] == "validation_error"
    r = client.post("/api/v1/payments/intents", json={"amount": 10_000_001})
    assert r.status_code == 400

def test_create_intent_gateway_error(client, gateway_transport):
    gateway_transport.routes.clear()
    r = client.post("/api/v1/payments/intents", json={"amount": 100})
    assert r.status_code == 502
    assert r.json()["error"] == "gateway_unavailable"

# --- /verify ---
def test_verify_creates_order(client, platform_transport):
    r = client.post("/api/v1/payments/verify", json=_verify_body())
    assert r.status_code == 200
    data = r.json()
    assert data["success"] is True
    assert data["state"] == "completed"
    assert data["commerce_order_id"] == "5550001"
    assert data["order_reference"] == "1001"
    order = platform_transport.json_bodies()[0]["order"]
    assert order["transactions"][0]["amount"] == "998.00"

def test_verify_accepts_razorpay_field_names(client):
    body = {
        "razorpay_order_id": "order_ABC",
        "razorpay_payment_id": "pay_123",
        "razorpay_signature": compute_signature("order_ABC", "pay_123", GATEWAY_SECRET),
        "checkoutData": CHECKOUT,
    }
    r = client.post("/api/v1/payments/verify", json=body)
    assert r.status_code == 200
    assert r.json()["commerce_order_id"] == "5550001"

def test_verify_bad_signature(client, platform_transport):
    r = client.post("/api/v1/payments/verify", json=_verify_body(signature="0" * 64))
    assert r.status_code == 400
    data = r.json()
    assert data["stage"] == "signature_checked"
    assert data["reason"] == "signature_mismatch"
    assert platform_transport.requests == []

def test_verify_missing_fields(client):
    r = client.post("/api/v1/payments/verify", json={"intent_id": "order_ABC"})
    assert r.status_code == 400
    assert r.json()["reason"] == "missing_fields"

def test_verify_platform_rejection(client, platform_transport):
    platform_transport.routes[("POST", "/admin/api/2025-01/orders.json")] = (
        lambda request: httpx.Response(422, json={"errors": {"email": ["is invalid"]}})
    )
    r = client.post("/api/v1/payments/verify", json=_verify_body())
    assert r.status_code == 502
    data = r.json()
    assert data["stage"] == "order_submitted"
    assert data["reconciliation"]["upstream_status"] == 422
    assert data["reconciliation"]["details"] == {"errors": {"email": ["is invalid"]}}
    assert data["reconciliation"]["payment_id"] == "pay_123"

def test_verify_without_gateway_secret_answers_503(app, client, settings, platform_transport):
    app.dependency_overrides[get_settings] = lambda: settings.model_copy(update={"gateway_key_secret": SecretStr("")})
    r = client.post("/api/v1/payments/verify", json=_verify_body())
    assert r.status_code == 503
    data = r.json()
    assert data["reason"] == "not_configured"
    assert data["error"] == "ConfigurationError"
    assert platform_transport.requests == []

def test_verify_refunded_payment_creates_no_order(client, gateway_transport, platform_transport):
    gateway_transport.routes[("GET", "/v1/payments/pay_123")] = (
        lambda request: httpx.Response(200, json={"id": "pay_123", "status": "refunded"})
    )
    r = client.post("/api/v1/payments/verify", json=_verify_body())
    assert r.status_code == 400
    assert r.json()["reason"] == "payment_not_successful"
    assert platform_transport.requests == []
