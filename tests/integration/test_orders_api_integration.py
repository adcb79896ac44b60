from unittest.mock import MagicMock


def _store_body(**overrides):
    body = {
        "order_id": "5550001",
        "razorpay_order_id": "order_ABC",
        "razorpay_payment_id": "pay_123",
        "payment_method": "Online",
        "payment_status": "Paid",
        "subtotal": 99800,
        "discount": 0,
        "total_amount": 99800,
        "customer": {"name": "Asha Rao", "email": "a@b.com", "phone": "999"},
        "items": [{"product_title": "Tee", "variant": "101", "quantity": 2, "price": 99800}],
    }
    body.update(overrides)
    return body

def test_cod_order_created_pending(client, platform_transport):
    r = client.post("/api/v1/orders/cod", json={
        "checkoutData": {"items": [{"variant_id": "101", "quantity": 1}], "email": "a@b.com", "fullName": "Asha Rao"},
        "note": "COD",
    })
    assert r.status_code == 200
    assert r.json() == {"success": True, "commerce_order_id": "5550001", "order_reference": "1001"}
    assert platform_transport.json_bodies()[0]["order"]["financial_status"] == "pending"

def test_cod_order_empty_cart(client, platform_transport):
    r = client.post("/api/v1/orders/cod", json={"checkout": {"items": [{"variant_id": "", "quantity": 1}]}})
    assert r.status_code == 422
    assert r.json()["error"] == "empty_cart"
    assert platform_transport.requests == []

def test_store_order_converts_amounts(client, mock_supabase):
    orders_table, items_table = MagicMock(), MagicMock()
    orders_table.insert.return_value.execute.return_value = MagicMock(data=[{"order_id": "5550001"}])
    items_table.insert.return_value.execute.return_value = MagicMock(data=[{"id": 1}])
    mock_supabase.table.side_effect = lambda name: orders_table if name == "orders" else items_table

    r = client.post("/api/v1/orders/store", json=_store_body())
    assert r.status_code == 200
    assert r.json() == {"ok": True, "status": "ok", "order_id": "5550001", "items": 1}
    row = orders_table.insert.call_args[0][0]
    assert row["total_amount"] == "998.00"
    assert items_table.insert.call_args[0][0][0]["price"] == "998.00"

def test_store_order_parent_failure(client, mock_supabase):
    mock_supabase.table.side_effect = Exception("db down")
    r = client.post("/api/v1/orders/store", json=_store_body())
    assert r.status_code == 500
    assert r.json()["error"] == "order_insert_failed"

def test_store_order_items_failure(client, mock_supabase):
    orders_table, items_table = MagicMock(), MagicMock()
    orders_table.insert.return_value.execute.return_value = MagicMock(data=[{"order_id": "5550001"}])
    items_table.insert.side_effect = Exception("db down")
    mock_supabase.table.side_effect = lambda name: orders_table if name == "orders" else items_table
    r = client.post("/api/v1/orders/store", json=_store_body())
    assert r.status_code == 500
    data = r.json()
    assert data["error"] == "order_items_insert_failed"
    assert data["order_id"] == "5550001"

def test_store_order_validation(client):
    r = client.post("/api/v1/orders/store", json=_store_body(payment_method="Card"))
    assert r.status_code == 400
    r = client.post("/api/v1/orders/store", json=_store_body(customer={"email": "not-an-email"}))
    assert r.status_code == 400
