"""
Integration tests for the inventory, alert and purchase-order endpoints.
"""

import pytest


def _create_item(client, headers, **overrides):
    payload = {
        "name": "Lidocaine 5%",
        "category": "consumable",
        "quantity": 15,
        "minStockLevel": 5,
        "unitCost": "3.20",
        "location": "Store",
    }
    payload.update(overrides)
    resp = client.post("/api/inventory", json=payload, headers=headers)
    assert resp.status_code == 200, resp.get_json()
    return resp.get_json()


def test_health_is_public(client):
    resp = client.get("/api/health")

    assert resp.status_code == 200
    assert resp.get_json()["status"] == "healthy"


@pytest.mark.auth
def test_missing_or_bad_token_is_401(client):
    assert client.get("/api/inventory").status_code == 401
    resp = client.get("/api/inventory", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401
    assert resp.get_json() == {"success": False, "message": "Authentication required"}


def test_create_returns_camel_case_annotated_item(client, auth_headers):
    item = _create_item(client, auth_headers)

    assert item["minStockLevel"] == 5
    assert item["unitCost"] == "3.20"
    assert item["stockStatus"] == "normal"
    assert item["isExpired"] is False
    assert "lockVersion" not in item
    assert "lock_version" not in item


def test_validation_errors_are_field_level(client, auth_headers):
    resp = client.post(
        "/api/inventory", json={"category": "weapons", "quantity": -2}, headers=auth_headers
    )

    assert resp.status_code == 400
    body = resp.get_json()
    assert body["success"] is False
    assert set(body["errors"]) == {"name", "category", "quantity"}


def test_movement_to_low_stock_and_alert(client, auth_headers):
    item = _create_item(client, auth_headers)

    resp = client.post(
        f"/api/inventory/{item['id']}/movement",
        json={"movementType": "out", "quantity": 11, "reason": "treatment"},
        headers=auth_headers,
    )

    assert resp.status_code == 200
    assert resp.get_json()["newQuantity"] == 4
    alerts = client.get("/api/alerts?alertType=low_stock", headers=auth_headers).get_json()
    assert len(alerts) == 1
    assert alerts[0]["severity"] == "high"
    assert alerts[0]["inventoryId"] == item["id"]


def test_overdraw_is_400_and_changes_nothing(client, auth_headers):
    item = _create_item(client, auth_headers)

    resp = client.post(
        f"/api/inventory/{item['id']}/movement",
        json={"movementType": "out", "quantity": 20, "reason": "treatment"},
        headers=auth_headers,
    )

    assert resp.status_code == 400
    assert "Insufficient stock" in resp.get_json()["message"]
    detail = client.get(f"/api/inventory/{item['id']}", headers=auth_headers).get_json()
    assert detail["quantity"] == 15
    assert len(detail["stockHistory"]) == 1


def test_low_stock_filter_returns_only_matching_items(client, auth_headers):
    _create_item(client, auth_headers, name="Plenty", quantity=50)
    low = _create_item(client, auth_headers, name="Nearly out", quantity=2)
    _create_item(client, auth_headers, name="Also fine", quantity=6)

    resp = client.get("/api/inventory?lowStock=true", headers=auth_headers)

    items = resp.get_json()
    assert len(items) == 1
    assert items[0]["id"] == low["id"]
    assert items[0]["stockStatus"] == "low"


def test_update_with_quantity_is_ledgered(client, auth_headers):
    item = _create_item(client, auth_headers)

    resp = client.put(
        f"/api/inventory/{item['id']}",
        json={"quantity": 20, "adjustmentNote": "recount"},
        headers=auth_headers,
    )

    assert resp.status_code == 200
    assert resp.get_json()["quantity"] == 20
    movements = client.get(
        f"/api/inventory/{item['id']}/movements", headers=auth_headers
    ).get_json()
    assert movements[0]["movementType"] == "adjustment"
    assert movements[0]["previousQuantity"] == 15
    assert movements[0]["newQuantity"] == 20


def test_summary_and_delete(client, auth_headers):
    item = _create_item(client, auth_headers)

    summary = client.get("/api/inventory/summary", headers=auth_headers).get_json()
    assert summary["totalItems"] == 1
    assert summary["totalValue"] == "48.00"

    resp = client.delete(f"/api/inventory/{item['id']}", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.get_json()["success"] is True
    assert client.get(f"/api/inventory/{item['id']}", headers=auth_headers).status_code == 404
    assert client.delete(f"/api/inventory/{item['id']}", headers=auth_headers).status_code == 404


def test_alert_flags(client, auth_headers):
    item = _create_item(client, auth_headers, quantity=1)
    client.post(
        f"/api/inventory/{item['id']}/movement",
        json={"movementType": "out", "quantity": 1, "reason": "used"},
        headers=auth_headers,
    )
    (alert,) = client.get("/api/alerts", headers=auth_headers).get_json()
    assert alert["severity"] == "critical"

    resp = client.put(f"/api/alerts/{alert['id']}/read", headers=auth_headers)
    assert resp.get_json()["isRead"] is True
    assert client.get("/api/alerts?unreadOnly=true", headers=auth_headers).get_json() == []

    resp = client.put(f"/api/alerts/{alert['id']}/dismiss", headers=auth_headers)
    assert resp.get_json()["isDismissed"] is True


def test_purchase_order_receipt(client, auth_headers):
    item = _create_item(client, auth_headers, quantity=2)
    supplier = client.post(
        "/api/suppliers", json={"name": "MedSupplies"}, headers=auth_headers
    ).get_json()

    resp = client.post(
        "/api/purchase-orders",
        json={
            "supplierId": supplier["id"],
            "items": [
                {"inventoryId": item["id"], "itemName": "Lidocaine 5%", "quantity": 10, "unitCost": "3.00"}
            ],
        },
        headers=auth_headers,
    )
    assert resp.status_code == 200
    order = resp.get_json()
    assert order["totalAmount"] == "30.00"
    assert order["items"][0]["totalCost"] == "30.00"

    resp = client.post(f"/api/purchase-orders/{order['id']}/receive", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.get_json()["status"] == "delivered"
    detail = client.get(f"/api/inventory/{item['id']}", headers=auth_headers).get_json()
    assert detail["quantity"] == 12


def test_purchase_order_item_errors_are_indexed(client, auth_headers):
    supplier = client.post(
        "/api/suppliers", json={"name": "MedSupplies"}, headers=auth_headers
    ).get_json()

    resp = client.post(
        "/api/purchase-orders",
        json={"supplierId": supplier["id"], "items": [{"itemName": "x", "quantity": 0}]},
        headers=auth_headers,
    )

    assert resp.status_code == 400
    assert set(resp.get_json()["errors"]) == {"items[0].quantity", "items[0].unitCost"}


def test_null_for_defaulted_field_is_400(client, auth_headers):
    item = _create_item(client, auth_headers)

    resp = client.put(f"/api/inventory/{item['id']}", json={"active": None}, headers=auth_headers)

    assert resp.status_code == 400
    assert resp.get_json()["errors"] == {"active": "may not be null"}
    detail = client.get(f"/api/inventory/{item['id']}", headers=auth_headers).get_json()
    assert detail["active"] is True


def test_create_and_movement_return_200(client, auth_headers):
    resp = client.post(
        "/api/inventory",
        json={"name": "Gauze", "category": "consumable", "quantity": 15},
        headers=auth_headers,
    )
    assert resp.status_code == 200

    resp = client.post(
        f"/api/inventory/{resp.get_json()['id']}/movement",
        json={"movementType": "out", "quantity": 11, "reason": "use"},
        headers=auth_headers,
    )
    assert resp.status_code == 200
