"""Catalog reads, admin writes and low-stock listing."""
import pytest
from fastapi import HTTPException

from medportal.services import product_service

NEW_PRODUCT = {"name": "Digital Thermometer", "sku": "THM-DIG-001", "price_cents": 1999, "quantity": 30,
               "par_level": 15}


def test_catalog_is_public(client, products):
    resp = client.get("/products")

    assert resp.status_code == 200
    assert [p["sku"] for p in resp.json()] == ["BPM-DIG-001", "INS-HUM-001"]


def test_catalog_can_hide_out_of_stock(client, db, products):
    products["monitor"].quantity = 0
    db.commit()

    resp = client.get("/products", params={"include_out_of_stock": False})
    assert [p["sku"] for p in resp.json()] == ["INS-HUM-001"]


def test_get_product(client, products):
    assert client.get(f"/products/{products['insulin'].id}").json()["price_cents"] == 12500
    assert client.get("/products/missing").status_code == 404


def test_create_requires_admin(client, doctor_headers):
    assert client.post("/products", json=NEW_PRODUCT).status_code == 401
    assert client.post("/products", json=NEW_PRODUCT, headers=doctor_headers).status_code == 403


def test_create_defaults_cost_to_sixty_percent(client, admin_headers):
    resp = client.post("/products", json=NEW_PRODUCT, headers=admin_headers)

    assert resp.status_code == 201
    assert resp.json()["cost_cents"] == 1199


def test_create_duplicate_sku_conflicts(client, admin_headers, products):
    resp = client.post("/products", json={**NEW_PRODUCT, "sku": "INS-HUM-001"}, headers=admin_headers)
    assert resp.status_code == 409


def test_create_rejects_non_positive_price(client, admin_headers):
    resp = client.post("/products", json={**NEW_PRODUCT, "price_cents": 0}, headers=admin_headers)
    assert resp.status_code == 422


def test_update_product(client, admin_headers, products):
    resp = client.patch(f"/products/{products['monitor'].id}", json={"quantity": 40}, headers=admin_headers)

    assert resp.status_code == 200
    assert resp.json()["quantity"] == 40
    assert resp.json()["name"] == "Blood Pressure Monitor"


def test_delete_product(client, admin_headers, products):
    resp = client.delete(f"/products/{products['monitor'].id}", headers=admin_headers)

    assert resp.json() == {"message": "Product deleted successfully"}
    assert client.get(f"/products/{products['monitor'].id}").status_code == 404


def test_delete_ordered_product_conflicts(client, admin_headers, products, order_payload):
    client.post("/orders", json=order_payload(("monitor", 1)))

    resp = client.delete(f"/products/{products['monitor'].id}", headers=admin_headers)
    assert resp.status_code == 409


def test_low_stock_alerts(client, admin_headers, doctor_headers, products):
    assert client.get("/products/low-stock/alerts", headers=doctor_headers).status_code == 403

    resp = client.get("/products/low-stock/alerts", headers=admin_headers)
    assert [p["sku"] for p in resp.json()] == ["BPM-DIG-001"]


def test_patient_search(client, order_payload):
    client.post("/orders", json=order_payload(("insulin", 1), patient_phone="5551234567"))
    client.post("/orders", json=order_payload(("insulin", 1), patient_name="Bob Smith",
                                              patient_email="bob@example.com"))

    assert len(client.get("/patients").json()) == 2
    assert [p["name"] for p in client.get("/patients", params={"search": "JANE"}).json()] == ["Jane Patient"]
    assert [p["email"] for p in client.get("/patients", params={"search": "555123"}).json()] == ["jane@example.com"]


def test_update_quantity_and_check_stock(db, products):
    monitor_id = products["monitor"].id

    product_service.update_quantity(db, monitor_id, 2)

    assert product_service.check_stock(db, monitor_id, 2)
    assert not product_service.check_stock(db, monitor_id, 3)
    with pytest.raises(HTTPException) as exc:
        product_service.update_quantity(db, monitor_id, -1)
    assert exc.value.status_code == 400


def test_low_stock_flag_in_catalog(client, products):
    flags = {p["sku"]: p["is_low_stock"] for p in client.get("/products").json()}
    assert flags == {"BPM-DIG-001": True, "INS-HUM-001": False}
