"""
Pricing config and client API tests.
"""

from boxquote import models

NEW_PRICES = {
    "price_per_m2_standard": 750.0,
    "price_per_m2_volume": 710.0,
    "volume_threshold_m2": 5000.0,
    "min_m2_per_model": 3000.0,
    "price_per_m2_below_minimum": 820.0,
    "free_shipping_min_m2": 4000.0,
    "free_shipping_max_km": 60.0,
    "production_days_standard": 7,
    "production_days_printing": 14,
    "quote_validity_days": 10,
}


def test_no_active_config_is_500(client):
    resp = client.get("/api/config/pricing/")
    assert resp.status_code == 500


def test_publish_supersedes_previous_version(client, db, pricing_config):
    resp = client.post("/api/config/pricing/", json=NEW_PRICES)
    assert resp.status_code == 200
    assert resp.json()["price_per_m2_standard"] == 750.0

    active = client.get("/api/config/pricing/").json()
    assert active["id"] == resp.json()["id"]

    history = client.get("/api/config/pricing/history").json()
    assert len(history) == 2
    old = next(h for h in history if h["id"] == pricing_config.id)
    assert old["is_active"] is False
    assert old["valid_until"] is not None
    assert db.query(models.PricingConfig).count() == 2


def test_new_prices_apply_to_the_next_calculation(client, pricing_config):
    items = [{"length_mm": 600, "width_mm": 400, "height_mm": 400, "quantity": 1000}]
    before = client.post("/api/quotes/calculate", json={"items": items}).json()
    client.post("/api/config/pricing/", json=NEW_PRICES)
    after = client.post("/api/quotes/calculate", json={"items": items}).json()
    assert before["price_per_m2"] == 700.0
    assert after["price_per_m2"] == 820.0  # 1640 m2 is below the minimum and a surcharge is now set


def test_invalid_config_lists_every_problem(client, pricing_config):
    resp = client.post("/api/config/pricing/", json=dict(
        NEW_PRICES, price_per_m2_standard=0, free_shipping_max_km=-1, quote_validity_days=0,
    ))
    assert resp.status_code == 400
    assert len(resp.json()["errors"]) == 3
    assert client.get("/api/config/pricing/").json()["id"] == pricing_config.id


def test_client_crud_normalizes_identity(client):
    resp = client.post("/api/clients/", json={
        "name": "Cajas SRL",
        "cuit": "30-71234567-9",
        "email": " Compras@Cajas.com ",
        "phone": "(011) 5555-1234",
    })
    assert resp.status_code == 200
    created = resp.json()
    assert created["cuit"] == "30712345679"
    assert created["email"] == "compras@cajas.com"
    assert created["phone"] == "01155551234"

    updated = client.patch(f"/api/clients/{created['id']}", json={"city": "Quilmes"}).json()
    assert updated["city"] == "Quilmes"
    assert updated["cuit"] == "30712345679"

    found = client.get("/api/clients/", params={"search": "cajas"}).json()
    assert [c["id"] for c in found] == [created["id"]]
    assert client.get("/api/clients/999").status_code == 404


def test_quote_uses_client_distance(client, pricing_config):
    customer = client.post("/api/clients/", json={"name": "Cerca SA", "distance_km": 15}).json()
    items = [{"length_mm": 600, "width_mm": 400, "height_mm": 400, "quantity": 2500}]
    data = client.post("/api/quotes/calculate", json={"items": items, "client_id": customer["id"]}).json()
    assert data["is_free_shipping"] is True

    missing = client.post("/api/quotes/calculate", json={"items": items, "client_id": 999})
    assert missing.status_code == 404
