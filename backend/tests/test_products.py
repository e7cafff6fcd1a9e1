"""Catalog reads (public) and admin-only mutations."""

import json

from models.cart import CartItem
from models.product import Product

NEW_PRODUCT = {"name": "Teapot", "description": "Cast iron", "price": 30.0, "stock": 4, "category": "kitchen"}


def test_list_is_public_and_filters_by_category(client, product_a, product_b):
    everything = client.get("/api/products")
    kitchen = client.get("/api/products", params={"category": "kitchen"})

    assert everything.status_code == 200
    assert [p["name"] for p in everything.json()] == ["Mug", "Coaster"]
    assert [p["name"] for p in kitchen.json()] == ["Mug"]


def test_categories(client, product_a, product_b):
    response = client.get("/api/products/categories")

    assert response.json() == ["home", "kitchen"]


def test_get_by_id(client, product_a):
    response = client.get(f"/api/products/{product_a.id}")

    assert response.status_code == 200
    assert response.json()["price"] == 10.0
    assert client.get("/api/products/9999").status_code == 404


def test_admin_creates_product(client, db, admin_headers):
    response = client.post("/api/products", json=NEW_PRODUCT, headers=admin_headers)

    assert response.status_code == 201
    assert response.json()["name"] == "Teapot"
    assert db.query(Product).count() == 1


def test_non_finite_price_is_rejected(client, db, product_a, admin_headers):
    headers = {**admin_headers, "Content-Type": "application/json"}
    body = json.dumps({**NEW_PRODUCT, "price": float("inf")})

    created = client.post("/api/products", content=body, headers=headers)
    updated = client.put(f"/api/products/{product_a.id}", content=body.replace("Infinity", "NaN"), headers=headers)

    assert created.status_code == updated.status_code == 400
    assert created.json()["errors"][0]["loc"] == ["body", "price"]
    assert db.query(Product).count() == 1
    db.expire_all()
    assert product_a.price == 10.0


def test_mutations_distinguish_anonymous_from_non_admin(client, db, product_a, user_headers):
    anonymous = client.post("/api/products", json=NEW_PRODUCT)
    customer = client.post("/api/products", json=NEW_PRODUCT, headers=user_headers)

    assert anonymous.status_code == 401
    assert customer.status_code == 403
    assert customer.json() == {"msg": "Access denied: Admins only"}
    assert client.put(f"/api/products/{product_a.id}", json=NEW_PRODUCT, headers=user_headers).status_code == 403
    assert client.delete(f"/api/products/{product_a.id}", headers=user_headers).status_code == 403
    assert db.query(Product).count() == 1


def test_update_replaces_every_field(client, db, product_a, admin_headers):
    response = client.put(f"/api/products/{product_a.id}", json=NEW_PRODUCT, headers=admin_headers)

    assert response.status_code == 200
    db.expire_all()
    assert (product_a.name, product_a.price, product_a.stock) == ("Teapot", 30.0, 4)


def test_update_requires_all_fields(client, product_a, admin_headers):
    response = client.put(f"/api/products/{product_a.id}", json={"name": "Teapot"}, headers=admin_headers)

    assert response.status_code == 400


def test_update_unknown_product_is_404(client, admin_headers):
    assert client.put("/api/products/9999", json=NEW_PRODUCT, headers=admin_headers).status_code == 404


def test_delete_product(client, db, product_a, admin_headers):
    product_id = product_a.id

    first = client.delete(f"/api/products/{product_id}", headers=admin_headers)
    second = client.delete(f"/api/products/{product_id}", headers=admin_headers)

    assert first.status_code == 200
    assert second.status_code == 404


def test_delete_product_drops_it_from_carts(client, db, product_a, user_headers, admin_headers, add_to_cart):
    add_to_cart(user_headers, product_a.id, 1)

    client.delete(f"/api/products/{product_a.id}", headers=admin_headers)

    assert db.query(CartItem).count() == 0
