def test_add_product_uses_default_margin(auth_client):
    response = auth_client.post(
        "/api/product/add",
        json={"name": "Rice 5kg", "category": "Grocery", "cost_price": 250},
    )
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["name"] == "Rice 5kg"
    assert data["cost_price"] == 250.0
    assert data["margin_percent"] == 20.0


def test_duplicate_product_name(auth_client, make_product):
    make_product(name="Rice 5kg")
    response = auth_client.post(
        "/api/product/add",
        json={"name": "Rice 5kg", "category": "Grocery", "cost_price": 10},
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Product already exists"


def test_product_requires_positive_cost(auth_client):
    response = auth_client.post(
        "/api/product/add",
        json={"name": "Free", "category": "Grocery", "cost_price": 0},
    )
    assert response.status_code == 400


def test_list_products_newest_first(auth_client, make_product):
    first = make_product()
    second = make_product()
    body = auth_client.get("/api/product/all").json()
    assert body["count"] == 2
    assert [p["id"] for p in body["data"]] == [second["id"], first["id"]]


def test_get_product_with_stock(auth_client, make_product, make_stock):
    product = make_product()
    make_stock(product["id"], 5, 10)
    make_stock(product["id"], 7, 12)

    data = auth_client.get(f"/api/product/{product['id']}").json()["data"]
    assert data["total_stock"] == 12
    assert len(data["stocks"]) == 2


def test_get_missing_product(auth_client):
    response = auth_client.get("/api/product/999")
    assert response.status_code == 404
    assert response.json()["message"] == "Product not found"


def test_update_product(auth_client, make_product):
    product = make_product()
    response = auth_client.put(f"/api/product/update/{product['id']}", json={"margin_percent": 35})
    assert response.status_code == 200
    assert response.json()["data"]["margin_percent"] == 35.0


def test_rename_onto_existing_product(auth_client, make_product):
    make_product(name="Sugar")
    other = make_product(name="Salt")
    response = auth_client.put(f"/api/product/update/{other['id']}", json={"name": "Sugar"})
    assert response.status_code == 400


def test_delete_product_without_history(auth_client, make_product):
    product = make_product()
    assert auth_client.delete(f"/api/product/{product['id']}").status_code == 200
    assert auth_client.get(f"/api/product/{product['id']}").status_code == 404


def test_delete_product_with_stock_is_refused(auth_client, make_product, make_stock):
    product = make_product()
    make_stock(product["id"], 1, 10)
    response = auth_client.delete(f"/api/product/{product['id']}")
    assert response.status_code == 400
