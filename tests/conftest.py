# tests/conftest.py
# ---------------------------------------------------------------------
# - In-memory SQLite, configured before storeapp is imported
# - Schema created and dropped around every test
# - `client` is anonymous, `auth_client` carries a bearer token
# - make_* fixtures create records through the API and return `data`
# ---------------------------------------------------------------------
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SECRET_KEY"] = "test-secret-key"

import pytest
from fastapi.testclient import TestClient

from storeapp.database import Base, engine, SessionLocal
from storeapp.main import app


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def auth_client(client):
    user = {"username": "owner", "email": "owner@store.test", "password": "secret123"}
    assert client.post("/api/user/signup", json=user).status_code == 201
    response = client.post("/api/user/login", json={"email": user["email"], "password": user["password"]})
    token = response.json()["data"]["token"]
    client.headers.update({"Authorization": f"Bearer {token}"})
    return client


# ---------- Factories ----------
@pytest.fixture
def make_product(auth_client):
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        payload = {"name": f"Product {counter['n']}", "category": "General", "cost_price": 10}
        payload.update(overrides)
        response = auth_client.post("/api/product/add", json=payload)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _make


@pytest.fixture
def make_stock(auth_client):
    def _make(product_id, quantity, purchase_price, sale_price=None):
        payload = {"product_id": product_id, "quantity": quantity, "purchase_price": purchase_price}
        if sale_price is not None:
            payload["sale_price"] = sale_price
        response = auth_client.post("/api/stock/add", json=payload)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _make


@pytest.fixture
def make_customer(auth_client):
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        payload = {"name": f"Customer {counter['n']}", "mobile": f"90000000{counter['n']:02d}"}
        payload.update(overrides)
        response = auth_client.post("/api/customer/add", json=payload)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _make


@pytest.fixture
def make_vendor(auth_client):
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        payload = {"name": f"Vendor {counter['n']}", "mobile": f"80000000{counter['n']:02d}"}
        payload.update(overrides)
        response = auth_client.post("/api/vendor/add", json=payload)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _make


@pytest.fixture
def make_sale(auth_client):
    def _make(customer_id, items, paid_amount=0, **extra):
        payload = {"customer_id": customer_id, "items": items, "paid_amount": paid_amount}
        payload.update(extra)
        response = auth_client.post("/api/sale/create", json=payload)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _make
