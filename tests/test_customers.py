def test_add_customer_with_mobile(auth_client):
    response = auth_client.post("/api/customer/add", json={"name": "Ravi", "mobile": "9876543210"})
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["mobile"] == "9876543210"
    assert data["phone"] == "9876543210"


def test_add_customer_with_phone_only(auth_client):
    response = auth_client.post("/api/customer/add", json={"name": "Ravi", "phone": "9876543210"})
    assert response.status_code == 201
    assert response.json()["data"]["mobile"] == "9876543210"


def test_customer_requires_name_and_number(auth_client):
    response = auth_client.post("/api/customer/add", json={"name": "Ravi"})
    assert response.status_code == 400
    assert response.json()["message"] == "Customer name and phone number are required"


def test_duplicate_customer_mobile(auth_client, make_customer):
    make_customer(mobile="9876543210")
    response = auth_client.post("/api/customer/add", json={"name": "Other", "mobile": "9876543210"})
    assert response.status_code == 400
    assert response.json()["message"] == "Customer with this phone number already exists"


def test_list_and_get_customer(auth_client, make_customer):
    customer = make_customer()
    body = auth_client.get("/api/customer/all").json()
    assert body["count"] == 1
    assert auth_client.get(f"/api/customer/{customer['id']}").json()["data"]["name"] == customer["name"]
    assert auth_client.get("/api/customer/999").status_code == 404


def test_update_customer(auth_client, make_customer):
    customer = make_customer()
    response = auth_client.put(f"/api/customer/update/{customer['id']}", json={"address": "12 Market Road"})
    assert response.status_code == 200
    assert response.json()["data"]["address"] == "12 Market Road"


def test_update_customer_onto_taken_mobile(auth_client, make_customer):
    make_customer(mobile="1111111111")
    other = make_customer(mobile="2222222222")
    response = auth_client.put(f"/api/customer/update/{other['id']}", json={"mobile": "1111111111"})
    assert response.status_code == 400
