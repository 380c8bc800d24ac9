import csv
import io


def _purchase(auth_client, vendor_id, items, **extra):
    payload = {"vendor_id": vendor_id, "items": items}
    payload.update(extra)
    return auth_client.post("/api/vendor/purchase/create", json=payload)


def test_add_vendor_requires_name(auth_client):
    response = auth_client.post("/api/vendor/add", json={"mobile": "8000000000"})
    assert response.status_code == 400
    assert response.json()["message"] == "Vendor name is required"


def test_duplicate_vendor_mobile(auth_client, make_vendor):
    make_vendor(mobile="8000000000")
    response = auth_client.post("/api/vendor/add", json={"name": "Again", "mobile": "8000000000"})
    assert response.status_code == 400


def test_update_vendor(auth_client, make_vendor):
    vendor = make_vendor()
    response = auth_client.put(f"/api/vendor/update/{vendor['id']}", json={"gst_number": "29ABCDE1234F1Z5"})
    assert response.json()["data"]["gst_number"] == "29ABCDE1234F1Z5"


def test_purchase_creates_one_batch_per_item(auth_client, make_vendor, make_product):
    vendor = make_vendor()
    rice = make_product(name="Rice", margin_percent=10)
    dal = make_product(name="Dal")

    response = _purchase(auth_client, vendor["id"], [
        {"product_id": rice["id"], "quantity": 10, "unit_price": 40},
        {"product_id": dal["id"], "quantity": 5, "unit_price": 90, "sale_price": 110},
    ], paid_amount=300, invoice_number="V-1001")

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["total_amount"] == 850.0
    assert data["paid_amount"] == 300.0
    assert data["due_amount"] == 550.0
    assert data["payment_status"] == "PARTIAL"
    assert len(data["payments"]) == 1

    rice_stock = auth_client.get(f"/api/stock/product/{rice['id']}").json()["data"][0]
    assert rice_stock["quantity"] == 10
    assert rice_stock["purchase_price"] == 40.0
    assert rice_stock["sale_price"] == 44.0
    assert rice_stock["purchase_item_id"] == data["items"][0]["id"]
    dal_stock = auth_client.get(f"/api/stock/product/{dal['id']}").json()["data"][0]
    assert dal_stock["sale_price"] == 110.0


def test_purchase_rejects_overpayment(auth_client, make_vendor, make_product):
    vendor = make_vendor()
    product = make_product()
    response = _purchase(auth_client, vendor["id"], [
        {"product_id": product["id"], "quantity": 2, "unit_price": 10},
    ], paid_amount=25)
    assert response.status_code == 400
    assert auth_client.get("/api/stock/all").json()["count"] == 0


def test_purchase_with_missing_product_writes_nothing(auth_client, make_vendor, make_product):
    vendor = make_vendor()
    product = make_product()
    response = _purchase(auth_client, vendor["id"], [
        {"product_id": product["id"], "quantity": 2, "unit_price": 10},
        {"product_id": 999, "quantity": 1, "unit_price": 10},
    ])
    assert response.status_code == 404
    assert auth_client.get("/api/vendor/purchase/all").json()["count"] == 0


def test_purchase_requires_items(auth_client, make_vendor):
    vendor = make_vendor()
    assert _purchase(auth_client, vendor["id"], []).status_code == 400


def test_purchase_payment_up_to_due(auth_client, make_vendor, make_product):
    vendor = make_vendor()
    product = make_product()
    purchase = _purchase(auth_client, vendor["id"], [
        {"product_id": product["id"], "quantity": 10, "unit_price": 10},
    ]).json()["data"]
    assert purchase["payment_status"] == "UNPAID"

    response = auth_client.put(f"/api/vendor/purchase/payment/{purchase['id']}", json={"paid_amount": 150})
    assert response.status_code == 400

    response = auth_client.put(
        f"/api/vendor/purchase/payment/{purchase['id']}",
        json={"paid_amount": 100, "payment_mode": "UPI", "remark": "settled"},
    )
    data = response.json()["data"]
    assert data["payment_status"] == "PAID"
    assert data["due_amount"] == 0.0
    assert data["payments"][0]["payment_mode"] == "UPI"


def test_vendor_detail_and_purchase_lists(auth_client, make_vendor, make_product):
    vendor = make_vendor()
    product = make_product()
    _purchase(auth_client, vendor["id"], [{"product_id": product["id"], "quantity": 1, "unit_price": 10}])
    _purchase(auth_client, vendor["id"], [{"product_id": product["id"], "quantity": 2, "unit_price": 10}])

    detail = auth_client.get(f"/api/vendor/{vendor['id']}").json()["data"]
    assert len(detail["purchases"]) == 2
    assert detail["purchases"][0]["items"][0]["product_name"] == product["name"]

    by_vendor = auth_client.get(f"/api/vendor/purchases/vendor/{vendor['id']}").json()
    assert by_vendor["count"] == 2
    assert auth_client.get("/api/vendor/purchase/999").status_code == 404


def test_vendor_with_purchases_cannot_be_deleted(auth_client, make_vendor, make_product):
    vendor = make_vendor()
    product = make_product()
    _purchase(auth_client, vendor["id"], [{"product_id": product["id"], "quantity": 1, "unit_price": 10}])

    response = auth_client.delete(f"/api/vendor/delete/{vendor['id']}")
    assert response.status_code == 400
    assert response.json()["message"] == "Cannot delete vendor with existing purchases"

    empty = make_vendor()
    assert auth_client.delete(f"/api/vendor/delete/{empty['id']}").status_code == 200


def test_vendor_summary(auth_client, make_vendor, make_product):
    vendor = make_vendor()
    product = make_product()
    _purchase(auth_client, vendor["id"], [{"product_id": product["id"], "quantity": 10, "unit_price": 10}], paid_amount=40)
    _purchase(auth_client, vendor["id"], [{"product_id": product["id"], "quantity": 5, "unit_price": 20}])

    data = auth_client.get(f"/api/vendor/summary/{vendor['id']}").json()["data"]
    assert data["total_purchases"] == 2
    assert data["total_amount"] == 200.0
    assert data["total_paid"] == 40.0
    assert data["total_due"] == 160.0


def test_vendor_ledger_running_balance(auth_client, make_vendor, make_product):
    vendor = make_vendor()
    product = make_product()
    first = _purchase(
        auth_client, vendor["id"],
        [{"product_id": product["id"], "quantity": 10, "unit_price": 10}],
        purchase_date="2020-01-10T09:00:00", invoice_number="V-1",
    ).json()["data"]
    second = _purchase(
        auth_client, vendor["id"],
        [{"product_id": product["id"], "quantity": 5, "unit_price": 10}],
        purchase_date="2020-01-12T09:00:00",
    ).json()["data"]
    auth_client.put(f"/api/vendor/purchase/payment/{first['id']}", json={"paid_amount": 30})

    data = auth_client.get(f"/api/vendor/ledger/{vendor['id']}").json()["data"]
    entries = data["entries"]
    assert [e["type"] for e in entries] == ["PURCHASE", "PURCHASE", "PAYMENT"]
    assert entries[0]["reference_id"] == "V-1"
    assert entries[1]["reference_id"] == f"PUR-{second['id']}"
    assert entries[2]["reference_id"].startswith("PAY-")
    assert [e["balance"] for e in entries] == [100.0, 150.0, 120.0]
    assert data["summary"] == {
        "total_purchases": 150.0,
        "total_paid": 30.0,
        "total_outstanding": 120.0,
        "invoice_count": 2,
    }


def test_vendor_ledger_export(auth_client, make_vendor, make_product):
    vendor = make_vendor()
    product = make_product()
    _purchase(auth_client, vendor["id"], [{"product_id": product["id"], "quantity": 3, "unit_price": 10}], paid_amount=10)

    response = auth_client.get(f"/api/vendor/ledger/{vendor['id']}/export")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "attachment" in response.headers["content-disposition"]

    rows = list(csv.reader(io.StringIO(response.text)))
    assert rows[0] == ["Date", "Reference", "Type", "Description", "Debit", "Credit", "Balance"]
    assert [row[2] for row in rows[1:]] == ["PURCHASE", "PAYMENT"]
    assert rows[-1][-1] == "20.00"


def test_purchase_payment_locks_and_checks_purchase(auth_client, make_vendor, make_product):
    vendor = make_vendor()
    product = make_product()
    purchase = _purchase(auth_client, vendor["id"], [
        {"product_id": product["id"], "quantity": 10, "unit_price": 10},
    ]).json()["data"]

    response = auth_client.put("/api/vendor/purchase/payment/999", json={"paid_amount": 10})
    assert response.status_code == 404

    assert auth_client.put(f"/api/vendor/purchase/payment/{purchase['id']}", json={"paid_amount": 60}).status_code == 200
    response = auth_client.put(f"/api/vendor/purchase/payment/{purchase['id']}", json={"paid_amount": 60})
    assert response.status_code == 400
    assert response.json()["message"] == "Payment amount exceeds due amount. Total: 100.00, Already paid: 60.00, Due: 40.00"


def test_purchase_amounts_that_round_to_zero_are_rejected(auth_client, make_vendor, make_product):
    vendor = make_vendor()
    product = make_product()
    response = _purchase(auth_client, vendor["id"], [
        {"product_id": product["id"], "quantity": 1, "unit_price": 0.004},
    ])
    assert response.status_code == 400

    purchase = _purchase(auth_client, vendor["id"], [
        {"product_id": product["id"], "quantity": 1, "unit_price": 10},
    ]).json()["data"]
    response = auth_client.put(f"/api/vendor/purchase/payment/{purchase['id']}", json={"paid_amount": 0.001})
    assert response.status_code == 400
    assert auth_client.get(f"/api/vendor/purchase/{purchase['id']}").json()["data"]["payments"] == []
