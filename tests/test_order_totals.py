import json
import logging
from datetime import datetime

import pytest

from app.labelops.modules.orders import totals
from app.labelops.modules.orders.totals import derive_status
from helpers import fetch_order, make_item, make_order


def _status(**overrides):
    values = {
        "total_items": 2,
        "received_items": 0,
        "transaction_count": 0,
        "total_due": 100.0,
        "gross_total": 100.0,
        "paid_total": 0.0,
        "committed_date": None,
        "now": datetime(2025, 6, 1, 12, 0),
    }
    values.update(overrides)
    return derive_status(**values)


@pytest.mark.parametrize(
    "overrides,expected",
    [
        ({"total_items": 0}, "Incomplete"),
        ({"received_items": 2, "total_due": 0.0, "paid_total": 100.0}, "Complete"),
        ({"committed_date": "2025-05-31"}, "Overdue"),
        ({"committed_date": "2025-06-02"}, "Not Received"),
        ({"committed_date": "not a date"}, "Not Received"),
        ({"paid_total": 150.0, "total_due": 0.0, "transaction_count": 1}, "Overpaid"),
        ({"received_items": 1}, "Pending Dues"),
        ({"received_items": 1, "total_due": 0.0, "paid_total": 100.0}, "In Progress"),
        ({"transaction_count": 1, "paid_total": 40.0, "total_due": 60.0}, "In Progress"),
        ({}, "Not Received"),
    ],
)
def test_derive_status_rules(overrides, expected):
    assert _status(**overrides) == expected


def test_overdue_wins_over_overpaid():
    assert _status(committed_date="2025-01-01", paid_total=500.0, total_due=0.0) == "Overdue"


def test_item_amounts_are_computed(admin_client):
    order_id = make_order(admin_client)
    item = make_item(
        admin_client,
        order_id,
        unit=10.0,
        kg=2.0,
        declared_price_per_unit=4.0,
        actual_price_per_unit=5.0,
        actual_price_per_kg=1.5,
    )
    assert item["order_item_id"] == "OIT-1"
    assert item["movement"] == "N"
    assert item["declared_amount"] == 40.0
    assert item["actual_amount"] == 53.0

    explicit = make_item(admin_client, order_id, unit=1.0, actual_price_per_unit=5.0, actual_amount=7.5)
    assert explicit["actual_amount"] == 7.5


def test_item_validation(admin_client):
    order_id = make_order(admin_client)
    r = admin_client.post(
        "/api/order-items/create-order-item", json={"order_id": order_id, "product_code": "VPC-1", "unit": -1.0}
    )
    assert r.status_code == 400

    r = admin_client.post(
        "/api/order-items/create-order-item", json={"order_id": order_id, "product_code": "VPC-1", "movement": "X"}
    )
    assert r.status_code == 400

    r = admin_client.post("/api/order-items/create-order-item", json={"order_id": "ORD-9", "product_code": "VPC-1"})
    assert r.status_code == 404
    assert r.json["message"] == "order_id does not exist"


def test_total_due_follows_every_mutation(admin_client):
    order_id = make_order(admin_client)
    make_item(admin_client, order_id, unit=10.0, actual_price_per_unit=5.0)
    order = fetch_order(admin_client, order_id)
    assert order["total_due"] == 50.0
    assert order["status"] == "Not Received"

    r = admin_client.post(
        "/api/order-charges/create-order-charge",
        json={"Order_ID": order_id, "Description": "Freight", "Charges": 20.0},
    )
    assert r.status_code == 201
    assert r.json["Order_Charges_ID"] == "OCH-1"
    assert fetch_order(admin_client, order_id)["total_due"] == 70.0

    # tax applies to items only: 10% of 50
    admin_client.post("/api/order-config/upsert-order-config", json={"order_id": order_id, "tax_percentage": 10.0})
    assert fetch_order(admin_client, order_id)["total_due"] == 75.0

    r = admin_client.post(
        "/api/order-transactions/create-order-transaction",
        json={"Order_ID": order_id, "Actual_Amount": 30.0, "Type": "Payment"},
    )
    assert r.status_code == 201
    assert r.json["data"]["Order_Transcation_ID"] == "OTR-1"
    assert r.json["data"]["Decalred_Amount"] == 0
    order = fetch_order(admin_client, order_id)
    assert order["total_due"] == 45.0
    assert order["status"] == "In Progress"

    r = admin_client.patch("/api/order-items/update-order-item", json={"order_item_id": "OIT-1", "movement": "Y"})
    assert r.status_code == 200
    assert fetch_order(admin_client, order_id)["status"] == "Pending Dues"

    admin_client.post(
        "/api/order-transactions/create-order-transaction", json={"Order_ID": order_id, "Actual_Amount": 45.0}
    )
    order = fetch_order(admin_client, order_id)
    assert order["total_due"] == 0
    assert order["status"] == "Complete"

    r = admin_client.delete("/api/order-transactions/delete-order-transaction", json={"Order_Transcation_ID": "OTR-2"})
    assert r.status_code == 200
    assert fetch_order(admin_client, order_id)["total_due"] == 45.0

    r = admin_client.delete("/api/order-charges/delete-order-charge", json={"Order_Charges_ID": "OCH-1"})
    assert r.status_code == 200
    assert fetch_order(admin_client, order_id)["total_due"] == 25.0


def test_total_due_never_negative(admin_client):
    order_id = make_order(admin_client)
    make_item(admin_client, order_id, unit=1.0, actual_price_per_unit=10.0)
    admin_client.post(
        "/api/order-transactions/create-order-transaction", json={"Order_ID": order_id, "Actual_Amount": 25.0}
    )
    order = fetch_order(admin_client, order_id)
    assert order["total_due"] == 0
    assert order["status"] == "Overpaid"


def test_committed_date_in_past_marks_overdue(admin_client):
    order_id = make_order(admin_client)
    make_item(admin_client, order_id, unit=1.0, actual_price_per_unit=10.0)
    admin_client.post(
        "/api/order-config/upsert-order-config", json={"order_id": order_id, "committed_date": "2000-01-01"}
    )
    assert fetch_order(admin_client, order_id)["status"] == "Overdue"


def test_item_update_recomputes_and_moves_between_orders(admin_client):
    first = make_order(admin_client)
    second = make_order(admin_client)
    make_item(admin_client, first, unit=2.0, actual_price_per_unit=10.0)

    r = admin_client.patch("/api/order-items/update-order-item", json={"order_item_id": "OIT-1", "unit": 3.0})
    assert r.json["data"]["actual_amount"] == 30.0
    assert fetch_order(admin_client, first)["total_due"] == 30.0

    r = admin_client.patch("/api/order-items/update-order-item", json={"order_item_id": "OIT-1", "order_id": second})
    assert r.status_code == 200

    r = admin_client.get(f"/api/order-header/fetch-order-by-id?order_id={first}")
    assert r.json["data"]["total_due"] == 0
    assert r.json["data"]["status"] == "Incomplete"
    assert fetch_order(admin_client, second)["total_due"] == 30.0

    r = admin_client.patch("/api/order-items/update-order-item", json={"order_item_id": "OIT-1", "order_id": "ORD-9"})
    assert r.status_code == 404

    r = admin_client.delete("/api/order-items/delete-order-item", json={"order_item_id": "OIT-1"})
    assert r.status_code == 200
    assert fetch_order(admin_client, second)["status"] == "Incomplete"

    r = admin_client.delete("/api/order-items/delete-order-item", json={"order_item_id": "OIT-1"})
    assert r.status_code == 404
    assert r.json["message"] == "order_item_id OIT-1 not found"


def test_charge_update_and_listing(admin_client):
    order_id = make_order(admin_client)
    for amount in (5.0, 15.0):
        admin_client.post(
            "/api/order-charges/create-order-charge",
            json={"Order_ID": order_id, "Description": "Handling", "Charges": amount},
        )

    r = admin_client.put(
        "/api/order-charges/update-order-charge",
        json={"Order_Charges_ID": "OCH-1", "Order_ID": order_id, "Description": "Handling", "Charges": 7.0},
    )
    assert r.status_code == 200
    assert r.json["data"]["Charges"] == 7.0

    r = admin_client.put(
        "/api/order-charges/update-order-charge",
        json={"Order_Charges_ID": "OCH-9", "Order_ID": order_id, "Description": "x", "Charges": 1.0},
    )
    assert r.status_code == 404
    assert r.json["message"] == "Order_Charges_ID OCH-9 not found"

    r = admin_client.get(f"/api/order-charges/fetch-all-order-charges?order_id={order_id}")
    assert [c["Order_Charges_ID"] for c in r.json["data"]] == ["OCH-2", "OCH-1"]
    assert r.json["meta"] == {"page": 1, "limit": 10, "total": 2, "totalPages": 1}


def test_transaction_update_and_listing(admin_client):
    order_id = make_order(admin_client)
    admin_client.post(
        "/api/order-transactions/create-order-transaction", json={"Order_ID": order_id, "Actual_Amount": 10.0}
    )

    r = admin_client.patch(
        "/api/order-transactions/update-order-transaction",
        json={"Order_Transcation_ID": "OTR-1", "Payment_Method": "Cheque", "Decalred_Amount": 8.0},
    )
    assert r.status_code == 200
    assert r.json["data"]["Payment_Method"] == "Cheque"
    assert r.json["data"]["Decalred_Amount"] == 8.0

    r = admin_client.patch("/api/order-transactions/update-order-transaction", json={"Order_Transcation_ID": "OTR-1"})
    assert r.status_code == 400

    r = admin_client.patch(
        "/api/order-transactions/update-order-transaction", json={"Order_Transcation_ID": "OTR-5", "Notes": "x"}
    )
    assert r.status_code == 404

    r = admin_client.post("/api/order-transactions/create-order-transaction", json={"Order_ID": order_id})
    assert r.status_code == 400

    r = admin_client.get(f"/api/order-transactions/fetch-all-order-transactions?order_id={order_id}")
    assert r.json["pagination"]["orderFiltered"] == order_id
    assert [t["Order_Transcation_ID"] for t in r.json["data"]] == ["OTR-1"]


def test_item_listing(admin_client):
    first = make_order(admin_client)
    second = make_order(admin_client)
    make_item(admin_client, first, product_code="VPC-1", description="Gloss roll")
    make_item(admin_client, first, product_code="VPC-2", hs_code="4821.10")
    make_item(admin_client, second, product_code="VPC-3")

    r = admin_client.get(f"/api/order-items/fetch-all-order-items?order_id={first}")
    assert r.status_code == 200
    assert [i["order_item_id"] for i in r.json["data"]] == ["OIT-1", "OIT-2"]
    assert r.json["pagination"]["orderFiltered"] == first

    r = admin_client.get("/api/order-items/fetch-all-order-items?search=4821")
    assert [i["product_code"] for i in r.json["data"]] == ["VPC-2"]

    r = admin_client.get("/api/order-items/fetch-all-order-items?limit=2&page=2")
    assert [i["order_item_id"] for i in r.json["data"]] == ["OIT-3"]
    assert r.json["pagination"]["totalPages"] == 2


@pytest.mark.parametrize("token", ["Infinity", "-Infinity", "NaN"])
def test_non_finite_amounts_are_rejected(admin_client, token):
    order_id = make_order(admin_client)
    make_item(admin_client, order_id, unit=1.0, actual_price_per_unit=10.0)

    for path, body in (
        ("/api/order-charges/create-order-charge", f'{{"Order_ID": "{order_id}", "Description": "x", "Charges": {token}}}'),
        ("/api/order-items/create-order-item", f'{{"order_id": "{order_id}", "product_code": "VPC-1", "unit": {token}}}'),
        (
            "/api/order-items/create-order-item",
            f'{{"order_id": "{order_id}", "product_code": "VPC-1", "actual_price_per_unit": {token}}}',
        ),
        ("/api/order-transactions/create-order-transaction", f'{{"Order_ID": "{order_id}", "Actual_Amount": {token}}}'),
        (
            "/api/order-transactions/create-order-transaction",
            f'{{"Order_ID": "{order_id}", "Actual_Amount": 1.0, "Decalred_Amount": {token}}}',
        ),
    ):
        r = admin_client.post(path, data=body, content_type="application/json")
        assert r.status_code == 400, path
        assert r.json["message"] == "Invalid request payload"

    r = admin_client.get(f"/api/order-header/fetch-order-by-id?order_id={order_id}")
    assert json.loads(r.get_data(as_text=True), parse_constant=_reject_constant)["data"]["total_due"] == 10.0


def _reject_constant(name):
    raise ValueError(f"non-finite JSON token {name}")


def test_mutations_commit_when_recalculation_fails(admin_client, monkeypatch, caplog):
    order_id = make_order(admin_client)

    def _broken(s, order_id):
        raise RuntimeError("totals unavailable")

    monkeypatch.setattr(totals, "recalculate_order_total_due", _broken)
    caplog.set_level(logging.WARNING, logger=totals.__name__)

    r = admin_client.post(
        "/api/order-items/create-order-item",
        json={"order_id": order_id, "product_code": "VPC-1", "unit": 2.0, "actual_price_per_unit": 5.0},
    )
    assert r.status_code == 200
    r = admin_client.post(
        "/api/order-charges/create-order-charge",
        json={"Order_ID": order_id, "Description": "Freight", "Charges": 3.0},
    )
    assert r.status_code == 201
    r = admin_client.post(
        "/api/order-transactions/create-order-transaction", json={"Order_ID": order_id, "Actual_Amount": 4.0}
    )
    assert r.status_code == 201
    r = admin_client.delete("/api/order-charges/delete-order-charge", json={"Order_Charges_ID": "OCH-1"})
    assert r.status_code == 200

    r = admin_client.get(f"/api/order-items/fetch-all-order-items?order_id={order_id}")
    assert [i["order_item_id"] for i in r.json["data"]] == ["OIT-1"]
    r = admin_client.get(f"/api/order-transactions/fetch-all-order-transactions?order_id={order_id}")
    assert [t["Order_Transcation_ID"] for t in r.json["data"]] == ["OTR-1"]
    r = admin_client.get(f"/api/order-charges/fetch-all-order-charges?order_id={order_id}")
    assert r.json["data"] == []

    warnings = [rec for rec in caplog.records if rec.name == totals.__name__ and rec.levelno == logging.WARNING]
    assert len(warnings) >= 4
    assert all(order_id in rec.getMessage() for rec in warnings)

    # total_due keeps its last stored value
    assert fetch_order(admin_client, order_id)["total_due"] == 0


def test_fetch_unknown_order_does_not_log_recalculation_failure(admin_client, caplog):
    caplog.set_level(logging.WARNING, logger=totals.__name__)
    r = admin_client.get("/api/order-header/fetch-order-by-id?order_id=ORD-404")
    assert r.status_code == 404
    assert r.json["message"] == "Order with ID ORD-404 not found"
    assert [rec for rec in caplog.records if rec.name == totals.__name__] == []
