from helpers import make_collections, make_product, make_vendor


def test_create_vendor_assigns_sequential_ids(admin_client):
    r = admin_client.post(
        "/api/vendor/create-new-vendor",
        json={"Vendor_Name": "Acme Labels", "Vendor_Mask_ID": "ACM", "Email_ID": "sales@acme.test"},
    )
    assert r.status_code == 201
    assert r.json["Vendor_ID"] == "VDR-1"
    assert r.json["Email_ID"] == "sales@acme.test"
    # absent optional fields come back as empty strings
    assert r.json["NTN_Number"] == ""

    assert make_vendor(admin_client, "Bravo Tapes", "BRV") == "VDR-2"


def test_create_vendor_validation(admin_client):
    r = admin_client.post("/api/vendor/create-new-vendor", json={"Vendor_Name": "  ", "Vendor_Mask_ID": "X"})
    assert r.status_code == 400
    assert r.json["message"] == "Invalid request payload"
    assert "Vendor_Name" in r.json["details"]["fieldErrors"]

    r = admin_client.post(
        "/api/vendor/create-new-vendor",
        json={"Vendor_Name": "Acme", "Vendor_Mask_ID": "ACM", "Email_ID": "not-an-email"},
    )
    assert r.status_code == 400
    assert r.json["details"]["fieldErrors"]["Email_ID"] == ["Invalid email"]


def test_duplicate_vendor_name_or_mask_conflicts(admin_client):
    make_vendor(admin_client, "Acme Labels", "ACM")
    r = admin_client.post("/api/vendor/create-new-vendor", json={"Vendor_Name": "acme labels", "Vendor_Mask_ID": "NEW"})
    assert r.status_code == 409
    assert r.json["error"] == "ConflictError"

    r = admin_client.post("/api/vendor/create-new-vendor", json={"Vendor_Name": "Other", "Vendor_Mask_ID": "acm"})
    assert r.status_code == 409


def test_update_vendor(admin_client):
    vendor_id = make_vendor(admin_client)
    r = admin_client.patch("/api/vendor/update-vendor", json={"Vendor_ID": vendor_id, "Contact_Person": "Dana"})
    assert r.status_code == 200
    assert r.json["message"] == "Vendor updated successfully"
    assert r.json["data"]["Contact_Person"] == "Dana"

    r = admin_client.patch("/api/vendor/update-vendor", json={"Vendor_ID": vendor_id})
    assert r.status_code == 400
    assert r.json["message"] == "No fields provided to update"

    r = admin_client.patch("/api/vendor/update-vendor", json={"Vendor_ID": "VDR-99", "Contact_Person": "X"})
    assert r.status_code == 404


def test_update_vendor_rejects_null_for_required_field(admin_client):
    vendor_id = make_vendor(admin_client)
    r = admin_client.patch("/api/vendor/update-vendor", json={"Vendor_ID": vendor_id, "Vendor_Name": None})
    assert r.status_code == 400


def test_delete_vendor_blocked_by_products(admin_client):
    vendor_id = make_vendor(admin_client)
    make_collections(admin_client)
    make_product(admin_client, vendor_id, 100)

    r = admin_client.delete("/api/vendor/delete-vendor", json={"Vendor_ID": vendor_id})
    assert r.status_code == 409
    assert "product codes" in r.json["message"]

    r = admin_client.delete("/api/vendor-product/delete-product", json={"Product_Code": "VPC-1"})
    assert r.status_code == 200

    r = admin_client.delete("/api/vendor/delete-vendor", json={"Vendor_ID": vendor_id})
    assert r.status_code == 200
    assert r.json == {"message": "Vendor deleted successfully", "Vendor_ID": vendor_id}

    r = admin_client.delete("/api/vendor/delete-vendor", json={"Vendor_ID": vendor_id})
    assert r.status_code == 404


def test_list_vendors_search_and_pagination(admin_client):
    make_vendor(admin_client, "Acme Labels", "ACM")
    make_vendor(admin_client, "Bravo Tapes", "BRV")
    make_vendor(admin_client, "Charlie Foils", "CHF")

    r = admin_client.get("/api/vendor/fetch-all-vendors?limit=2")
    assert r.status_code == 200
    assert [v["Vendor_Name"] for v in r.json["data"]] == ["Acme Labels", "Bravo Tapes"]
    assert r.json["pagination"]["total"] == 3
    assert r.json["pagination"]["totalPages"] == 2
    assert r.json["pagination"]["search"] == "No Search Applied"

    r = admin_client.get("/api/vendor/fetch-all-vendors?search=brv")
    assert [v["Vendor_ID"] for v in r.json["data"]] == ["VDR-2"]

    r = admin_client.get("/api/vendor/fetch-all-vendor-names")
    assert r.json["data"][0] == {"Vendor_ID": "VDR-1", "Vendor_Name": "Acme Labels"}


def test_vendor_actions_are_audited(admin_client):
    make_vendor(admin_client)
    r = admin_client.get("/admin/audit?action=vendor.")
    assert r.status_code == 200
    assert r.json["data"][0]["action"] == "vendor.create"
    assert r.json["data"][0]["entity_id"] == "VDR-1"


def test_vendor_ids_sort_by_numeric_suffix(admin_client):
    for n in range(1, 12):
        assert make_vendor(admin_client, f"Vendor {n:02d}", f"V{n:02d}") == f"VDR-{n}"

    r = admin_client.get("/api/vendor/fetch-all-vendor-names")
    assert r.status_code == 200
    ids = [v["Vendor_ID"] for v in r.json["data"]]
    assert ids == [f"VDR-{n}" for n in range(1, 12)]
    assert ids[-3:] == ["VDR-9", "VDR-10", "VDR-11"]

    assert make_vendor(admin_client, "Vendor 12", "V12") == "VDR-12"
