from helpers import make_collections, make_product, make_vendor


# ---------- Collections ----------
def test_collections_create_and_list(admin_client):
    make_collections(admin_client)
    r = admin_client.get("/api/collection/fetch-all-material")
    assert r.status_code == 200
    assert r.json["data"] == [{"Material_Name": "Semi Gloss", "Material_Mask_ID": "SEM"}]

    r = admin_client.get("/api/collection/fetch-all-hardware")
    assert r.json["data"][0]["Hardware_Name"] == "Ribbon"

    r = admin_client.post("/api/collection/create-adhesive", json={"Adhesive_Name": "permanent", "Adhesive_Mask_ID": "ZZZ"})
    assert r.status_code == 409
    assert r.json["message"] == "Adhesive_Name or Adhesive_Mask_ID already exists"


# ---------- Products ----------
def test_create_product_checks_references(admin_client):
    vendor_id = make_vendor(admin_client)
    body = {
        "Vendor_ID": vendor_id,
        "Material": "Semi Gloss",
        "Width": 100,
        "Adhesive_Type": "Permanent",
        "Paper_GSM": 80,
        "Product_Description": "SG 100",
    }
    r = admin_client.post("/api/vendor-product/create-new-product", json=body)
    assert r.status_code == 404
    assert r.json["message"] == "Material not found in Material_Collection"

    make_collections(admin_client)
    r = admin_client.post("/api/vendor-product/create-new-product", json={**body, "Vendor_ID": "VDR-9"})
    assert r.status_code == 404
    assert r.json["message"] == "Vendor_ID does not exist"

    r = admin_client.post("/api/vendor-product/create-new-product", json={**body, "Adhesive_Type": "Removable"})
    assert r.status_code == 404
    assert r.json["message"] == "Adhesive_Type not found in Adhesive_Collection"

    r = admin_client.post("/api/vendor-product/create-new-product", json=body)
    assert r.status_code == 201
    assert r.json["message"] == "Product created successfully"
    assert r.json["data"]["Product_Code"] == "VPC-1"
    assert r.json["data"]["Width"] == 100


def test_product_width_must_be_positive_integer(admin_client):
    vendor_id = make_vendor(admin_client)
    make_collections(admin_client)
    body = {
        "Vendor_ID": vendor_id,
        "Material": "Semi Gloss",
        "Adhesive_Type": "Permanent",
        "Paper_GSM": 80,
        "Product_Description": "SG",
    }
    for width in (0, -5, "100", 12.5):
        r = admin_client.post("/api/vendor-product/create-new-product", json={**body, "Width": width})
        assert r.status_code == 400, width


def test_product_description_unique_per_vendor(admin_client):
    v1 = make_vendor(admin_client, "Acme", "ACM")
    v2 = make_vendor(admin_client, "Bravo", "BRV")
    make_collections(admin_client)
    make_product(admin_client, v1, 100, description="Roll A")
    # same description under another vendor is fine
    make_product(admin_client, v2, 100, description="Roll A")

    r = admin_client.post(
        "/api/vendor-product/create-new-product",
        json={
            "Vendor_ID": v1,
            "Material": "Semi Gloss",
            "Width": 50,
            "Adhesive_Type": "Permanent",
            "Paper_GSM": 80,
            "Product_Description": "roll a",
        },
    )
    assert r.status_code == 409
    assert r.json["message"] == "This Product_Description already exists for this Vendor"


def test_update_product(admin_client):
    vendor_id = make_vendor(admin_client)
    make_collections(admin_client)
    code = make_product(admin_client, vendor_id, 100, description="Roll A")
    make_product(admin_client, vendor_id, 50, description="Roll B")

    r = admin_client.patch("/api/vendor-product/update-product", json={"Product_Code": code, "Width": 120})
    assert r.status_code == 200
    assert r.json["message"] == "Vendor Product updated successfully"
    assert r.json["data"]["Width"] == 120

    r = admin_client.patch("/api/vendor-product/update-product", json={"Product_Code": code})
    assert r.status_code == 400

    r = admin_client.patch(
        "/api/vendor-product/update-product", json={"Product_Code": code, "Product_Description": "Roll B"}
    )
    assert r.status_code == 409
    assert r.json["message"] == "Product_Description already exists"

    r = admin_client.patch("/api/vendor-product/update-product", json={"Product_Code": "VPC-77", "Width": 10})
    assert r.status_code == 404
    assert r.json["message"] == "Product_Code VPC-77 not found"


def test_delete_product_validates_code_shape(admin_client):
    r = admin_client.delete("/api/vendor-product/delete-product", json={"Product_Code": "ABC"})
    assert r.status_code == 400

    r = admin_client.delete("/api/vendor-product/delete-product", json={"Product_Code": "VPC-5"})
    assert r.status_code == 404


def test_list_products_with_vendor_name(admin_client):
    v1 = make_vendor(admin_client, "Acme", "ACM")
    v2 = make_vendor(admin_client, "Bravo", "BRV")
    make_collections(admin_client)
    for width in (100, 50):
        make_product(admin_client, v1, width)
    make_product(admin_client, v2, 75, description="Bravo special")

    r = admin_client.get(f"/api/vendor-product/fetch-all-products?Vendor_ID={v1}")
    assert r.status_code == 200
    assert [p["Product_Code"] for p in r.json["data"]] == ["VPC-1", "VPC-2"]
    assert r.json["data"][0]["Vendor_Name"] == "Acme"
    assert r.json["pagination"]["total"] == 2

    r = admin_client.get("/api/vendor-product/fetch-all-products?search=special")
    assert [p["Product_Code"] for p in r.json["data"]] == ["VPC-3"]


# ---------- Hardware ----------
def _hardware_body(vendor_id, **overrides):
    body = {
        "Vendor_ID": vendor_id,
        "Hardware_Name": "Ribbon",
        "Hardware_Description": "Wax 110mm",
        "Hardware_Code_Description": "RIB-WAX-110",
    }
    body.update(overrides)
    return body


def test_hardware_lifecycle(admin_client):
    vendor_id = make_vendor(admin_client)
    make_collections(admin_client)

    r = admin_client.post("/api/vendor-hardware/create-new-hardware", json=_hardware_body(vendor_id))
    assert r.status_code == 201
    assert r.json["data"]["Hardware_Code"] == "HWC-1"

    r = admin_client.post(
        "/api/vendor-hardware/create-new-hardware",
        json=_hardware_body(vendor_id, Hardware_Code_Description="OTHER"),
    )
    assert r.status_code == 409
    assert "same Hardware_Name and Hardware_Description" in r.json["message"]

    r = admin_client.post(
        "/api/vendor-hardware/create-new-hardware",
        json=_hardware_body(vendor_id, Hardware_Description="Resin 110mm"),
    )
    assert r.status_code == 409
    assert r.json["message"] == "This Hardware_Code_Description already exists."

    r = admin_client.post(
        "/api/vendor-hardware/create-new-hardware",
        json=_hardware_body(vendor_id, Hardware_Name="Core", Hardware_Code_Description="X"),
    )
    assert r.status_code == 404
    assert r.json["message"] == "Hardware_Name does not exist"

    r = admin_client.patch(
        "/api/vendor-hardware/update-hardware",
        json={"Hardware_Code": "HWC-1", "Hardware_Description": "Wax 110mm x 300m"},
    )
    assert r.status_code == 200
    assert r.json["data"]["Hardware_Description"] == "Wax 110mm x 300m"

    r = admin_client.get("/api/vendor-hardware/fetch-all-hardware")
    assert r.json["data"][0]["Vendor_Name"] == "Acme Labels"

    r = admin_client.delete("/api/vendor-hardware/delete-hardware", json={"Hardware_Code": "HWC-1"})
    assert r.status_code == 200
    r = admin_client.delete("/api/vendor-hardware/delete-hardware", json={"Hardware_Code": "HWC-1"})
    assert r.status_code == 404
    assert r.json["message"] == "Hardware_Code does not exist"
