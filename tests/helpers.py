"""Small builders for the catalog and order rows most tests need."""


def make_vendor(client, name="Acme Labels", mask="ACM", **extra):
    r = client.post("/api/vendor/create-new-vendor", json={"Vendor_Name": name, "Vendor_Mask_ID": mask, **extra})
    assert r.status_code == 201, r.json
    return r.json["Vendor_ID"]


def make_collections(client, material="Semi Gloss", adhesive="Permanent", hardware="Ribbon"):
    for path, body in (
        ("create-material", {"Material_Name": material, "Material_Mask_ID": material[:3].upper()}),
        ("create-adhesive", {"Adhesive_Name": adhesive, "Adhesive_Mask_ID": adhesive[:3].upper()}),
        ("create-hardware", {"Hardware_Name": hardware, "Hardware_Mask_ID": hardware[:3].upper()}),
    ):
        r = client.post(f"/api/collection/{path}", json=body)
        assert r.status_code == 201, r.json


def make_product(client, vendor_id, width, description=None, material="Semi Gloss", adhesive="Permanent", gsm=80):
    r = client.post(
        "/api/vendor-product/create-new-product",
        json={
            "Vendor_ID": vendor_id,
            "Material": material,
            "Width": width,
            "Adhesive_Type": adhesive,
            "Paper_GSM": gsm,
            "Product_Description": description or f"{material} {width}mm {gsm}gsm",
        },
    )
    assert r.status_code == 201, r.json
    return r.json["data"]["Product_Code"]


def make_order(client, type_="Purchase", entity_id="VDR-1", **extra):
    body = {"user": "admin", "type": type_, "status": "Draft", "entity_id": entity_id, **extra}
    r = client.post("/api/order-header/create-order-header", json=body)
    assert r.status_code == 201, r.json
    return r.json["order_id"]


def make_item(client, order_id, product_code="VPC-1", **extra):
    body = {"order_id": order_id, "product_code": product_code, **extra}
    r = client.post("/api/order-items/create-order-item", json=body)
    assert r.status_code == 200, r.json
    return r.json["data"]


def fetch_order(client, order_id):
    r = client.get(f"/api/order-header/fetch-order-by-id?order_id={order_id}")
    assert r.status_code == 200, r.json
    return r.json["data"]


def login(client, email="admin@example.com", password="pw"):
    r = client.post("/auth/login", json={"email": email, "password": password})
    assert r.status_code == 200, r.json
    # Mutating requests must echo the session's CSRF token.
    client.environ_base["HTTP_X_CSRF_TOKEN"] = r.json["csrf_token"]
    return r
