from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from pydantic import Field, model_validator
from sqlalchemy import func

from app.labelops.api_utils import PageParams, generate_custom_id, id_number
from app.labelops.audit import record_event
from app.labelops.errors import Conflict, NotFound
from app.labelops.modules.collections.service import COLLECTIONS, name_exists
from app.labelops.modules.vendor_products.models import VendorProduct
from app.labelops.modules.vendors.models import Vendor
from app.labelops.schemas import Payload, PositiveInt, RequiredStr

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.labelops.models import User

PRODUCT_CODE_PATTERN = r"^VPC-\d+$"


class ProductCreate(Payload):
    vendor_id: RequiredStr = Field(alias="Vendor_ID")
    material: RequiredStr = Field(alias="Material")
    width: PositiveInt = Field(alias="Width")
    adhesive_type: RequiredStr = Field(alias="Adhesive_Type")
    paper_gsm: PositiveInt = Field(alias="Paper_GSM")
    product_description: RequiredStr = Field(alias="Product_Description")


class ProductUpdate(Payload):
    product_code: RequiredStr = Field(alias="Product_Code")
    vendor_id: RequiredStr = Field(None, alias="Vendor_ID")
    material: RequiredStr = Field(None, alias="Material")
    width: PositiveInt = Field(None, alias="Width")
    adhesive_type: RequiredStr = Field(None, alias="Adhesive_Type")
    paper_gsm: PositiveInt = Field(None, alias="Paper_GSM")
    product_description: RequiredStr = Field(None, alias="Product_Description")

    @model_validator(mode="after")
    def _at_least_one_field(self):
        if not self.model_fields_set - {"product_code"}:
            raise ValueError("At least one field must be provided to update")
        return self


class ProductDelete(Payload):
    product_code: RequiredStr = Field(alias="Product_Code", pattern=PRODUCT_CODE_PATTERN)


def _check_references(s: "Session", vendor_id: str | None, material: str | None, adhesive: str | None) -> None:
    if vendor_id is not None and s.get(Vendor, vendor_id) is None:
        raise NotFound("Vendor_ID does not exist")
    if material is not None and not name_exists(s, COLLECTIONS["material"], material):
        raise NotFound("Material not found in Material_Collection")
    if adhesive is not None and not name_exists(s, COLLECTIONS["adhesive"], adhesive):
        raise NotFound("Adhesive_Type not found in Adhesive_Collection")


def _description_taken(s: "Session", vendor_id: str, description: str, exclude_code: str | None = None) -> bool:
    q = s.query(VendorProduct.product_code).filter(
        VendorProduct.vendor_id == vendor_id,
        func.lower(VendorProduct.product_description) == description.lower(),
    )
    if exclude_code:
        q = q.filter(VendorProduct.product_code != exclude_code)
    return q.first() is not None


def get_product_or_404(s: "Session", product_code: str) -> VendorProduct:
    product = s.get(VendorProduct, product_code)
    if not product:
        raise NotFound(f"Product_Code {product_code} not found")
    return product


def create_product(s: "Session", payload: ProductCreate, user: "User") -> VendorProduct:
    _check_references(s, payload.vendor_id, payload.material, payload.adhesive_type)
    if _description_taken(s, payload.vendor_id, payload.product_description):
        raise Conflict("This Product_Description already exists for this Vendor")

    now = datetime.utcnow()
    product = VendorProduct(
        product_code=generate_custom_id(s, VendorProduct.product_code, "VPC"),
        created_at=now,
        updated_at=now,
        **payload.model_dump(),
    )
    s.add(product)
    s.flush()

    record_event(
        s,
        actor=user,
        action="vendor_product.create",
        entity_type="VendorProduct",
        entity_id=product.product_code,
        metadata={"vendor_id": product.vendor_id, "description": product.product_description},
    )
    return product


def update_product(s: "Session", payload: ProductUpdate, user: "User") -> VendorProduct:
    product = get_product_or_404(s, payload.product_code)
    fields = payload.provided(exclude={"product_code"})

    _check_references(s, fields.get("vendor_id"), fields.get("material"), fields.get("adhesive_type"))
    vendor_id = fields.get("vendor_id", product.vendor_id)
    description = fields.get("product_description", product.product_description)
    if ("vendor_id" in fields or "product_description" in fields) and _description_taken(
        s, vendor_id, description, exclude_code=product.product_code
    ):
        raise Conflict("Product_Description already exists")

    changes = {}
    for attr, new in fields.items():
        old = getattr(product, attr)
        if new != old:
            changes[attr] = {"old": old, "new": new}
            setattr(product, attr, new)
    product.updated_at = datetime.utcnow()

    record_event(
        s,
        actor=user,
        action="vendor_product.edit",
        entity_type="VendorProduct",
        entity_id=product.product_code,
        metadata={"changes": changes},
    )
    return product


def delete_product(s: "Session", product_code: str, user: "User") -> None:
    product = get_product_or_404(s, product_code)
    s.delete(product)
    record_event(
        s,
        actor=user,
        action="vendor_product.delete",
        entity_type="VendorProduct",
        entity_id=product_code,
        metadata={"vendor_id": product.vendor_id, "description": product.product_description},
    )


def list_products(
    s: "Session", params: PageParams, vendor_id: str = "", search: str = ""
) -> tuple[list[tuple[VendorProduct, str | None]], int]:
    q = s.query(VendorProduct, Vendor.vendor_name).outerjoin(Vendor, Vendor.vendor_id == VendorProduct.vendor_id)
    if vendor_id:
        q = q.filter(VendorProduct.vendor_id == vendor_id)
    if search:
        q = q.filter(VendorProduct.product_description.ilike(f"%{search}%"))
    total = q.count()
    rows = (
        q.order_by(id_number(VendorProduct.product_code, "VPC").asc())
        .offset(params.offset)
        .limit(params.limit)
        .all()
    )
    return [(p, name) for p, name in rows], total


def find_split_options(s: "Session", original: VendorProduct, remaining_width: int, is_first_split: bool) -> list[VendorProduct]:
    """Products that a roll of ``original`` can be slit into."""
    q = s.query(VendorProduct).filter(
        VendorProduct.vendor_id == original.vendor_id,
        VendorProduct.adhesive_type == original.adhesive_type,
        VendorProduct.paper_gsm == original.paper_gsm,
        VendorProduct.material == original.material,
        VendorProduct.width <= remaining_width,
    )
    if is_first_split:
        q = q.filter(VendorProduct.width < original.width)
    return q.order_by(VendorProduct.width.asc(), id_number(VendorProduct.product_code, "VPC").asc()).all()
