"""
Roll splitting.

A master roll of label stock (width W mm) is slit along a requested length L m
into narrower product codes of the same vendor, adhesive, GSM and material.
Areas are width/1000 * L. The ledger records the transformation as:

* one negative row removing W * L from the master's barcode bucket,
* one positive row returning the unused strip (leftover width) to that bucket,
* one positive row per split product.

The split rows together with the leftover must add back up to the master area.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Annotated, Any

from pydantic import Field, field_validator
from sqlalchemy import func

from app.labelops.api_utils import id_number
from app.labelops.audit import record_event
from app.labelops.errors import NotFound, ValidationError
from app.labelops.modules.inventory.models import TYPE_PRODUCT, InventoryRow, make_barcode_tag
from app.labelops.modules.inventory.service import add_row
from app.labelops.modules.vendor_products.models import VendorProduct
from app.labelops.modules.vendor_products.service import find_split_options
from app.labelops.schemas import OptionalStr, Payload, RequiredStr

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.labelops.models import User

logger = logging.getLogger(__name__)

AREA_TOLERANCE = 1e-6
NOT_A_PRODUCT = "Inventory item not found or is not a product type"


class EligibilityQuery(Payload):
    inventory_id: OptionalStr | None = None
    barcode_tag: OptionalStr | None = None
    product_code: OptionalStr | None = None


class SplitOptionsQuery(Payload):
    product_code: RequiredStr
    remaining_width: Annotated[int, Field(gt=0)]
    is_first_split: bool = False

    @field_validator("is_first_split", mode="before")
    @classmethod
    def _truthy(cls, v):
        if isinstance(v, str):
            return v.strip().lower() == "true"
        return v


class SplitLine(Payload):
    product_code: RequiredStr


class SplitRequest(Payload):
    inventory_id: RequiredStr
    requested_length_m: Annotated[float, Field(strict=True, gt=0, allow_inf_nan=False)]
    splits: list[SplitLine] = Field(min_length=1)


def area_sqm(width_mm: int, length_m: float) -> float:
    return (width_mm / 1000) * length_m


def _norm(col):
    return func.upper(func.trim(col))


def _product_rows(s: "Session", *conds):
    return (
        s.query(InventoryRow, VendorProduct)
        .join(VendorProduct, _norm(InventoryRow.product_code) == _norm(VendorProduct.product_code))
        .filter(func.lower(func.trim(InventoryRow.type)) == TYPE_PRODUCT, *conds)
        .order_by(id_number(InventoryRow.inventory_id, "INV").asc())
    )


def _available_sqm(s: "Session", *conds) -> float:
    total = (
        s.query(func.coalesce(func.sum(InventoryRow.unit_quantity), 0))
        .filter(func.lower(func.trim(InventoryRow.type)) == TYPE_PRODUCT, *conds)
        .scalar()
    )
    return float(total or 0)


def check_eligibility(s: "Session", query: EligibilityQuery) -> dict[str, Any]:
    if not query.inventory_id and not (query.barcode_tag and query.product_code):
        raise ValidationError("Either inventory_id or (barcode_tag and product_code) must be provided")
    if query.inventory_id:
        found = _product_rows(s, InventoryRow.inventory_id == query.inventory_id).first()
        if found is None:
            raise NotFound(NOT_A_PRODUCT)
        row, product = found
        available = float(row.unit_quantity or 0)
    else:
        by_bucket = (
            _norm(InventoryRow.barcode_tag) == func.upper(func.trim(query.barcode_tag)),
            _norm(InventoryRow.product_code) == func.upper(func.trim(query.product_code)),
        )
        found = _product_rows(s, *by_bucket).first()
        if found is None:
            raise NotFound(NOT_A_PRODUCT)
        row, product = found
        available = _available_sqm(s, *by_bucket)

    return {
        "eligible": available > 0,
        "available_sqm": available,
        "product_code": (row.product_code or "").strip().upper(),
        "original_width": product.width,
        "vendor_id": product.vendor_id,
        "adhesive_type": product.adhesive_type,
        "paper_gsm": product.paper_gsm,
        "material": product.material,
        "inventory_id": row.inventory_id,
    }


def split_options(s: "Session", query: SplitOptionsQuery) -> list[dict[str, Any]]:
    original = s.get(VendorProduct, query.product_code)
    if original is None:
        raise NotFound("Original product code not found")
    options = find_split_options(s, original, query.remaining_width, query.is_first_split)
    return [
        {
            "product_code": p.product_code,
            "width": p.width,
            "product_description": p.product_description or "",
        }
        for p in options
    ]


def submit_split(s: "Session", payload: SplitRequest, user: "User") -> dict[str, Any]:
    found = _product_rows(s, InventoryRow.inventory_id == payload.inventory_id).first()
    if found is None:
        raise NotFound(NOT_A_PRODUCT)
    master, master_product = found
    master_width = master_product.width
    if not isinstance(master_width, int) or master_width <= 0:
        raise ValidationError(
            "Original roll width must be a positive integer in millimeters",
            details={"original_width": master_width},
        )

    length_m = payload.requested_length_m
    master_tag = master.barcode_tag or make_barcode_tag(master.product_code, master.actual_price_per_unit)
    available = _available_sqm(
        s,
        InventoryRow.barcode_tag == master_tag,
        InventoryRow.product_code == master.product_code,
    )
    master_sqm = area_sqm(master_width, length_m)
    if master_sqm > available + AREA_TOLERANCE:
        raise ValidationError(
            "Requested split length exceeds available inventory for this roll",
            details={
                "requested_length_m": length_m,
                "max_split_length_m": available / (master_width / 1000),
                "requested_split_sqm": master_sqm,
                "available_sqm": available,
                "product_code": master.product_code,
                "barcode_tag": master_tag,
            },
        )

    codes = [line.product_code for line in payload.splits]
    products = {
        p.product_code: p
        for p in s.query(VendorProduct).filter(VendorProduct.product_code.in_(set(codes))).all()
    }
    if len(products) != len(set(codes)):
        raise ValidationError("One or more product codes do not exist")

    widths: list[int] = []
    for i, code in enumerate(codes):
        product = products[code]
        for attr, label in (
            ("vendor_id", "Vendor_ID"),
            ("adhesive_type", "Adhesive_Type"),
            ("paper_gsm", "Paper_GSM"),
            ("material", "Material"),
        ):
            if getattr(product, attr) != getattr(master_product, attr):
                raise ValidationError(f"Product {code} has different {label}")
        if product.width is None or product.width <= 0:
            raise ValidationError(
                "Each split width must be a positive integer in millimeters",
                details={"product_code": code, "width": product.width},
            )
        # Same-width first row would be a no-op split.
        if i == 0 and product.width >= master_width:
            raise ValidationError("First split width must be less than master width to perform a split")
        widths.append(product.width)

    if sum(widths) > master_width:
        raise ValidationError(
            "Invalid split configuration: sum of split widths exceeds master width",
            details={"master_width_mm": master_width, "selected_width_mm": sum(widths)},
        )

    leftover_width = master_width - sum(widths)
    split_areas = [area_sqm(w, length_m) for w in widths]
    split_total = sum(split_areas)
    leftover_sqm = area_sqm(leftover_width, length_m)
    delta = abs(split_total + leftover_sqm - master_sqm)
    allowed = AREA_TOLERANCE * max(1.0, master_sqm)
    if delta > allowed:
        raise ValidationError(
            "Split calculation failed conservation check (area mismatch detected)",
            details={
                "master_split_sqm": master_sqm,
                "split_rows_sqm": split_total,
                "leftover_sqm": leftover_sqm,
                "conservation_delta": delta,
                "allowed_delta": allowed,
            },
        )

    logger.info(
        "submit-split inventory_id=%s product_code=%s length_m=%s master_mm=%s selected_mm=%s "
        "leftover_mm=%s master_sqm=%s split_sqm=%s leftover_sqm=%s",
        master.inventory_id,
        master.product_code,
        length_m,
        master_width,
        sum(widths),
        leftover_width,
        master_sqm,
        split_total,
        leftover_sqm,
    )

    def ledger_row(product_code: str, quantity: float, tag: str | None = None) -> InventoryRow:
        return add_row(
            s,
            order_id=master.order_id,
            order_transaction_type=master.order_transaction_type,
            order_payment_type=master.order_payment_type,
            type=master.type,
            product_code=product_code,
            unit_quantity=quantity,
            kg_quantity=None,
            barcode_tag=tag or make_barcode_tag(product_code, master.actual_price_per_unit),
            declared_price_per_unit=master.declared_price_per_unit,
            declared_price_per_kg=master.declared_price_per_kg,
            actual_price_per_unit=master.actual_price_per_unit,
            actual_price_per_kg=master.actual_price_per_kg,
        )

    removed = ledger_row(master.product_code, -master_sqm, master_tag)
    leftover_row = None
    if leftover_sqm > AREA_TOLERANCE:
        leftover_row = ledger_row(master.product_code, leftover_sqm, master_tag)

    breakdown = []
    for code, width, allocated in zip(codes, widths, split_areas):
        row = ledger_row(code, allocated)
        breakdown.append(
            {"inventory_id": row.inventory_id, "product_code": code, "width": width, "allocated_sqm": allocated}
        )

    record_event(
        s,
        actor=user,
        action="inventory.split",
        entity_type="InventoryRow",
        entity_id=master.inventory_id,
        metadata={
            "requested_length_m": length_m,
            "removed_row": removed.inventory_id,
            "leftover_row": leftover_row.inventory_id if leftover_row else None,
            "split_rows": [b["inventory_id"] for b in breakdown],
        },
    )
    return {
        "message": "Inventory split completed successfully",
        "requested_length_m": length_m,
        "total_split_sqm": split_total,
        "leftover_width_mm": leftover_width,
        "leftover_sqm": leftover_sqm,
        "breakdown": breakdown,
    }
