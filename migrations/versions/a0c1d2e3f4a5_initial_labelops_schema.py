"""Initial LabelOps schema: accounts, audit, catalog, orders and inventory.

Revision ID: a0c1d2e3f4a5
Revises:
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "a0c1d2e3f4a5"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=False), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=False), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    insp = sa.inspect(bind)

    def create(name: str, *items, indexes: tuple[tuple[str, list[str]], ...] = ()) -> None:
        # Safe to re-run against a database that already has some of the tables.
        if not insp.has_table(name):
            op.create_table(name, *items)
            existing = set()
        else:
            existing = {idx["name"] for idx in insp.get_indexes(name)}
        for index_name, cols in indexes:
            if index_name not in existing:
                op.create_index(index_name, name, cols)

    # ---------- Accounts and audit ----------
    create(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(320), nullable=False, unique=True),
        sa.Column("username", sa.String(64), nullable=True, unique=True),
        sa.Column("first_name", sa.String(128), nullable=True),
        sa.Column("last_name", sa.String(128), nullable=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=False), nullable=False, server_default=sa.func.now()),
    )
    create(
        "roles",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("key", sa.String(64), nullable=False, unique=True),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=False), nullable=False, server_default=sa.func.now()),
    )
    create(
        "permissions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("key", sa.String(128), nullable=False, unique=True),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=False), nullable=False, server_default=sa.func.now()),
    )
    create(
        "user_roles",
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("role_id", sa.Integer(), sa.ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
    )
    create(
        "role_permissions",
        sa.Column("role_id", sa.Integer(), sa.ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("permission_id", sa.Integer(), sa.ForeignKey("permissions.id", ondelete="CASCADE"), primary_key=True),
    )
    create(
        "audit_events",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=False), nullable=False, server_default=sa.func.now()),
        sa.Column("request_id", sa.String(64), nullable=True),
        sa.Column("actor_user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("actor_user_email", sa.String(320), nullable=True),
        sa.Column("action", sa.String(128), nullable=False),
        sa.Column("entity_type", sa.String(128), nullable=True),
        sa.Column("entity_id", sa.String(128), nullable=True),
        sa.Column("reason", sa.String(512), nullable=True),
        sa.Column("metadata_json", sa.Text(), nullable=True),
        sa.Column("client_ip", sa.String(64), nullable=True),
    )

    # ---------- Catalog ----------
    create(
        "vendors",
        sa.Column("vendor_id", sa.String(32), primary_key=True),
        sa.Column("vendor_name", sa.String(255), nullable=False),
        sa.Column("vendor_mask_id", sa.String(64), nullable=False),
        sa.Column("ntn_number", sa.String(64), nullable=True),
        sa.Column("strn_number", sa.String(64), nullable=True),
        sa.Column("address_1", sa.Text(), nullable=True),
        sa.Column("address_2", sa.Text(), nullable=True),
        sa.Column("contact_number", sa.String(64), nullable=True),
        sa.Column("contact_person", sa.String(255), nullable=True),
        sa.Column("email_id", sa.String(320), nullable=True),
        sa.Column("website", sa.String(512), nullable=True),
        sa.Column("account_number", sa.String(64), nullable=True),
        sa.Column("iban_number", sa.String(64), nullable=True),
        sa.Column("swift_code", sa.String(32), nullable=True),
        sa.Column("bank_name", sa.String(255), nullable=True),
        sa.Column("branch_code", sa.String(32), nullable=True),
        *_timestamps(),
        indexes=(("idx_vendors_name", ["vendor_name"]), ("idx_vendors_mask_id", ["vendor_mask_id"])),
    )
    for table, prefix in (
        ("material_collection", "material"),
        ("adhesive_collection", "adhesive"),
        ("hardware_collection", "hardware"),
    ):
        create(
            table,
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column(f"{prefix}_name", sa.String(128), nullable=False, unique=True),
            sa.Column(f"{prefix}_mask_id", sa.String(64), nullable=False, unique=True),
            sa.Column("created_at", sa.DateTime(timezone=False), nullable=False, server_default=sa.func.now()),
        )
    create(
        "vendor_product_codes",
        sa.Column("product_code", sa.String(32), primary_key=True),
        sa.Column("vendor_id", sa.String(32), sa.ForeignKey("vendors.vendor_id", ondelete="RESTRICT"), nullable=False),
        sa.Column("material", sa.String(128), nullable=False),
        sa.Column("width", sa.Integer(), nullable=False),
        sa.Column("adhesive_type", sa.String(128), nullable=False),
        sa.Column("paper_gsm", sa.Integer(), nullable=False),
        sa.Column("product_description", sa.Text(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("vendor_id", "product_description", name="uq_vendor_product_description"),
        indexes=(
            ("idx_vendor_products_vendor", ["vendor_id"]),
            ("idx_vendor_products_split_match", ["vendor_id", "adhesive_type", "paper_gsm", "material"]),
        ),
    )
    create(
        "vendor_hardware_codes",
        sa.Column("hardware_code", sa.String(32), primary_key=True),
        sa.Column("vendor_id", sa.String(32), sa.ForeignKey("vendors.vendor_id", ondelete="RESTRICT"), nullable=False),
        sa.Column("hardware_name", sa.String(128), nullable=False),
        sa.Column("hardware_description", sa.Text(), nullable=False),
        sa.Column("hardware_code_description", sa.String(512), nullable=False, unique=True),
        *_timestamps(),
        indexes=(("idx_vendor_hardware_vendor", ["vendor_id"]), ("idx_vendor_hardware_name", ["hardware_name"])),
    )

    # ---------- Orders ----------
    create(
        "orders",
        sa.Column("order_id", sa.String(32), primary_key=True),
        sa.Column("user", sa.String(255), nullable=False),
        sa.Column("type", sa.String(64), nullable=False),
        sa.Column("company", sa.String(255), nullable=True),
        sa.Column("status", sa.String(64), nullable=False),
        sa.Column("total_due", sa.Float(), nullable=False, server_default="0"),
        sa.Column("entity_id", sa.String(128), nullable=False),
        *_timestamps(),
        indexes=(
            ("idx_orders_type_created", ["type", "created_at"]),
            ("idx_orders_entity", ["entity_id"]),
            ("idx_orders_status", ["status"]),
        ),
    )
    create(
        "order_config",
        sa.Column("order_config_id", sa.String(32), primary_key=True),
        sa.Column("order_id", sa.String(32), sa.ForeignKey("orders.order_id", ondelete="CASCADE"), nullable=False, unique=True),
        sa.Column("tax_percentage", sa.Float(), nullable=False, server_default="0"),
        sa.Column("committed_date", sa.String(32), nullable=True),
        sa.Column("entity_order", sa.String(255), nullable=True),
        sa.Column("gate_pass", sa.String(255), nullable=True),
        *_timestamps(),
    )
    create(
        "order_notes",
        sa.Column("order_note_id", sa.String(32), primary_key=True),
        sa.Column("order_id", sa.String(32), sa.ForeignKey("orders.order_id", ondelete="CASCADE"), nullable=False, unique=True),
        sa.Column("note", sa.Text(), nullable=True),
        *_timestamps(),
    )
    amount = {"nullable": False, "server_default": "0"}
    create(
        "order_items",
        sa.Column("order_item_id", sa.String(32), primary_key=True),
        sa.Column("order_id", sa.String(32), sa.ForeignKey("orders.order_id", ondelete="CASCADE"), nullable=False),
        sa.Column("movement", sa.String(1), nullable=False, server_default="N"),
        sa.Column("product_code", sa.String(32), nullable=False),
        sa.Column("item_type", sa.String(64), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("hs_code", sa.String(64), nullable=True),
        sa.Column("unit", sa.Float(), **amount),
        sa.Column("kg", sa.Float(), **amount),
        sa.Column("declared_price_per_unit", sa.Float(), **amount),
        sa.Column("declared_price_per_kg", sa.Float(), **amount),
        sa.Column("actual_price_per_unit", sa.Float(), **amount),
        sa.Column("actual_price_per_kg", sa.Float(), **amount),
        sa.Column("declared_amount", sa.Float(), **amount),
        sa.Column("actual_amount", sa.Float(), **amount),
        *_timestamps(),
        indexes=(("idx_order_items_order", ["order_id"]), ("idx_order_items_movement", ["order_id", "movement"])),
    )
    create(
        "order_charges",
        sa.Column("order_charges_id", sa.String(32), primary_key=True),
        sa.Column("order_id", sa.String(32), sa.ForeignKey("orders.order_id", ondelete="CASCADE"), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("charges", sa.Float(), **amount),
        *_timestamps(),
        indexes=(("idx_order_charges_order", ["order_id"]),),
    )
    create(
        "order_transactions",
        sa.Column("order_transaction_id", sa.String(32), primary_key=True),
        sa.Column("order_id", sa.String(32), sa.ForeignKey("orders.order_id", ondelete="CASCADE"), nullable=False),
        sa.Column("transaction_date", sa.String(32), nullable=True),
        sa.Column("type", sa.String(64), nullable=True),
        sa.Column("order_payment_type", sa.String(64), nullable=True),
        sa.Column("payment_method", sa.String(64), nullable=True),
        sa.Column("actual_amount", sa.Float(), **amount),
        sa.Column("declared_amount", sa.Float(), **amount),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        indexes=(("idx_order_transactions_order", ["order_id"]),),
    )

    # ---------- Inventory ----------
    create(
        "order_inventory",
        sa.Column("inventory_id", sa.String(32), primary_key=True),
        sa.Column("order_id", sa.String(32), sa.ForeignKey("orders.order_id", ondelete="RESTRICT"), nullable=False),
        sa.Column("order_transaction_type", sa.String(64), nullable=False),
        sa.Column("order_payment_type", sa.String(64), nullable=False),
        sa.Column("type", sa.String(32), nullable=False),
        sa.Column("product_code", sa.String(32), nullable=False),
        sa.Column("unit_quantity", sa.Float(), nullable=True),
        sa.Column("kg_quantity", sa.Float(), nullable=True),
        sa.Column("barcode_tag", sa.String(128), nullable=True),
        sa.Column("declared_price_per_unit", sa.Float(), nullable=True),
        sa.Column("declared_price_per_kg", sa.Float(), nullable=True),
        sa.Column("actual_price_per_unit", sa.Float(), nullable=True),
        sa.Column("actual_price_per_kg", sa.Float(), nullable=True),
        *_timestamps(),
        indexes=(
            ("idx_order_inventory_order", ["order_id"]),
            ("idx_order_inventory_barcode", ["barcode_tag", "product_code"]),
        ),
    )


def downgrade() -> None:
    for table in (
        "order_inventory",
        "order_transactions",
        "order_charges",
        "order_items",
        "order_notes",
        "order_config",
        "orders",
        "vendor_hardware_codes",
        "vendor_product_codes",
        "hardware_collection",
        "adhesive_collection",
        "material_collection",
        "vendors",
        "audit_events",
        "role_permissions",
        "user_roles",
        "permissions",
        "roles",
        "users",
    ):
        op.drop_table(table)
