"""Create stock-recount tables."""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "0001_create_recount_tables"
down_revision = None
branch_labels = None
depends_on = None

QUANTITY = sa.Numeric(18, 3)


def upgrade() -> None:
    op.create_table(
        "warehouse",
        sa.Column("warehouse_id", sa.Uuid(), primary_key=True),
        sa.Column("warehouse_code", sa.String(), nullable=False),
        sa.Column("warehouse_name", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_warehouse_warehouse_code", "warehouse", ["warehouse_code"], unique=True)

    op.create_table(
        "recount_document",
        sa.Column("document_id", sa.Uuid(), primary_key=True),
        sa.Column("external_id", sa.String(), nullable=False),
        sa.Column("onec_number", sa.String(), nullable=False),
        sa.Column("onec_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("warehouse_id", sa.Uuid(), sa.ForeignKey("warehouse.warehouse_id"), nullable=False),
        sa.Column("warehouse_code", sa.String(), nullable=False),
        sa.Column("document_status", sa.String(), nullable=False),
        sa.Column("document_version", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "document_status IN ('IMPORTED', 'REVISED', 'EXPORTED')",
            name="ck_recount_document_status",
        ),
        sa.CheckConstraint("document_version >= 1", name="ck_recount_document_version"),
    )
    op.create_index("ix_recount_document_external_id", "recount_document", ["external_id"], unique=True)
    op.create_index("ix_recount_document_warehouse_id", "recount_document", ["warehouse_id"])
    op.create_index("ix_recount_document_warehouse_code", "recount_document", ["warehouse_code"])
    op.create_index(
        "ix_recount_document_onec_number_created",
        "recount_document",
        ["onec_number", "created_at"],
    )

    op.create_table(
        "recount_item",
        sa.Column("item_id", sa.Uuid(), primary_key=True),
        sa.Column(
            "document_id",
            sa.Uuid(),
            sa.ForeignKey("recount_document.document_id"),
            nullable=False,
        ),
        sa.Column("sku", sa.String(), nullable=False),
        sa.Column("item_name", sa.String(), nullable=False),
        sa.Column("unit_of_measure", sa.String(), nullable=False),
        sa.Column("qty_from_1c", QUANTITY, nullable=False),
        sa.Column("counted_qty", QUANTITY, nullable=True),
        sa.Column("corrected_qty", QUANTITY, nullable=True),
        sa.Column("delta_qty", QUANTITY, nullable=True),
        sa.Column("note", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("document_id", "sku", name="uq_recount_item_document_sku"),
    )
    op.create_index("ix_recount_item_document_id", "recount_item", ["document_id"])

    op.create_table(
        "item_barcode",
        sa.Column("item_barcode_id", sa.Uuid(), primary_key=True),
        sa.Column(
            "document_id",
            sa.Uuid(),
            sa.ForeignKey("recount_document.document_id"),
            nullable=False,
        ),
        sa.Column("item_id", sa.Uuid(), sa.ForeignKey("recount_item.item_id"), nullable=False),
        sa.Column("barcode", sa.String(), nullable=False),
        sa.Column("is_primary", sa.Boolean(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.UniqueConstraint("document_id", "barcode", name="uq_item_barcode_document_barcode"),
    )
    op.create_index("ix_item_barcode_document_id", "item_barcode", ["document_id"])
    op.create_index("ix_item_barcode_item_id", "item_barcode", ["item_id"])

    op.create_table(
        "item_change",
        sa.Column("item_change_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "document_id",
            sa.Uuid(),
            sa.ForeignKey("recount_document.document_id"),
            nullable=False,
        ),
        sa.Column("item_id", sa.Uuid(), sa.ForeignKey("recount_item.item_id"), nullable=False),
        sa.Column("device_id", sa.String(), nullable=True),
        sa.Column("counted_qty", QUANTITY, nullable=True),
        sa.Column("corrected_qty", QUANTITY, nullable=True),
        sa.Column("note", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_item_change_document_id", "item_change", ["document_id"])
    op.create_index("ix_item_change_device_id", "item_change", ["device_id"])
    op.create_index("ix_item_change_item_created", "item_change", ["item_id", "created_at"])


def downgrade() -> None:
    op.drop_index("ix_item_change_item_created", table_name="item_change")
    op.drop_index("ix_item_change_device_id", table_name="item_change")
    op.drop_index("ix_item_change_document_id", table_name="item_change")
    op.drop_table("item_change")
    op.drop_index("ix_item_barcode_item_id", table_name="item_barcode")
    op.drop_index("ix_item_barcode_document_id", table_name="item_barcode")
    op.drop_table("item_barcode")
    op.drop_index("ix_recount_item_document_id", table_name="recount_item")
    op.drop_table("recount_item")
    op.drop_index("ix_recount_document_onec_number_created", table_name="recount_document")
    op.drop_index("ix_recount_document_warehouse_code", table_name="recount_document")
    op.drop_index("ix_recount_document_warehouse_id", table_name="recount_document")
    op.drop_index("ix_recount_document_external_id", table_name="recount_document")
    op.drop_table("recount_document")
    op.drop_index("ix_warehouse_warehouse_code", table_name="warehouse")
    op.drop_table("warehouse")
