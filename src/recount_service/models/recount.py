"""Stock-recount database models."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, Column, DateTime, Index, Numeric, UniqueConstraint
from sqlmodel import Field, SQLModel

QUANTITY_PRECISION = 18
QUANTITY_SCALE = 3


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes read back from backends without tz support."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def uuid_field() -> Field:
    """Generate UUID field with default value."""
    return Field(default_factory=uuid4, primary_key=True)


def created_at_field() -> Field:
    """Generate created_at timestamp field."""
    return Field(
        default_factory=utc_now,
        sa_column=Column(
            DateTime(timezone=True),
            nullable=False,
            default=utc_now,
        ),
    )


def updated_at_field() -> Field:
    """Generate updated_at timestamp field with auto-update."""
    return Field(
        default_factory=utc_now,
        sa_column=Column(
            DateTime(timezone=True),
            nullable=False,
            default=utc_now,
            onupdate=utc_now,
        ),
    )


def quantity_field(nullable: bool = True) -> Field:
    return Field(
        default=None,
        sa_column=Column(Numeric(QUANTITY_PRECISION, QUANTITY_SCALE), nullable=nullable),
    )


class DocumentStatus(str, Enum):
    IMPORTED = "IMPORTED"
    REVISED = "REVISED"
    EXPORTED = "EXPORTED"


class Warehouse(SQLModel, table=True):
    """Warehouse known to the ERP, keyed by its code."""

    __tablename__ = "warehouse"

    warehouse_id: UUID = uuid_field()
    warehouse_code: str = Field(unique=True, index=True)
    warehouse_name: str
    created_at: datetime = created_at_field()
    updated_at: datetime = updated_at_field()


class RecountDocument(SQLModel, table=True):
    """Recount document imported from 1C.

    ``document_version`` is the optimistic-lock token handed to scanners.
    """

    __tablename__ = "recount_document"
    __table_args__ = (
        CheckConstraint(
            "document_status IN ('IMPORTED', 'REVISED', 'EXPORTED')",
            name="ck_recount_document_status",
        ),
        CheckConstraint("document_version >= 1", name="ck_recount_document_version"),
        Index("ix_recount_document_onec_number_created", "onec_number", "created_at"),
    )

    document_id: UUID = uuid_field()
    external_id: str = Field(unique=True, index=True)
    onec_number: str
    onec_date: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    warehouse_id: UUID = Field(foreign_key="warehouse.warehouse_id", index=True)
    warehouse_code: str = Field(index=True)
    document_status: str = Field(default=DocumentStatus.IMPORTED.value)
    document_version: int = Field(default=1)
    created_at: datetime = created_at_field()
    updated_at: datetime = updated_at_field()


class RecountItem(SQLModel, table=True):
    """Line of a recount document: ERP quantity against counted quantities."""

    __tablename__ = "recount_item"
    __table_args__ = (
        UniqueConstraint("document_id", "sku", name="uq_recount_item_document_sku"),
    )

    item_id: UUID = uuid_field()
    document_id: UUID = Field(foreign_key="recount_document.document_id", index=True)
    sku: str
    item_name: str
    unit_of_measure: str
    qty_from_1c: Decimal = Field(
        sa_column=Column(Numeric(QUANTITY_PRECISION, QUANTITY_SCALE), nullable=False)
    )
    counted_qty: Optional[Decimal] = quantity_field()
    corrected_qty: Optional[Decimal] = quantity_field()
    delta_qty: Optional[Decimal] = quantity_field()
    note: Optional[str] = None
    created_at: datetime = created_at_field()
    updated_at: datetime = updated_at_field()


class ItemBarcode(SQLModel, table=True):
    """Barcode of an item; the first one submitted by 1C is primary."""

    __tablename__ = "item_barcode"
    __table_args__ = (
        UniqueConstraint("document_id", "barcode", name="uq_item_barcode_document_barcode"),
    )

    item_barcode_id: UUID = uuid_field()
    document_id: UUID = Field(foreign_key="recount_document.document_id", index=True)
    item_id: UUID = Field(foreign_key="recount_item.item_id", index=True)
    barcode: str
    is_primary: bool = Field(default=False)
    position: int = Field(default=0)


class ItemChange(SQLModel, table=True):
    """Append-only record of one device's field edits to one item.

    Rows are never updated or deleted. ``item_change_id`` follows insertion
    order and breaks ties between rows sharing ``created_at``.
    """

    __tablename__ = "item_change"
    __table_args__ = (
        Index("ix_item_change_item_created", "item_id", "created_at"),
    )

    item_change_id: Optional[int] = Field(default=None, primary_key=True)
    document_id: UUID = Field(foreign_key="recount_document.document_id", index=True)
    item_id: UUID = Field(foreign_key="recount_item.item_id")
    device_id: Optional[str] = Field(default=None, index=True)
    counted_qty: Optional[Decimal] = quantity_field()
    corrected_qty: Optional[Decimal] = quantity_field()
    note: Optional[str] = None
    created_at: datetime = created_at_field()


__all__ = [
    "DocumentStatus",
    "Warehouse",
    "RecountDocument",
    "RecountItem",
    "ItemBarcode",
    "ItemChange",
    "utc_now",
    "ensure_utc",
]
