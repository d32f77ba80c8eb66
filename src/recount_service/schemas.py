"""Request and response shapes of the recount API.

JSON uses the camelCase names the 1C exchange and the scanners already
speak; quantities travel as decimal strings.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, field_validator, model_validator
from pydantic.alias_generators import to_camel

from recount_service.models import DocumentStatus
from recount_service.models.recount import QUANTITY_PRECISION, QUANTITY_SCALE


def format_quantity(value: Decimal) -> str:
    """Render a quantity without exponent or trailing zeros ("12.000" -> "12")."""
    if value == 0:
        return "0"
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


Quantity = Annotated[Decimal, PlainSerializer(format_quantity, return_type=str)]

# must fit the Numeric(18, 3) quantity columns
QuantityIn = Annotated[Decimal, Field(max_digits=QUANTITY_PRECISION, decimal_places=QUANTITY_SCALE)]


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Requests


class WarehousePayload(ApiModel):
    code: str = Field(min_length=1)
    name: str = Field(min_length=1)


class ImportItemPayload(ApiModel):
    sku: str = Field(min_length=1)
    name: str = Field(min_length=1)
    unit: str = Field(min_length=1)
    qty_from_1c: QuantityIn = Field(alias="qtyFrom1C")
    barcodes: list[Annotated[str, Field(min_length=1)]]


class ImportPayload(ApiModel):
    external_id: str = Field(min_length=1)
    onec_number: str = Field(min_length=1)
    onec_date: datetime
    warehouse: WarehousePayload
    items: list[ImportItemPayload]

    @field_validator("onec_date", mode="before")
    @classmethod
    def _accept_plain_dates(cls, value: Any) -> Any:
        if isinstance(value, str) and len(value) == 10:
            return f"{value}T00:00:00+00:00"
        return value

    @model_validator(mode="after")
    def _check_unique_keys(self) -> "ImportPayload":
        seen_skus: set[str] = set()
        seen_barcodes: set[str] = set()
        for item in self.items:
            if item.sku in seen_skus:
                raise ValueError(f"Duplicate sku {item.sku}")
            seen_skus.add(item.sku)
            for barcode in item.barcodes:
                if barcode in seen_barcodes:
                    raise ValueError(f"Duplicate barcode {barcode}")
                seen_barcodes.add(barcode)
        return self


class ItemUpdate(ApiModel):
    sku: Optional[str] = Field(default=None, min_length=1)
    barcode: Optional[str] = Field(default=None, min_length=1)
    counted_qty: Optional[QuantityIn] = None
    corrected_qty: Optional[QuantityIn] = None
    note: Optional[str] = None

    @model_validator(mode="after")
    def _check_target(self) -> "ItemUpdate":
        if (self.sku is None) == (self.barcode is None):
            raise ValueError("Exactly one of sku or barcode must be provided for each item")
        return self

    def present_fields(self) -> dict[str, Any]:
        """Fields the caller sent, explicit nulls included."""
        return {
            name: getattr(self, name)
            for name in ("counted_qty", "corrected_qty", "note")
            if name in self.model_fields_set
        }


class MergeItemUpdate(ItemUpdate):
    last_known_modified: Optional[datetime] = None

    def logged_fields(self) -> dict[str, Any]:
        """Fields that carry a value; a null means "not changed" in the change log."""
        return {name: value for name, value in self.present_fields().items() if value is not None}


class UpdateItemsRequest(ApiModel):
    version: int = Field(ge=1, strict=True)
    items: list[ItemUpdate]


class MergeItemsRequest(ApiModel):
    version: int = Field(ge=1, strict=True)
    device_id: Optional[str] = None
    items: list[MergeItemUpdate]


# Responses


class ErrorOut(ApiModel):
    code: str
    message: str


class WarehouseOut(ApiModel):
    code: str
    name: str


class BarcodeOut(ApiModel):
    barcode: str
    is_primary: bool


class ItemSummaryOut(ApiModel):
    id: UUID
    sku: str
    name: str
    unit: str
    qty_from_1c: Quantity = Field(alias="qtyFrom1C")
    counted_qty: Optional[Quantity] = None
    corrected_qty: Optional[Quantity] = None
    delta_qty: Optional[Quantity] = None
    note: Optional[str] = None
    updated_at: datetime


class ItemOut(ItemSummaryOut):
    barcodes: list[BarcodeOut]


class ItemWithTimestampOut(ItemOut):
    last_modified: datetime


class DocumentHeaderOut(ApiModel):
    id: UUID
    external_id: str
    onec_number: str
    onec_date: datetime
    warehouse_code: str
    status: DocumentStatus
    version: int
    created_at: datetime
    updated_at: datetime
    warehouse: WarehouseOut


class DocumentOut(DocumentHeaderOut):
    items: list[ItemOut]


class DocumentSummaryOut(DocumentHeaderOut):
    items: list[ItemSummaryOut]


class DocumentWithTimestampsOut(DocumentHeaderOut):
    items: list[ItemWithTimestampOut]


class FieldConflict(ApiModel):
    sku: str
    field: str
    your_value: str
    current_value: str
    last_modified: datetime
    modified_by: Optional[str] = None


class MergeResultOut(ApiModel):
    success: bool = True
    version: int
    applied_changes: int
    conflicts: list[FieldConflict]


class RevisionOut(ApiModel):
    id: UUID
    status: DocumentStatus
    version: int


class AckOut(ApiModel):
    success: bool = True


class ExportWarehouseOut(ApiModel):
    code: str


class ExportItemOut(ApiModel):
    sku: str
    unit: str
    corrected_qty: Quantity
    delta_qty: Quantity
    barcodes: list[str]


class ExportDocumentOut(ApiModel):
    external_id: str
    warehouse: ExportWarehouseOut
    items: list[ExportItemOut]
