"""Database models for the stock-recount service."""

from __future__ import annotations

from sqlmodel import SQLModel

from recount_service.models.recount import (
    DocumentStatus,
    ItemBarcode,
    ItemChange,
    RecountDocument,
    RecountItem,
    Warehouse,
    ensure_utc,
    utc_now,
)

metadata = SQLModel.metadata

__all__ = [
    "metadata",
    "DocumentStatus",
    "Warehouse",
    "RecountDocument",
    "RecountItem",
    "ItemBarcode",
    "ItemChange",
    "ensure_utc",
    "utc_now",
]
