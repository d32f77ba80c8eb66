"""Read side of recount documents."""

from __future__ import annotations

from collections import defaultdict
from typing import List
from uuid import UUID

from sqlmodel import Session, select

from recount_service.db import Store
from recount_service.errors import NotFoundError
from recount_service.models import (
    DocumentStatus,
    ItemBarcode,
    RecountDocument,
    RecountItem,
    Warehouse,
    ensure_utc,
)
from recount_service.schemas import (
    BarcodeOut,
    DocumentOut,
    DocumentSummaryOut,
    DocumentWithTimestampsOut,
    ItemOut,
    ItemSummaryOut,
    ItemWithTimestampOut,
    WarehouseOut,
)
from recount_service.services.changelog import load_changes, reconcile_item
from recount_service.services.resolver import get_document


def load_items(session: Session, document_id: UUID) -> List[RecountItem]:
    return list(
        session.exec(
            select(RecountItem)
            .where(RecountItem.document_id == document_id)
            .order_by(RecountItem.created_at, RecountItem.sku)
        ).all()
    )


def load_barcodes(session: Session, document_id: UUID) -> dict[UUID, List[ItemBarcode]]:
    barcodes = session.exec(
        select(ItemBarcode)
        .where(ItemBarcode.document_id == document_id)
        .order_by(ItemBarcode.position)
    ).all()
    grouped: dict[UUID, List[ItemBarcode]] = defaultdict(list)
    for barcode in barcodes:
        grouped[barcode.item_id].append(barcode)
    return grouped


def _warehouse_out(session: Session, document: RecountDocument) -> WarehouseOut:
    warehouse = session.get(Warehouse, document.warehouse_id)
    if warehouse is None:  # pragma: no cover - guarded by the foreign key
        raise NotFoundError(f"Warehouse {document.warehouse_code} not found")
    return WarehouseOut(code=warehouse.warehouse_code, name=warehouse.warehouse_name)


def _header(session: Session, document: RecountDocument) -> dict:
    return {
        "id": document.document_id,
        "external_id": document.external_id,
        "onec_number": document.onec_number,
        "onec_date": ensure_utc(document.onec_date),
        "warehouse_code": document.warehouse_code,
        "status": DocumentStatus(document.document_status),
        "version": document.document_version,
        "created_at": ensure_utc(document.created_at),
        "updated_at": ensure_utc(document.updated_at),
        "warehouse": _warehouse_out(session, document),
    }


def _item_fields(item: RecountItem) -> dict:
    return {
        "id": item.item_id,
        "sku": item.sku,
        "name": item.item_name,
        "unit": item.unit_of_measure,
        "qty_from_1c": item.qty_from_1c,
        "counted_qty": item.counted_qty,
        "corrected_qty": item.corrected_qty,
        "delta_qty": item.delta_qty,
        "note": item.note,
        "updated_at": ensure_utc(item.updated_at),
    }


def _barcodes_out(barcodes: List[ItemBarcode]) -> List[BarcodeOut]:
    return [BarcodeOut(barcode=b.barcode, is_primary=b.is_primary) for b in barcodes]


def build_document_out(session: Session, document: RecountDocument) -> DocumentOut:
    """Hydrate a document with its warehouse, items and barcodes."""

    barcodes = load_barcodes(session, document.document_id)
    items = [
        ItemOut(**_item_fields(item), barcodes=_barcodes_out(barcodes.get(item.item_id, [])))
        for item in load_items(session, document.document_id)
    ]
    return DocumentOut(**_header(session, document), items=items)


class DocumentService:
    """Queries over warehouses and recount documents."""

    def __init__(self, store: Store):
        self.store = store

    def list_warehouses(self) -> List[WarehouseOut]:
        with self.store.session() as session:
            warehouses = session.exec(select(Warehouse).order_by(Warehouse.warehouse_code)).all()
            return [WarehouseOut(code=w.warehouse_code, name=w.warehouse_name) for w in warehouses]

    def get_document(self, key: str) -> DocumentOut:
        with self.store.session() as session:
            return build_document_out(session, get_document(session, key))

    def list_documents_by_warehouse(self, warehouse_code: str) -> List[DocumentSummaryOut]:
        """Documents of a warehouse, newest first, without barcodes."""

        with self.store.session() as session:
            documents = session.exec(
                select(RecountDocument)
                .where(RecountDocument.warehouse_code == warehouse_code)
                .order_by(RecountDocument.created_at.desc())
            ).all()
            return [
                DocumentSummaryOut(
                    **_header(session, document),
                    items=[
                        ItemSummaryOut(**_item_fields(item))
                        for item in load_items(session, document.document_id)
                    ],
                )
                for document in documents
            ]

    def get_document_with_timestamps(self, key: str) -> DocumentWithTimestampsOut:
        """Document whose items carry ``lastModified`` for v2 conflict detection.

        ``lastModified`` is the later of the row's own update time and the
        newest change-log entry of the item.
        """

        with self.store.session() as session:
            document = get_document(session, key)
            barcodes = load_barcodes(session, document.document_id)
            changes = load_changes(session, document.document_id)
            items = []
            for item in load_items(session, document.document_id):
                reconciled = reconcile_item(item, changes.get(item.item_id, []))
                items.append(
                    ItemWithTimestampOut(
                        **_item_fields(item),
                        barcodes=_barcodes_out(barcodes.get(item.item_id, [])),
                        last_modified=reconciled.last_modified,
                    )
                )
            return DocumentWithTimestampsOut(**_header(session, document), items=items)


__all__ = ["DocumentService", "build_document_out", "load_items", "load_barcodes"]
