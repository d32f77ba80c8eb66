"""Idempotent import of recount documents sent by 1C."""

from __future__ import annotations

import time
from typing import List, Tuple, TypeVar

from sqlalchemy import delete, or_
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, SQLModel, select
from sqlmodel.sql.expression import SelectOfScalar

from recount_service.config import Settings
from recount_service.db import Store
from recount_service.errors import RecountError
from recount_service.logging import logger
from recount_service.models import (
    DocumentStatus,
    ItemBarcode,
    RecountDocument,
    RecountItem,
    Warehouse,
)
from recount_service.schemas import DocumentOut, ImportItemPayload, ImportPayload, WarehousePayload
from recount_service.services.document_service import build_document_out

ModelT = TypeVar("ModelT", bound=SQLModel)


def create_or_fetch(session: Session, instance: ModelT, lookup: SelectOfScalar[ModelT]) -> Tuple[ModelT, bool]:
    """Insert ``instance`` unless a concurrent writer already created the same natural key.

    Returns the row that holds the key and whether this call created it.
    """

    try:
        with session.begin_nested():
            session.add(instance)
        return instance, True
    except IntegrityError:
        existing = session.exec(lookup).one()
        return existing, False


class ImportService:
    """Upserts a document with its items and barcodes from a 1C payload."""

    def __init__(self, store: Store, settings: Settings):
        self.store = store
        self.settings = settings

    def import_document(self, payload: ImportPayload) -> DocumentOut:
        started = time.perf_counter()
        logger.info(
            "Starting import",
            external_id=payload.external_id,
            items=len(payload.items),
        )
        try:
            with self.store.transaction(
                self.settings.transactions.import_budget, operation="import"
            ) as session:
                warehouse = self._upsert_warehouse(session, payload.warehouse)
                document = self._upsert_document(session, payload, warehouse)
                items = self._upsert_items(session, document, payload.items)
                self._replace_barcodes(session, document, items, payload.items)
                result = build_document_out(session, document)
        except RecountError as exc:
            logger.warning(
                "Import rejected",
                external_id=payload.external_id,
                code=exc.code,
                elapsed_ms=self._elapsed_ms(started),
            )
            raise
        except Exception:
            logger.error(
                "Import failed",
                external_id=payload.external_id,
                elapsed_ms=self._elapsed_ms(started),
            )
            raise

        elapsed_ms = self._elapsed_ms(started)
        if elapsed_ms >= self.settings.recount.import_slow_threshold_ms:
            logger.warning(
                "Slow import",
                external_id=payload.external_id,
                items=len(payload.items),
                elapsed_ms=elapsed_ms,
                threshold_ms=self.settings.recount.import_slow_threshold_ms,
            )
        else:
            logger.info("Import completed", external_id=payload.external_id, elapsed_ms=elapsed_ms)
        return result

    @staticmethod
    def _elapsed_ms(started: float) -> int:
        return round((time.perf_counter() - started) * 1000)

    def _upsert_warehouse(self, session: Session, data: WarehousePayload) -> Warehouse:
        lookup = select(Warehouse).where(Warehouse.warehouse_code == data.code)
        warehouse = session.exec(lookup).one_or_none()
        if warehouse is None:
            warehouse, created = create_or_fetch(
                session,
                Warehouse(warehouse_code=data.code, warehouse_name=data.name),
                lookup,
            )
            if created:
                return warehouse
        if warehouse.warehouse_name != data.name:
            warehouse.warehouse_name = data.name
            session.add(warehouse)
        return warehouse

    def _upsert_document(self, session: Session, payload: ImportPayload, warehouse: Warehouse) -> RecountDocument:
        """Create the document on first import; later imports refresh 1C metadata only.

        Status and version are left alone on re-import so that in-flight
        recounts and the scanners' optimistic locks survive.
        """

        lookup = select(RecountDocument).where(RecountDocument.external_id == payload.external_id)
        document = session.exec(lookup).one_or_none()
        if document is None:
            document, created = create_or_fetch(
                session,
                RecountDocument(
                    external_id=payload.external_id,
                    onec_number=payload.onec_number,
                    onec_date=payload.onec_date,
                    warehouse_id=warehouse.warehouse_id,
                    warehouse_code=warehouse.warehouse_code,
                    document_status=DocumentStatus.IMPORTED.value,
                    document_version=1,
                ),
                lookup,
            )
            if created:
                logger.info("Document created", external_id=payload.external_id)
                return document

        document.onec_number = payload.onec_number
        document.onec_date = payload.onec_date
        document.warehouse_id = warehouse.warehouse_id
        document.warehouse_code = warehouse.warehouse_code
        session.add(document)
        logger.info(
            "Document re-imported",
            external_id=payload.external_id,
            status=document.document_status,
            version=document.document_version,
        )
        return document

    def _upsert_items(
        self,
        session: Session,
        document: RecountDocument,
        items: List[ImportItemPayload],
    ) -> dict[str, RecountItem]:
        """Create missing items and refresh 1C fields of existing ones.

        Counted, corrected and delta quantities are never touched here.
        """

        existing = {
            item.sku: item
            for item in session.exec(
                select(RecountItem).where(RecountItem.document_id == document.document_id)
            ).all()
        }

        new_items: List[RecountItem] = []
        for data in items:
            item = existing.get(data.sku)
            if item is None:
                new_items.append(self._new_item(document, data))
            else:
                self._refresh_item(session, item, data)

        if new_items:
            try:
                with session.begin_nested():
                    session.add_all(new_items)
                for item in new_items:
                    existing[item.sku] = item
            except IntegrityError:
                logger.info(
                    "Items were created concurrently, falling back to per-item upsert",
                    external_id=document.external_id,
                )
                by_sku = {data.sku: data for data in items}
                for pending in new_items:
                    data = by_sku[pending.sku]
                    item, created = create_or_fetch(
                        session,
                        self._new_item(document, data),
                        select(RecountItem)
                        .where(RecountItem.document_id == document.document_id)
                        .where(RecountItem.sku == data.sku),
                    )
                    if not created:
                        self._refresh_item(session, item, data)
                    existing[item.sku] = item
        return existing

    @staticmethod
    def _new_item(document: RecountDocument, data: ImportItemPayload) -> RecountItem:
        return RecountItem(
            document_id=document.document_id,
            sku=data.sku,
            item_name=data.name,
            unit_of_measure=data.unit,
            qty_from_1c=data.qty_from_1c,
        )

    @staticmethod
    def _refresh_item(session: Session, item: RecountItem, data: ImportItemPayload) -> None:
        item.item_name = data.name
        item.unit_of_measure = data.unit
        item.qty_from_1c = data.qty_from_1c
        session.add(item)

    def _replace_barcodes(
        self,
        session: Session,
        document: RecountDocument,
        items: dict[str, RecountItem],
        payload_items: List[ImportItemPayload],
    ) -> None:
        """Replace the barcode set of every imported item; index 0 becomes primary.

        A barcode that 1C now lists under another item moves to that item.
        """

        item_ids = [items[data.sku].item_id for data in payload_items]
        submitted = [barcode for data in payload_items for barcode in data.barcodes]
        if not item_ids:
            return

        for attempt in (1, 2):
            try:
                with session.begin_nested():
                    conditions = [ItemBarcode.item_id.in_(item_ids)]
                    if submitted:
                        conditions.append(ItemBarcode.barcode.in_(submitted))
                    session.exec(
                        delete(ItemBarcode)
                        .where(ItemBarcode.document_id == document.document_id)
                        .where(or_(*conditions))
                        .execution_options(synchronize_session=False)
                    )
                    session.add_all(
                        ItemBarcode(
                            document_id=document.document_id,
                            item_id=items[data.sku].item_id,
                            barcode=barcode,
                            is_primary=index == 0,
                            position=index,
                        )
                        for data in payload_items
                        for index, barcode in enumerate(data.barcodes)
                    )
                return
            except IntegrityError:
                if attempt == 2:
                    raise
                logger.info(
                    "Barcodes changed concurrently, replacing again",
                    external_id=document.external_id,
                )


__all__ = ["ImportService", "create_or_fetch"]
