"""Aggregation of final quantities for the 1C export."""

from __future__ import annotations

from decimal import Decimal
from typing import List

from recount_service.config import Settings
from recount_service.db import Store
from recount_service.errors import UnprocessableEntityError
from recount_service.logging import logger
from recount_service.models import DocumentStatus, RecountItem
from recount_service.schemas import ExportDocumentOut, ExportItemOut, ExportWarehouseOut
from recount_service.services.changelog import ReconciledItem, load_changes, reconcile_item
from recount_service.services.document_service import load_barcodes, load_items
from recount_service.services.resolver import get_document

_EXPORTABLE = (DocumentStatus.REVISED.value, DocumentStatus.EXPORTED.value)


def export_quantities(item: RecountItem, reconciled: ReconciledItem) -> tuple[Decimal, Decimal]:
    """Exported (corrected quantity, delta) of one item.

    Items with logged quantities use the change-log totals and a fresh
    delta; otherwise the row values and the delta frozen at revision apply.
    """

    if reconciled.from_log:
        exported = reconciled.effective_qty
        if exported is None:  # pragma: no cover - from_log implies a logged quantity
            exported = Decimal(0)
        return exported, exported - item.qty_from_1c

    if item.corrected_qty is not None:
        exported = item.corrected_qty
    elif item.counted_qty is not None:
        exported = item.counted_qty
    else:
        exported = Decimal(0)
    delta = item.delta_qty if item.delta_qty is not None else exported - item.qty_from_1c
    return exported, delta


class ExportService:
    """Read-only view of a document in the shape 1C consumes."""

    def __init__(self, store: Store, settings: Settings):
        self.store = store
        self.settings = settings

    def export_document(self, key: str) -> ExportDocumentOut:
        with self.store.session() as session:
            document = get_document(session, key)
            if (
                self.settings.recount.export_requires_revision
                and document.document_status not in _EXPORTABLE
            ):
                raise UnprocessableEntityError("Document must be in REVISED or EXPORTED status")

            barcodes = load_barcodes(session, document.document_id)
            changes = load_changes(session, document.document_id)
            items: List[ExportItemOut] = []
            logged = 0
            for item in load_items(session, document.document_id):
                reconciled = reconcile_item(item, changes.get(item.item_id, []))
                logged += reconciled.from_log
                corrected, delta = export_quantities(item, reconciled)
                items.append(
                    ExportItemOut(
                        sku=item.sku,
                        unit=item.unit_of_measure,
                        corrected_qty=corrected,
                        delta_qty=delta,
                        barcodes=[b.barcode for b in barcodes.get(item.item_id, [])],
                    )
                )

            logger.info(
                "Document exported for 1C",
                document=str(document.document_id),
                items=len(items),
                from_change_log=logged,
            )
            return ExportDocumentOut(
                external_id=document.external_id,
                warehouse=ExportWarehouseOut(code=document.warehouse_code),
                items=items,
            )


__all__ = ["ExportService", "export_quantities"]
