"""Concurrent multi-device item updates (v2).

Instead of overwriting item rows, every accepted edit is appended to the
item change log tagged with the device that sent it. Conflicting edits are
reported back to the scanner but never rejected; the export replays the
log to settle the final quantities.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from recount_service.config import Settings
from recount_service.db import Store
from recount_service.errors import ConflictError
from recount_service.logging import logger
from recount_service.models import ItemChange, RecountItem, ensure_utc
from recount_service.schemas import (
    FieldConflict,
    MergeItemsRequest,
    MergeItemUpdate,
    MergeResultOut,
    format_quantity,
)
from recount_service.services.changelog import ReconciledItem, load_changes, reconcile_item
from recount_service.services.resolver import bump_version, get_document, item_ref_of, resolve_item

_CONFLICT_FIELDS = ("counted_qty", "corrected_qty")
_FIELD_NAMES = {"counted_qty": "countedQty", "corrected_qty": "correctedQty"}


def _is_stale(last_known: Optional[datetime], current: ReconciledItem) -> bool:
    if last_known is None:
        return False
    return current.last_modified > ensure_utc(last_known)


def _field_conflicts(item: RecountItem, update: MergeItemUpdate, current: ReconciledItem) -> List[FieldConflict]:
    conflicts = []
    for field in _CONFLICT_FIELDS:
        your_value = getattr(update, field)
        if your_value is None:
            continue
        current_value = getattr(current, field)
        conflicts.append(
            FieldConflict(
                sku=item.sku,
                field=_FIELD_NAMES[field],
                your_value=format_quantity(your_value),
                current_value=format_quantity(current_value) if current_value is not None else "",
                last_modified=current.last_modified,
                modified_by=current.modified_by,
            )
        )
    return conflicts


class MergeService:
    """Appends scanner edits to the change log and reports conflicts."""

    def __init__(self, store: Store, settings: Settings):
        self.store = store
        self.settings = settings

    def merge_items(self, key: str, request: MergeItemsRequest) -> MergeResultOut:
        with self.store.transaction(
            self.settings.transactions.update_budget, operation="merge_items"
        ) as session:
            document = get_document(session, key)
            strict = self.settings.recount.merge_version_policy == "strict"
            if document.document_version != request.version:
                if strict:
                    logger.info(
                        "Rejecting stale merge",
                        document=str(document.document_id),
                        device=request.device_id,
                        stored=document.document_version,
                        submitted=request.version,
                    )
                    raise ConflictError(document.document_version, request.version)
                logger.warning(
                    "Accepting merge from stale version",
                    document=str(document.document_id),
                    device=request.device_id,
                    stored=document.document_version,
                    submitted=request.version,
                )

            history = load_changes(session, document.document_id)
            conflicts: List[FieldConflict] = []
            applied_changes = 0

            for update in request.items:
                item = resolve_item(session, document.document_id, item_ref_of(update))
                if item is None:
                    # stale scanner caches may still reference removed items
                    logger.debug(
                        "Skipping unknown item",
                        document=str(document.document_id),
                        sku=update.sku,
                        barcode=update.barcode,
                    )
                    continue

                fields = update.logged_fields()
                if not fields:
                    continue

                item_history = history.setdefault(item.item_id, [])
                current = reconcile_item(item, item_history)
                if _is_stale(update.last_known_modified, current):
                    conflicts.extend(_field_conflicts(item, update, current))

                change = ItemChange(
                    document_id=document.document_id,
                    item_id=item.item_id,
                    device_id=request.device_id,
                    **fields,
                )
                session.add(change)
                session.flush()
                item_history.append(change)
                applied_changes += 1

            version = bump_version(session, document, check=strict)

            if conflicts:
                logger.warning(
                    "Merge applied with conflicts",
                    document=str(document.document_id),
                    device=request.device_id,
                    applied=applied_changes,
                    conflicts=len(conflicts),
                )
            else:
                logger.info(
                    "Merge applied",
                    document=str(document.document_id),
                    device=request.device_id,
                    applied=applied_changes,
                )
            return MergeResultOut(
                success=True,
                version=version,
                applied_changes=applied_changes,
                conflicts=conflicts,
            )


__all__ = ["MergeService"]
