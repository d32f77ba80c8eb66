"""Replay of the per-device item change log.

Each scanner counts its own share of a SKU, so the authoritative quantity
of an item is the sum, across devices, of each device's latest value.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional
from uuid import UUID

from sqlmodel import Session, select

from recount_service.models import ItemChange, RecountItem, ensure_utc


@dataclass(frozen=True, slots=True)
class ReconciledItem:
    counted_qty: Optional[Decimal]
    corrected_qty: Optional[Decimal]
    from_log: bool
    last_modified: datetime
    modified_by: Optional[str]

    @property
    def effective_qty(self) -> Optional[Decimal]:
        if self.corrected_qty is not None:
            return self.corrected_qty
        return self.counted_qty


def change_order(change: ItemChange) -> tuple[datetime, int]:
    return ensure_utc(change.created_at), change.item_change_id or 0


def load_changes(session: Session, document_id: UUID) -> dict[UUID, list[ItemChange]]:
    """Change log of a document grouped by item, oldest first."""

    changes = session.exec(
        select(ItemChange)
        .where(ItemChange.document_id == document_id)
        .order_by(ItemChange.created_at, ItemChange.item_change_id)
    ).all()
    grouped: dict[UUID, list[ItemChange]] = defaultdict(list)
    for change in changes:
        grouped[change.item_id].append(change)
    return dict(grouped)


def _latest_per_device(changes: Iterable[ItemChange], field: str) -> dict[Optional[str], Decimal]:
    latest: dict[Optional[str], Decimal] = {}
    for change in changes:
        value = getattr(change, field)
        if value is not None:
            latest[change.device_id] = value
    return latest


def _total(values: Iterable[Decimal]) -> Optional[Decimal]:
    values = list(values)
    if not values:
        return None
    return sum(values, Decimal(0))


def reconcile_item(item: RecountItem, changes: list[ItemChange]) -> ReconciledItem:
    row_modified = ensure_utc(item.updated_at)
    if not changes:
        return ReconciledItem(
            counted_qty=item.counted_qty,
            corrected_qty=item.corrected_qty,
            from_log=False,
            last_modified=row_modified,
            modified_by=None,
        )

    ordered = sorted(changes, key=change_order)
    newest = ordered[-1]
    last_modified = max(row_modified, ensure_utc(newest.created_at))
    counted = _total(_latest_per_device(ordered, "counted_qty").values())
    corrected = _total(_latest_per_device(ordered, "corrected_qty").values())

    if counted is None and corrected is None:
        # only notes were logged
        return ReconciledItem(
            counted_qty=item.counted_qty,
            corrected_qty=item.corrected_qty,
            from_log=False,
            last_modified=last_modified,
            modified_by=newest.device_id,
        )
    return ReconciledItem(
        counted_qty=counted,
        corrected_qty=corrected,
        from_log=True,
        last_modified=last_modified,
        modified_by=newest.device_id,
    )


__all__ = ["ReconciledItem", "change_order", "load_changes", "reconcile_item"]
