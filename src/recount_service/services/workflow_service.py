"""Document status transitions: IMPORTED -> REVISED -> EXPORTED."""

from __future__ import annotations

from decimal import Decimal

from sqlmodel import select

from recount_service.config import Settings
from recount_service.db import Store
from recount_service.errors import UnprocessableEntityError
from recount_service.logging import logger
from recount_service.models import DocumentStatus, RecountItem
from recount_service.schemas import AckOut, RevisionOut
from recount_service.services.resolver import bump_version, get_document


def compute_delta(item: RecountItem) -> Decimal:
    """Corrected (or counted, or zero) quantity minus the 1C quantity."""
    if item.corrected_qty is not None:
        effective = item.corrected_qty
    elif item.counted_qty is not None:
        effective = item.counted_qty
    else:
        effective = Decimal(0)
    return effective - item.qty_from_1c


class WorkflowService:
    def __init__(self, store: Store, settings: Settings):
        self.store = store
        self.settings = settings

    def revise(self, key: str) -> RevisionOut:
        """Freeze item deltas and move the document to REVISED.

        One-way gate: only IMPORTED documents can be revised.
        """

        with self.store.transaction(
            self.settings.transactions.update_budget, operation="revise"
        ) as session:
            document = get_document(session, key, for_update=True)
            if document.document_status != DocumentStatus.IMPORTED.value:
                raise UnprocessableEntityError("Document must be in IMPORTED status")

            items = session.exec(
                select(RecountItem).where(RecountItem.document_id == document.document_id)
            ).all()
            for item in items:
                item.delta_qty = compute_delta(item)
                session.add(item)

            document.document_status = DocumentStatus.REVISED.value
            session.add(document)
            version = bump_version(session, document)

            logger.info(
                "Document revised",
                document=str(document.document_id),
                items=len(items),
                version=version,
            )
            return RevisionOut(
                id=document.document_id,
                status=DocumentStatus.REVISED,
                version=version,
            )

    def acknowledge(self, key: str) -> AckOut:
        """Mark the document EXPORTED once 1C confirms it; repeating is a no-op."""

        with self.store.transaction(
            self.settings.transactions.status_budget, operation="acknowledge"
        ) as session:
            document = get_document(session, key, for_update=True)
            status = document.document_status
            if status not in (DocumentStatus.REVISED.value, DocumentStatus.EXPORTED.value):
                raise UnprocessableEntityError("Document must be in REVISED or EXPORTED status")

            if status == DocumentStatus.REVISED.value:
                document.document_status = DocumentStatus.EXPORTED.value
                session.add(document)
                version = bump_version(session, document)
                logger.info("Document exported", document=str(document.document_id), version=version)
            else:
                logger.debug("Document already exported", document=str(document.document_id))
            return AckOut(success=True)


__all__ = ["WorkflowService", "compute_delta"]
