"""Whole-document optimistic item updates (v1)."""

from __future__ import annotations

from recount_service.config import Settings
from recount_service.db import Store
from recount_service.errors import ConflictError, NotFoundError
from recount_service.logging import logger
from recount_service.schemas import DocumentOut, UpdateItemsRequest
from recount_service.services.document_service import build_document_out
from recount_service.services.resolver import (
    bump_version,
    describe_missing,
    get_document,
    item_ref_of,
    resolve_item,
)


class UpdateService:
    """Applies scanner counts directly to item rows under a version check.

    Either every item update and the version bump commit, or nothing does.
    """

    def __init__(self, store: Store, settings: Settings):
        self.store = store
        self.settings = settings

    def update_items(self, key: str, request: UpdateItemsRequest) -> DocumentOut:
        with self.store.transaction(
            self.settings.transactions.update_budget, operation="update_items"
        ) as session:
            document = get_document(session, key)
            if document.document_version != request.version:
                logger.info(
                    "Rejecting stale update",
                    document=str(document.document_id),
                    stored=document.document_version,
                    submitted=request.version,
                )
                raise ConflictError(document.document_version, request.version)

            # taking the version first serialises concurrent writers on the document row
            bump_version(session, document)

            for update in request.items:
                ref = item_ref_of(update)
                item = resolve_item(session, document.document_id, ref)
                if item is None:
                    raise NotFoundError(describe_missing(ref))
                for field, value in update.present_fields().items():
                    setattr(item, field, value)
                session.add(item)
            session.flush()

            logger.info(
                "Items updated",
                document=str(document.document_id),
                items=len(request.items),
                version=document.document_version,
            )
            return build_document_out(session, document)


__all__ = ["UpdateService"]
