"""Document and item lookup shared by every recount operation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.exc import MultipleResultsFound
from sqlmodel import Session, select

from recount_service.errors import ConflictError, DocumentNotFoundError
from recount_service.logging import logger
from recount_service.models import ItemBarcode, RecountDocument, RecountItem, utc_now
from recount_service.schemas import ItemUpdate


@dataclass(frozen=True, slots=True)
class BySku:
    sku: str


@dataclass(frozen=True, slots=True)
class ByBarcode:
    barcode: str


ItemRef = Union[BySku, ByBarcode]


def item_ref_of(update: ItemUpdate) -> ItemRef:
    if update.sku is not None:
        return BySku(update.sku)
    return ByBarcode(update.barcode)  # type: ignore[arg-type]


def describe_missing(ref: ItemRef) -> str:
    if isinstance(ref, BySku):
        return f"Item with SKU {ref.sku} not found"
    return f"Barcode {ref.barcode} not found"


def _as_uuid(key: str) -> Optional[UUID]:
    try:
        return UUID(key)
    except ValueError:
        return None


def resolve_document_id(session: Session, key: str) -> Optional[UUID]:
    """Map an internal id, an externalId or a 1C number to the internal id.

    The first match wins in that order. A 1C number shared by several
    documents resolves to the most recently created one.
    """

    document_id = _as_uuid(key)
    if document_id is not None:
        found = session.exec(
            select(RecountDocument.document_id).where(RecountDocument.document_id == document_id)
        ).first()
        if found is not None:
            return found

    try:
        found = session.exec(
            select(RecountDocument.document_id).where(RecountDocument.external_id == key)
        ).one_or_none()
    except MultipleResultsFound:
        logger.warning("externalId is not unique, ignoring it for lookup", key=key)
        found = None
    if found is not None:
        return found

    return session.exec(
        select(RecountDocument.document_id)
        .where(RecountDocument.onec_number == key)
        .order_by(RecountDocument.created_at.desc())
    ).first()


def get_document(session: Session, key: str, *, for_update: bool = False) -> RecountDocument:
    document_id = resolve_document_id(session, key)
    if document_id is None:
        raise DocumentNotFoundError(key)
    stmt = select(RecountDocument).where(RecountDocument.document_id == document_id)
    if for_update:
        stmt = stmt.with_for_update()
    document = session.exec(stmt).one_or_none()
    if document is None:
        raise DocumentNotFoundError(key)
    return document


def resolve_item(session: Session, document_id: UUID, ref: ItemRef) -> Optional[RecountItem]:
    """Resolve a sku or barcode reference to the item it addresses."""

    if isinstance(ref, BySku):
        return session.exec(
            select(RecountItem)
            .where(RecountItem.document_id == document_id)
            .where(RecountItem.sku == ref.sku)
        ).one_or_none()

    barcode = session.exec(
        select(ItemBarcode)
        .where(ItemBarcode.document_id == document_id)
        .where(ItemBarcode.barcode == ref.barcode)
    ).one_or_none()
    if barcode is None:
        return None
    return session.get(RecountItem, barcode.item_id)


def bump_version(session: Session, document: RecountDocument, *, check: bool = True) -> int:
    """Increment the document version by one, compare-and-set style.

    The UPDATE only matches while the stored version still equals the one
    this transaction read, so of two writers racing from the same version
    exactly one wins; the loser gets ConflictError. With ``check=False``
    the increment applies on top of whatever version is stored by then.
    """

    session.flush()
    expected = document.document_version
    stmt = update(RecountDocument).where(RecountDocument.document_id == document.document_id)
    if check:
        stmt = stmt.where(RecountDocument.document_version == expected)
    result = session.exec(
        stmt.values(document_version=RecountDocument.document_version + 1, updated_at=utc_now())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        current = session.exec(
            select(RecountDocument.document_version).where(
                RecountDocument.document_id == document.document_id
            )
        ).one()
        logger.info(
            "Lost version race",
            document=str(document.document_id),
            expected=expected,
            current=current,
        )
        raise ConflictError(current, expected)
    session.refresh(document)
    return document.document_version


__all__ = [
    "BySku",
    "ByBarcode",
    "ItemRef",
    "item_ref_of",
    "describe_missing",
    "resolve_document_id",
    "get_document",
    "resolve_item",
    "bump_version",
]
