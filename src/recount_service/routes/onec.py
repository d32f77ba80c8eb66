"""Endpoints called by the 1C ERP."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from recount_service.dependencies import get_export_service, get_import_service, get_workflow_service
from recount_service.schemas import AckOut, DocumentOut, ErrorOut, ExportDocumentOut, ImportPayload
from recount_service.services import ExportService, ImportService, WorkflowService

router = APIRouter(prefix="/onec/inventory-documents", tags=["1c"])


@router.post(
    "/import",
    response_model=DocumentOut,
    summary="Import or re-import a recount document",
    responses={400: {"model": ErrorOut}},
)
def import_document(
    payload: ImportPayload,
    service: ImportService = Depends(get_import_service),
) -> DocumentOut:
    """Upsert the document, its items and barcodes; safe to retry."""
    return service.import_document(payload)


@router.get(
    "/{key}/export",
    response_model=ExportDocumentOut,
    summary="Final quantities for 1C",
    responses={404: {"model": ErrorOut}, 422: {"model": ErrorOut}},
)
def export_document(
    key: str,
    service: ExportService = Depends(get_export_service),
) -> ExportDocumentOut:
    return service.export_document(key)


@router.post(
    "/{key}/ack",
    response_model=AckOut,
    summary="Confirm that 1C accepted the export",
    responses={404: {"model": ErrorOut}, 422: {"model": ErrorOut}},
)
def acknowledge_export(
    key: str,
    service: WorkflowService = Depends(get_workflow_service),
) -> AckOut:
    return service.acknowledge(key)


__all__ = ["router"]
