"""Endpoints used by scanners and supervisors."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Response, status

from recount_service.dependencies import (
    get_document_service,
    get_merge_service,
    get_update_service,
    get_workflow_service,
)
from recount_service.schemas import (
    DocumentOut,
    DocumentSummaryOut,
    DocumentWithTimestampsOut,
    ErrorOut,
    MergeItemsRequest,
    MergeResultOut,
    RevisionOut,
    UpdateItemsRequest,
)
from recount_service.services import DocumentService, MergeService, UpdateService, WorkflowService

router = APIRouter(prefix="/inventory-documents", tags=["documents"])


@router.get(
    "/warehouse/{warehouse_code}",
    response_model=List[DocumentSummaryOut],
    summary="Documents of a warehouse",
)
def list_documents_by_warehouse(
    warehouse_code: str,
    service: DocumentService = Depends(get_document_service),
) -> List[DocumentSummaryOut]:
    return service.list_documents_by_warehouse(warehouse_code)


@router.get(
    "/{key}",
    response_model=DocumentOut,
    summary="Document by id, externalId or 1C number",
    responses={404: {"model": ErrorOut}},
)
def get_document(
    key: str,
    service: DocumentService = Depends(get_document_service),
) -> DocumentOut:
    return service.get_document(key)


@router.get(
    "/{key}/with-timestamps",
    response_model=DocumentWithTimestampsOut,
    summary="Document with per-item lastModified",
    responses={404: {"model": ErrorOut}},
)
def get_document_with_timestamps(
    key: str,
    service: DocumentService = Depends(get_document_service),
) -> DocumentWithTimestampsOut:
    return service.get_document_with_timestamps(key)


@router.patch(
    "/{key}/items",
    response_model=DocumentOut,
    summary="Update counted quantities (whole-document version check)",
    responses={404: {"model": ErrorOut}, 409: {"model": ErrorOut}},
)
def update_items(
    key: str,
    request: UpdateItemsRequest,
    service: UpdateService = Depends(get_update_service),
) -> DocumentOut:
    return service.update_items(key, request)


@router.patch(
    "/{key}/items/v2",
    response_model=MergeResultOut,
    summary="Record counted quantities from one device, reporting conflicts",
    responses={
        206: {"model": MergeResultOut, "description": "Applied with conflicts"},
        404: {"model": ErrorOut},
        409: {"model": ErrorOut},
    },
)
def merge_items(
    key: str,
    request: MergeItemsRequest,
    response: Response,
    service: MergeService = Depends(get_merge_service),
) -> MergeResultOut:
    result = service.merge_items(key, request)
    if result.conflicts:
        response.status_code = status.HTTP_206_PARTIAL_CONTENT
    return result


@router.post(
    "/{key}/revise",
    response_model=RevisionOut,
    summary="Freeze deltas and mark the document REVISED",
    responses={404: {"model": ErrorOut}, 422: {"model": ErrorOut}},
)
def revise_document(
    key: str,
    service: WorkflowService = Depends(get_workflow_service),
) -> RevisionOut:
    return service.revise(key)


__all__ = ["router"]
