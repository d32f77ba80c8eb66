"""FastAPI dependencies wiring the process-wide store into services."""

from __future__ import annotations

from fastapi import Depends, Request

from recount_service.config import Settings
from recount_service.db import Store
from recount_service.services import (
    DocumentService,
    ExportService,
    ImportService,
    MergeService,
    UpdateService,
    WorkflowService,
)


def get_store(request: Request) -> Store:
    """Store created by the application lifespan."""
    return request.app.state.store


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_document_service(store: Store = Depends(get_store)) -> DocumentService:
    return DocumentService(store)


def get_import_service(
    store: Store = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
) -> ImportService:
    return ImportService(store, settings)


def get_update_service(
    store: Store = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
) -> UpdateService:
    return UpdateService(store, settings)


def get_merge_service(
    store: Store = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
) -> MergeService:
    return MergeService(store, settings)


def get_workflow_service(
    store: Store = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
) -> WorkflowService:
    return WorkflowService(store, settings)


def get_export_service(
    store: Store = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
) -> ExportService:
    return ExportService(store, settings)
