"""Warehouse listing."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends

from recount_service.dependencies import get_document_service
from recount_service.schemas import WarehouseOut
from recount_service.services import DocumentService

router = APIRouter(prefix="/warehouses", tags=["warehouses"])


@router.get("", response_model=List[WarehouseOut], summary="Warehouses known from 1C imports")
def list_warehouses(service: DocumentService = Depends(get_document_service)) -> List[WarehouseOut]:
    return service.list_warehouses()


__all__ = ["router"]
