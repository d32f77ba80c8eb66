from __future__ import annotations

from typing import Any, Callable

import pytest

from recount_service.config import Settings, get_settings
from recount_service.db import Store
from recount_service.schemas import ImportPayload
from recount_service.services import (
    DocumentService,
    ExportService,
    ImportService,
    MergeService,
    UpdateService,
    WorkflowService,
)


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def settings(tmp_path, monkeypatch) -> Settings:
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'recount.db'}")
    monkeypatch.setenv("IMPORT_SLOW_THRESHOLD_MS", "60000")
    return Settings()  # type: ignore[call-arg]


@pytest.fixture
def store(settings):
    store = Store.from_settings(settings)
    store.create_schema()
    yield store
    store.dispose()


@pytest.fixture
def documents(store) -> DocumentService:
    return DocumentService(store)


@pytest.fixture
def importer(store, settings) -> ImportService:
    return ImportService(store, settings)


@pytest.fixture
def updater(store, settings) -> UpdateService:
    return UpdateService(store, settings)


@pytest.fixture
def merger(store, settings) -> MergeService:
    return MergeService(store, settings)


@pytest.fixture
def workflow(store, settings) -> WorkflowService:
    return WorkflowService(store, settings)


@pytest.fixture
def exporter(store, settings) -> ExportService:
    return ExportService(store, settings)


def build_payload(
    external_id: str = "d1",
    *,
    onec_number: str = "INV-1",
    warehouse: tuple[str, str] = ("WH1", "Main warehouse"),
    items: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    if items is None:
        items = [{"sku": "A", "name": "Item A", "unit": "pcs", "qtyFrom1C": "10", "barcodes": ["111", "222"]}]
    return {
        "externalId": external_id,
        "onecNumber": onec_number,
        "onecDate": "2024-01-15T10:00:00Z",
        "warehouse": {"code": warehouse[0], "name": warehouse[1]},
        "items": items,
    }


@pytest.fixture
def payload_factory() -> Callable[..., ImportPayload]:
    def factory(*args: Any, **kwargs: Any) -> ImportPayload:
        return ImportPayload.model_validate(build_payload(*args, **kwargs))

    return factory


@pytest.fixture
def raw_payload_factory() -> Callable[..., dict[str, Any]]:
    return build_payload
