from __future__ import annotations

import pytest

from recount_service.config import Settings
from recount_service.errors import UnprocessableEntityError
from recount_service.schemas import MergeItemsRequest, UpdateItemsRequest
from recount_service.services import ExportService


def export_json(exporter, key):
    return exporter.export_document(key).model_dump(mode="json", by_alias=True)


def test_export_after_v1_counts(importer, updater, workflow, exporter, payload_factory):
    importer.import_document(payload_factory())
    updater.update_items(
        "d1",
        UpdateItemsRequest.model_validate({"version": 1, "items": [{"sku": "A", "countedQty": "12"}]}),
    )
    workflow.revise("d1")

    assert export_json(exporter, "d1") == {
        "externalId": "d1",
        "warehouse": {"code": "WH1"},
        "items": [
            {
                "sku": "A",
                "unit": "pcs",
                "correctedQty": "12",
                "deltaQty": "2",
                "barcodes": ["111", "222"],
            }
        ],
    }


def test_export_sums_latest_count_of_each_device(importer, merger, workflow, exporter, payload_factory):
    importer.import_document(payload_factory())
    merger.merge_items(
        "d1",
        MergeItemsRequest.model_validate(
            {"version": 1, "deviceId": "scanner-1", "items": [{"sku": "A", "countedQty": "5"}]}
        ),
    )
    merger.merge_items(
        "d1",
        MergeItemsRequest.model_validate(
            {"version": 2, "deviceId": "scanner-2", "items": [{"barcode": "222", "countedQty": "3"}]}
        ),
    )
    merger.merge_items(
        "d1",
        MergeItemsRequest.model_validate(
            {"version": 3, "deviceId": "scanner-1", "items": [{"sku": "A", "countedQty": "8"}]}
        ),
    )
    workflow.revise("d1")

    [item] = export_json(exporter, "d1")["items"]

    assert item["correctedQty"] == "11"
    assert item["deltaQty"] == "1"


def test_export_without_counts_is_zero(importer, workflow, exporter, payload_factory):
    importer.import_document(payload_factory())
    workflow.revise("d1")

    [item] = export_json(exporter, "d1")["items"]

    assert item["correctedQty"] == "0"
    assert item["deltaQty"] == "-10"


def test_export_of_imported_document_is_refused(importer, exporter, payload_factory):
    importer.import_document(payload_factory())

    with pytest.raises(UnprocessableEntityError):
        exporter.export_document("d1")


def test_export_gate_can_be_disabled(importer, store, monkeypatch, payload_factory):
    monkeypatch.setenv("EXPORT_REQUIRES_REVISION", "false")
    exporter = ExportService(store, Settings())  # type: ignore[call-arg]
    importer.import_document(payload_factory())

    [item] = export_json(exporter, "d1")["items"]

    assert item["correctedQty"] == "0"
    assert item["deltaQty"] == "-10"
