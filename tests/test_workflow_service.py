from __future__ import annotations

from decimal import Decimal

import pytest

from recount_service.errors import DocumentNotFoundError, UnprocessableEntityError
from recount_service.models import DocumentStatus, RecountItem
from recount_service.schemas import UpdateItemsRequest
from recount_service.services.workflow_service import compute_delta

ITEMS = [
    {"sku": "A", "name": "Item A", "unit": "pcs", "qtyFrom1C": "10", "barcodes": ["111"]},
    {"sku": "B", "name": "Item B", "unit": "pcs", "qtyFrom1C": "4", "barcodes": ["222"]},
    {"sku": "C", "name": "Item C", "unit": "kg", "qtyFrom1C": "2.5", "barcodes": []},
]


@pytest.mark.parametrize(
    "counted, corrected, expected",
    [
        (None, None, Decimal("-10")),
        (Decimal("12"), None, Decimal("2")),
        (Decimal("12"), Decimal("9"), Decimal("-1")),
        (None, Decimal("10"), Decimal("0")),
    ],
)
def test_compute_delta(counted, corrected, expected):
    item = RecountItem(
        sku="A",
        item_name="A",
        unit_of_measure="pcs",
        qty_from_1c=Decimal("10"),
        counted_qty=counted,
        corrected_qty=corrected,
    )
    assert compute_delta(item) == expected


def test_revise_freezes_deltas(importer, updater, workflow, documents, payload_factory):
    importer.import_document(payload_factory(items=ITEMS))
    updater.update_items(
        "d1",
        UpdateItemsRequest.model_validate(
            {
                "version": 1,
                "items": [
                    {"sku": "A", "countedQty": "12"},
                    {"sku": "B", "countedQty": "5", "correctedQty": "4"},
                ],
            }
        ),
    )

    revision = workflow.revise("INV-1")

    assert revision.status == DocumentStatus.REVISED
    assert revision.version == 3
    document = documents.get_document("d1")
    deltas = {item.sku: item.delta_qty for item in document.items}
    assert deltas == {"A": Decimal("2"), "B": Decimal("0"), "C": Decimal("-2.5")}


def test_revise_is_one_way(importer, workflow, payload_factory):
    importer.import_document(payload_factory())
    workflow.revise("d1")

    with pytest.raises(UnprocessableEntityError, match="Document must be in IMPORTED status"):
        workflow.revise("d1")


def test_ack_requires_revision(importer, workflow, payload_factory):
    importer.import_document(payload_factory())

    with pytest.raises(UnprocessableEntityError, match="Document must be in REVISED or EXPORTED status"):
        workflow.acknowledge("d1")


def test_ack_marks_exported_once(importer, workflow, documents, payload_factory):
    importer.import_document(payload_factory())
    workflow.revise("d1")

    assert workflow.acknowledge("d1").success is True
    exported = documents.get_document("d1")
    assert exported.status == DocumentStatus.EXPORTED
    assert exported.version == 3

    assert workflow.acknowledge("d1").success is True
    again = documents.get_document("d1")
    assert again.status == DocumentStatus.EXPORTED
    assert again.version == 3


def test_revise_unknown_document(workflow):
    with pytest.raises(DocumentNotFoundError):
        workflow.revise("missing")
