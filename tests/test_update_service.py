from __future__ import annotations

import threading
from decimal import Decimal

import pytest
from pydantic import ValidationError

from recount_service.errors import ConflictError, DocumentNotFoundError, NotFoundError
from recount_service.schemas import UpdateItemsRequest


def request(version, *items):
    return UpdateItemsRequest.model_validate({"version": version, "items": list(items)})


def test_update_sets_counts_and_bumps_version(importer, updater, payload_factory):
    importer.import_document(payload_factory())

    document = updater.update_items("d1", request(1, {"sku": "A", "countedQty": "12", "note": "shelf 3"}))

    assert document.version == 2
    [item] = document.items
    assert item.counted_qty == Decimal("12")
    assert item.note == "shelf 3"


def test_stale_version_is_rejected(importer, updater, payload_factory):
    importer.import_document(payload_factory())
    updater.update_items("d1", request(1, {"sku": "A", "countedQty": "1"}))

    with pytest.raises(ConflictError) as excinfo:
        updater.update_items("d1", request(1, {"sku": "A", "countedQty": "2"}))

    assert excinfo.value.message == "Version mismatch. Expected 2, got 1"


def test_unknown_item_rolls_back_the_whole_update(importer, updater, documents, payload_factory):
    importer.import_document(payload_factory())

    with pytest.raises(NotFoundError, match="Item with SKU Z not found"):
        updater.update_items("d1", request(1, {"sku": "A", "countedQty": "5"}, {"sku": "Z", "countedQty": "1"}))

    document = documents.get_document("d1")
    assert document.version == 1
    assert document.items[0].counted_qty is None


def test_unknown_barcode_is_reported(importer, updater, payload_factory):
    importer.import_document(payload_factory())

    with pytest.raises(NotFoundError, match="Barcode 999 not found"):
        updater.update_items("d1", request(1, {"barcode": "999", "countedQty": "1"}))


def test_item_can_be_addressed_by_any_barcode(importer, updater, payload_factory):
    importer.import_document(payload_factory())

    document = updater.update_items("d1", request(1, {"barcode": "222", "correctedQty": "9"}))

    assert document.items[0].corrected_qty == Decimal("9")


def test_omitted_fields_are_kept_and_explicit_null_clears(importer, updater, payload_factory):
    importer.import_document(payload_factory())
    updater.update_items("d1", request(1, {"sku": "A", "countedQty": "4", "note": "wet box"}))

    document = updater.update_items("d1", request(2, {"sku": "A", "countedQty": "6"}))
    assert document.items[0].note == "wet box"
    assert document.items[0].counted_qty == Decimal("6")

    document = updater.update_items("d1", request(3, {"sku": "A", "note": None}))
    assert document.items[0].note is None
    assert document.items[0].counted_qty == Decimal("6")
    assert document.version == 4


def test_update_of_unknown_document(updater):
    with pytest.raises(DocumentNotFoundError):
        updater.update_items("missing", request(1, {"sku": "A", "countedQty": "1"}))


@pytest.mark.parametrize(
    "item",
    [
        {"countedQty": "1"},
        {"sku": "A", "barcode": "111", "countedQty": "1"},
    ],
)
def test_item_must_name_exactly_one_target(item):
    with pytest.raises(ValidationError, match="Exactly one of sku or barcode"):
        request(1, item)


def test_version_must_be_an_integer():
    with pytest.raises(ValidationError):
        UpdateItemsRequest.model_validate({"version": "1", "items": []})


def test_concurrent_updates_from_same_version_admit_one_writer(importer, updater, documents, payload_factory):
    importer.import_document(payload_factory())
    barrier = threading.Barrier(2)
    outcomes: list = []

    def submit(qty):
        barrier.wait()
        try:
            updater.update_items("d1", request(1, {"sku": "A", "countedQty": qty}))
        except ConflictError as exc:
            outcomes.append(exc)
        else:
            outcomes.append(qty)

    threads = [threading.Thread(target=submit, args=(qty,)) for qty in ("5", "7")]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)

    winners = [outcome for outcome in outcomes if isinstance(outcome, str)]
    losers = [outcome for outcome in outcomes if isinstance(outcome, ConflictError)]
    assert len(winners) == 1
    assert len(losers) == 1
    assert losers[0].message == "Version mismatch. Expected 2, got 1"
    document = documents.get_document("d1")
    assert document.version == 2
    assert document.items[0].counted_qty == Decimal(winners[0])
