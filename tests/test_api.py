from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from recount_service.app import create_app
from recount_service.services import DocumentService

BASE = "/inventory-documents"
ONEC = "/onec/inventory-documents"


@pytest.fixture
def client(settings, store):
    with TestClient(create_app(settings, store)) as client:
        yield client


@pytest.fixture
def imported(client, raw_payload_factory):
    response = client.post(f"{ONEC}/import", json=raw_payload_factory())
    assert response.status_code == 200
    return response.json()


def test_health_and_status(client):
    assert client.get("/health").json()["status"] == "ok"
    assert client.get("/status").json() == {"status": "ok"}


def test_import_response_shape(imported):
    assert imported["externalId"] == "d1"
    assert imported["status"] == "IMPORTED"
    assert imported["version"] == 1
    assert imported["warehouse"] == {"code": "WH1", "name": "Main warehouse"}
    [item] = imported["items"]
    assert item["qtyFrom1C"] == "10"
    assert item["countedQty"] is None
    assert item["barcodes"] == [
        {"barcode": "111", "isPrimary": True},
        {"barcode": "222", "isPrimary": False},
    ]


def test_full_recount_cycle(client, imported):
    response = client.patch(
        f"{BASE}/d1/items",
        json={"version": 1, "items": [{"sku": "A", "countedQty": "12"}]},
    )
    assert response.status_code == 200
    assert response.json()["version"] == 2

    stale = client.patch(
        f"{BASE}/d1/items",
        json={"version": 1, "items": [{"sku": "A", "countedQty": "13"}]},
    )
    assert stale.status_code == 409
    assert stale.json() == {"code": "CONFLICT", "message": "Version mismatch. Expected 2, got 1"}

    revised = client.post(f"{BASE}/INV-1/revise")
    assert revised.status_code == 200
    assert revised.json() == {"id": imported["id"], "status": "REVISED", "version": 3}

    exported = client.get(f"{ONEC}/d1/export")
    assert exported.status_code == 200
    assert exported.json()["items"][0]["correctedQty"] == "12"
    assert exported.json()["items"][0]["deltaQty"] == "2"

    assert client.post(f"{ONEC}/d1/ack").json() == {"success": True}
    assert client.post(f"{ONEC}/d1/ack").json() == {"success": True}
    assert client.get(f"{BASE}/{imported['id']}").json()["status"] == "EXPORTED"


def test_merge_with_conflict_returns_partial_content(client, imported):
    first = client.patch(
        f"{BASE}/d1/items/v2",
        json={"version": 1, "deviceId": "scanner-1", "items": [{"sku": "A", "countedQty": "5"}]},
    )
    assert first.status_code == 200
    assert first.json() == {"success": True, "version": 2, "appliedChanges": 1, "conflicts": []}

    second = client.patch(
        f"{BASE}/d1/items/v2",
        json={
            "version": 2,
            "deviceId": "scanner-2",
            "items": [{"sku": "A", "countedQty": "3", "lastKnownModified": "2000-01-01T00:00:00Z"}],
        },
    )
    assert second.status_code == 206
    body = second.json()
    assert body["version"] == 3
    assert body["appliedChanges"] == 1
    [conflict] = body["conflicts"]
    assert conflict["field"] == "countedQty"
    assert conflict["yourValue"] == "3"
    assert conflict["currentValue"] == "5"
    assert conflict["modifiedBy"] == "scanner-1"


def test_with_timestamps_lists_last_modified(client, imported):
    body = client.get(f"{BASE}/d1/with-timestamps").json()

    assert "lastModified" in body["items"][0]


def test_documents_by_warehouse_and_warehouses(client, imported, raw_payload_factory):
    client.post(f"{ONEC}/import", json=raw_payload_factory("d2", onec_number="INV-2"))

    documents = client.get(f"{BASE}/warehouse/WH1").json()
    assert [d["externalId"] for d in documents] == ["d2", "d1"]
    assert "barcodes" not in documents[0]["items"][0]
    assert client.get(f"{BASE}/warehouse/OTHER").json() == []
    assert client.get("/warehouses").json() == [{"code": "WH1", "name": "Main warehouse"}]


def test_unknown_document_returns_not_found_envelope(client):
    response = client.get(f"{BASE}/missing")

    assert response.status_code == 404
    assert response.json() == {"code": "NOT_FOUND", "message": "Document not found"}


def test_unknown_item_returns_not_found(client, imported):
    response = client.patch(
        f"{BASE}/d1/items",
        json={"version": 1, "items": [{"barcode": "999", "countedQty": "1"}]},
    )

    assert response.status_code == 404
    assert response.json() == {"code": "NOT_FOUND", "message": "Barcode 999 not found"}


def test_invalid_payload_returns_bad_request_envelope(client, raw_payload_factory):
    payload = raw_payload_factory()
    del payload["externalId"]

    response = client.post(f"{ONEC}/import", json=payload)

    assert response.status_code == 400
    assert response.json()["code"] == "BAD_REQUEST"
    assert "externalId" in response.json()["message"]


def test_illegal_transition_returns_unprocessable(client, imported):
    response = client.post(f"{ONEC}/d1/ack")

    assert response.status_code == 422
    assert response.json()["code"] == "UNPROCESSABLE_ENTITY"


def test_unexpected_error_returns_internal_error(settings, store, monkeypatch):
    def explode(self):
        raise RuntimeError("boom")

    monkeypatch.setattr(DocumentService, "list_warehouses", explode)
    with TestClient(create_app(settings, store), raise_server_exceptions=False) as client:
        response = client.get("/warehouses")

    assert response.status_code == 500
    assert response.json() == {"code": "INTERNAL_ERROR", "message": "Internal server error"}


def test_quantity_with_too_many_decimals_is_a_bad_request(client, imported):
    response = client.patch(
        f"{BASE}/d1/items",
        json={"version": 1, "items": [{"sku": "A", "countedQty": "1.23456"}]},
    )

    assert response.status_code == 400
    assert response.json()["code"] == "BAD_REQUEST"
    document = client.get(f"{BASE}/d1").json()
    assert document["version"] == 1
    assert document["items"][0]["countedQty"] is None
