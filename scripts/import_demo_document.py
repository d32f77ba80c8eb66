#!/usr/bin/env python3
"""Import a demo recount document through the regular import path."""

import os
import sys

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from recount_service.config import get_settings
from recount_service.db import Store
from recount_service.schemas import ImportPayload
from recount_service.services import ImportService

DEMO_PAYLOAD = {
    "externalId": "demo-recount-0001",
    "onecNumber": "INV-0001",
    "onecDate": "2024-01-15",
    "warehouse": {"code": "WH001", "name": "Main Warehouse Moscow"},
    "items": [
        {"sku": "SKU-001", "name": "Pallet wrap 500mm", "unit": "pcs", "qtyFrom1C": "120", "barcodes": ["4600000000011", "4600000000028"]},
        {"sku": "SKU-002", "name": "Carton box 40x30x30", "unit": "pcs", "qtyFrom1C": "350", "barcodes": ["4600000000035"]},
        {"sku": "SKU-003", "name": "Packing tape", "unit": "roll", "qtyFrom1C": "48.5", "barcodes": ["4600000000042"]},
    ],
}


def import_demo_document(create_schema: bool) -> bool:
    """Import the demo document; safe to run repeatedly."""
    settings = get_settings()
    store = Store.from_settings(settings)
    try:
        if create_schema:
            print("🏗️ Creating tables...")
            store.create_schema()

        print("📦 Importing demo document...")
        document = ImportService(store, settings).import_document(ImportPayload.model_validate(DEMO_PAYLOAD))
    finally:
        store.dispose()

    print(f"✅ Document {document.external_id} ({document.onec_number})")
    print(f"   id={document.id} status={document.status.value} version={document.version}")
    for item in document.items:
        primary = next((b.barcode for b in item.barcodes if b.is_primary), "-")
        print(f"   {item.sku:<8} {item.name:<24} qty={item.qty_from_1c} primary={primary}")
    return True


if __name__ == "__main__":
    success = import_demo_document(create_schema="--create-schema" in sys.argv)
    sys.exit(0 if success else 1)
