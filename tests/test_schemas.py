from __future__ import annotations

from decimal import Decimal

import pytest
from pydantic import ValidationError

from recount_service.schemas import ImportItemPayload, ItemUpdate, MergeItemUpdate, format_quantity


@pytest.mark.parametrize(
    "value, expected",
    [
        (Decimal("12.000"), "12"),
        (Decimal("2.500"), "2.5"),
        (Decimal("-0.125"), "-0.125"),
        (Decimal("0.000"), "0"),
        (Decimal("1E+2"), "100"),
        (Decimal("100"), "100"),
    ],
)
def test_format_quantity(value, expected):
    assert format_quantity(value) == expected


def test_merge_update_logs_only_fields_with_values():
    update = MergeItemUpdate.model_validate({"sku": "A", "countedQty": "3", "correctedQty": None})

    assert update.present_fields() == {"counted_qty": Decimal("3"), "corrected_qty": None}
    assert update.logged_fields() == {"counted_qty": Decimal("3")}


@pytest.mark.parametrize("value", ["1.23456", "1234567890123456", "0.0001"])
def test_quantity_wider_than_storage_is_rejected(value):
    with pytest.raises(ValidationError):
        ItemUpdate.model_validate({"sku": "A", "countedQty": value})
    with pytest.raises(ValidationError):
        ImportItemPayload.model_validate(
            {"sku": "A", "name": "A", "unit": "pcs", "qtyFrom1C": value, "barcodes": []}
        )


def test_largest_storable_quantity_is_accepted():
    update = ItemUpdate.model_validate({"sku": "A", "correctedQty": "999999999999999.999"})

    assert update.corrected_qty == Decimal("999999999999999.999")
