from __future__ import annotations

from salesquest.domain.reconciliation import ColumnMapping, LookupStatus, find_order


def test_order_is_found_after_trimming() -> None:
    rows = [{"Order": " 1001 ", "CNPJ": "1"}, {"Order": "1002", "CNPJ": "2"}]

    lookup = find_order("1001", rows, ColumnMapping({"ORDER_NUMBER": "Order"}))

    assert lookup.status is LookupStatus.FOUND
    assert lookup.record["CNPJ"] == "1"


def test_numeric_cells_match_textual_order_numbers() -> None:
    lookup = find_order("1001", [{"Order": 1001}], ColumnMapping({"ORDER_NUMBER": "Order"}))

    assert lookup.status is LookupStatus.FOUND


def test_missing_order_and_missing_mapping() -> None:
    rows = [{"Order": "1"}]

    assert find_order("9", rows, ColumnMapping({"ORDER_NUMBER": "Order"})).status is (
        LookupStatus.NOT_FOUND
    )
    assert find_order("1", rows, ColumnMapping({"ORDER_NUMBER": " "})).status is (
        LookupStatus.UNMAPPED
    )


def test_hits_under_one_of_several_columns_are_not_ambiguous() -> None:
    mapping = ColumnMapping({"ORDER_NUMBER": ["Order", "Service order"]})
    rows = [{"Order": "", "Service order": "77"}]

    lookup = find_order("77", rows, mapping)

    assert lookup.status is LookupStatus.FOUND


def test_hits_under_several_columns_are_ambiguous() -> None:
    mapping = ColumnMapping({"ORDER_NUMBER": ["Order", "Service order"]})
    rows = [{"Order": "77", "Service order": ""}, {"Order": "", "Service order": "77"}]

    lookup = find_order("77", rows, mapping)

    assert lookup.status is LookupStatus.AMBIGUOUS
    assert lookup.reason is not None
    assert "Order, Service order" in lookup.reason
