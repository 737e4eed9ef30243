"""Locate an order's external records through the caller's column mapping."""

from __future__ import annotations

from typing import TYPE_CHECKING

from salesquest.domain.reconciliation.contracts import (
    ORDER_NUMBER_FIELD,
    LookupStatus,
    OrderLookup,
    cell_text,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from salesquest.domain.reconciliation.contracts import ColumnMapping, ExternalRecord


def find_order(
    order_number: str,
    rows: Iterable[ExternalRecord],
    mapping: ColumnMapping,
    *,
    order_field: str = ORDER_NUMBER_FIELD,
) -> OrderLookup:
    """Scan every column mapped to the order field for ``order_number``.

    Hits under a single column are FOUND; hits under several distinct columns are
    AMBIGUOUS, a data-quality conflict for an operator to sort out.
    """

    columns = mapping.columns_for(order_field)
    if not columns:
        return OrderLookup(
            status=LookupStatus.UNMAPPED,
            reason=f"No column mapped to {order_field}",
        )

    wanted = order_number.strip()
    hit_columns: list[str] = []
    records: list[ExternalRecord] = []
    for row in rows:
        for column in columns:
            if cell_text(row, column).strip() == wanted:
                if column not in hit_columns:
                    hit_columns.append(column)
                records.append(row)

    if not hit_columns:
        return OrderLookup(
            status=LookupStatus.NOT_FOUND,
            reason=f"Order '{order_number}' not found in the external dataset",
        )
    if len(hit_columns) > 1:
        return OrderLookup(
            status=LookupStatus.AMBIGUOUS,
            reason=(
                f"Order '{order_number}' found under several columns: "
                f"{', '.join(hit_columns)} (ambiguous column mapping)"
            ),
        )
    return OrderLookup(status=LookupStatus.FOUND, records=tuple(records))
