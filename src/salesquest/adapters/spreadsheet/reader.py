"""Read external datasets and request files from disk."""

from __future__ import annotations

import csv
import json
from logging import getLogger
from typing import TYPE_CHECKING, cast

from .schema import CellValue, ReconciliationRequest, RosterFile

if TYPE_CHECKING:
    from pathlib import Path

log = getLogger(__name__)


class DatasetFormatError(ValueError):
    """Raised when a dataset file cannot be turned into rows."""


def read_rows(path: Path) -> list[dict[str, CellValue]]:
    """Load external records from a CSV file (header row required) or a JSON array."""

    suffix = path.suffix.lower()
    if suffix == ".csv":
        with path.open(newline="", encoding="utf-8-sig") as handle:
            reader = csv.DictReader(handle)
            if reader.fieldnames is None:
                raise DatasetFormatError(f"{path} has no header row")
            rows: list[dict[str, CellValue]] = [
                {key: value for key, value in row.items() if key is not None} for row in reader
            ]
    elif suffix == ".json":
        with path.open(encoding="utf-8") as handle:
            loaded = json.load(handle)
        if not isinstance(loaded, list):
            raise DatasetFormatError(f"{path} must contain a JSON array of objects")
        rows = []
        for index, item in enumerate(cast(list[object], loaded)):
            if not isinstance(item, dict):
                raise DatasetFormatError(f"{path}: row {index} is not an object")
            rows.append(cast(dict[str, CellValue], item))
    else:
        raise DatasetFormatError(f"Unsupported dataset format: {path.suffix or path.name}")

    log.info("Read %s rows from %s", len(rows), path)
    return rows


def load_reconciliation_request(
    path: Path, *, rows_path: Path | None = None
) -> ReconciliationRequest:
    """Validate a request file; rows may come from a separate dataset file."""

    with path.open(encoding="utf-8") as handle:
        request = ReconciliationRequest.model_validate(json.load(handle))
    if rows_path is not None:
        request = request.model_copy(update={"rows": read_rows(rows_path)})
    return request


def load_roster_file(path: Path) -> RosterFile:
    with path.open(encoding="utf-8") as handle:
        return RosterFile.model_validate(json.load(handle))
