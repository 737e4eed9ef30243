"""Public interface for the spreadsheet adapter."""

from __future__ import annotations

from .reader import DatasetFormatError, load_reconciliation_request, load_roster_file, read_rows
from .schema import ReconciliationRequest, RosterFile
from .translator import Roster, parse_roster

__all__ = [
    "DatasetFormatError",
    "ReconciliationRequest",
    "Roster",
    "RosterFile",
    "load_reconciliation_request",
    "load_roster_file",
    "parse_roster",
    "read_rows",
]
