"""Shared reconciliation contract components.

This module holds the value types exchanged between the reconciliation stages:
- the column mapping and external record aliases
- per-stage outcomes (rules, identity, reassignment, order lookup)
- the per-submission decision and the batch summary
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from salesquest.domain.model import SubmissionStatus

if TYPE_CHECKING:
    from uuid import UUID

    from salesquest.domain.model import Requirement

type ExternalRecord = Mapping[str, object]

ORDER_NUMBER_FIELD = "ORDER_NUMBER"
ORG_ID_FIELD = "ORG_ID"


def cell_text(record: ExternalRecord, column: str) -> str:
    """Return a cell as text; missing and null cells read as empty."""

    value = record.get(column)
    if value is None:
        return ""
    return str(value)


class ColumnMapping:
    """Logical field name -> external column name(s).

    A logical field may be mapped to several columns (e.g. an order number that
    can appear under "Order" or "Service order"); lookups that need a single
    column use the first one.
    """

    __slots__ = ("_columns",)

    def __init__(self, mapping: Mapping[str, str | Sequence[str]]) -> None:
        columns: dict[str, tuple[str, ...]] = {}
        for logical, raw in mapping.items():
            names = (raw,) if isinstance(raw, str) else tuple(raw)
            cleaned = tuple(name for name in names if name and name.strip())
            if cleaned:
                columns[logical] = cleaned
        self._columns = columns

    def __contains__(self, logical: object) -> bool:
        return logical in self._columns

    def __repr__(self) -> str:
        return f"ColumnMapping({self._columns!r})"

    def columns_for(self, logical: str) -> tuple[str, ...]:
        return self._columns.get(logical, ())

    def column_for(self, logical: str) -> str | None:
        columns = self.columns_for(logical)
        return columns[0] if columns else None


@dataclass(frozen=True, slots=True)
class RuleOutcome:
    satisfied: bool
    reason: str | None = None

    @classmethod
    def ok(cls) -> RuleOutcome:
        return cls(satisfied=True)

    @classmethod
    def failed(cls, reason: str) -> RuleOutcome:
        return cls(satisfied=False, reason=reason)


class MatchVia(StrEnum):
    DIRECT = "direct"
    PARENT = "parent"
    NONE = "none"


class IdentityFailure(StrEnum):
    MISSING_ORGANIZATION = "missing_organization"
    MISSING_EXTERNAL_ID = "missing_external_id"
    MALFORMED_EXTERNAL_ID = "malformed_external_id"
    MISMATCH = "mismatch"


@dataclass(frozen=True, slots=True)
class IdentityMatch:
    matched: bool
    via: MatchVia
    failure: IdentityFailure | None = None
    reason: str | None = None


@dataclass(frozen=True, slots=True)
class Reassignment:
    """Result of searching sibling slots after the declared requirement failed."""

    requirement: Requirement | None
    attempt_log: tuple[str, ...] = ()

    @property
    def succeeded(self) -> bool:
        return self.requirement is not None

    def joined_log(self, *leading: str) -> str:
        return " | ".join((*leading, *self.attempt_log))


class LookupStatus(StrEnum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    AMBIGUOUS = "ambiguous"
    UNMAPPED = "unmapped"


@dataclass(frozen=True, slots=True)
class OrderLookup:
    status: LookupStatus
    records: tuple[ExternalRecord, ...] = ()
    reason: str | None = None

    @property
    def record(self) -> ExternalRecord:
        if not self.records:
            raise LookupError("Order lookup produced no record")
        return self.records[0]


@dataclass(slots=True, kw_only=True)
class Decision:
    """Outcome of the decision phase for one submission."""

    submission_id: UUID
    order_number: str
    seller_id: UUID
    status: SubmissionStatus
    reason: str | None = None
    requirement_id: UUID | None = None
    declared_requirement_id: UUID | None = None
    audit_note: str | None = None
    identity_via: MatchVia = MatchVia.NONE
    projected_tier: int | None = None
    tier_number: int | None = None
    # REJECTED only because the projected tier exceeded the capacity ceiling
    capacity_limited: bool = False
    failed: bool = False

    @property
    def reassigned(self) -> bool:
        return (
            self.requirement_id is not None
            and self.declared_requirement_id is not None
            and self.requirement_id != self.declared_requirement_id
        )


@dataclass(slots=True, kw_only=True)
class ReconciliationSummary:
    campaign_id: UUID
    simulate: bool
    total_processed: int = 0
    validated: int = 0
    rejected: int = 0
    conflicts: int = 0
    failed: int = 0
    decisions: list[Decision] = field(default_factory=list["Decision"])

    @classmethod
    def from_decisions(
        cls, campaign_id: UUID, decisions: Sequence[Decision], *, simulate: bool
    ) -> ReconciliationSummary:
        summary = cls(campaign_id=campaign_id, simulate=simulate, decisions=list(decisions))
        summary.total_processed = len(decisions)
        for decision in decisions:
            if decision.failed:
                summary.failed += 1
            elif decision.status is SubmissionStatus.VALIDATED:
                summary.validated += 1
            elif decision.status is SubmissionStatus.REJECTED:
                summary.rejected += 1
            elif decision.status is SubmissionStatus.CONFLICT:
                summary.conflicts += 1
        return summary

    def counts(self) -> dict[str, int]:
        return {
            "total_processed": self.total_processed,
            "validated": self.validated,
            "rejected": self.rejected,
            "conflicts": self.conflicts,
            "failed": self.failed,
        }
