"""Seller order submissions and their state transitions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from salesquest.domain.errors import InvalidTransitionError
from salesquest.domain.model.base import Entity, utcnow
from salesquest.domain.model.enums import SubmissionStatus

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

OPEN_STATUSES = frozenset({SubmissionStatus.PENDING, SubmissionStatus.CONFLICT})


@dataclass(eq=False, kw_only=True)
class Submission(Entity):
    order_number: str
    seller_id: UUID
    campaign_id: UUID
    requirement_id: UUID

    status: SubmissionStatus = SubmissionStatus.PENDING
    validated_tier_number: int | None = None
    rejection_reason: str | None = None

    # set when the batch moved the submission to a sibling requirement
    declared_requirement_id: UUID | None = None
    audit_note: str | None = None

    submitted_at: datetime = field(default_factory=utcnow)
    validated_at: datetime | None = None

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_STATUSES

    def reassign(self, requirement_id: UUID, *, note: str | None) -> None:
        if requirement_id == self.requirement_id:
            return
        if self.declared_requirement_id is None:
            self.declared_requirement_id = self.requirement_id
        self.requirement_id = requirement_id
        self.audit_note = note

    def mark_validated(self, tier_number: int, *, at: datetime | None = None) -> None:
        self._require_open(SubmissionStatus.VALIDATED)
        if tier_number < 1:
            raise ValueError("tier_number must be positive")
        self.status = SubmissionStatus.VALIDATED
        self.validated_tier_number = tier_number
        self.rejection_reason = None
        self.validated_at = at or utcnow()

    def mark_rejected(self, reason: str, *, at: datetime | None = None) -> None:
        self._require_open(SubmissionStatus.REJECTED)
        self.status = SubmissionStatus.REJECTED
        self.rejection_reason = reason
        self.validated_tier_number = None
        self.validated_at = at or utcnow()

    def mark_conflict(self, reason: str) -> None:
        self._require_open(SubmissionStatus.CONFLICT)
        self.status = SubmissionStatus.CONFLICT
        self.rejection_reason = reason

    def _require_open(self, target: SubmissionStatus) -> None:
        if not self.is_open:
            raise InvalidTransitionError(
                f"Submission {self.id} is {self.status.value}; cannot move to {target.value}"
            )
