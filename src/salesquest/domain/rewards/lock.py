"""Result type of the tier-completion lock."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class LockStatus(StrEnum):
    ACQUIRED = "acquired"
    ALREADY_HELD = "already_held"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class LockOutcome:
    """Outcome of inserting the (seller, campaign, tier) completion row.

    ``ALREADY_HELD`` is an expected outcome: another settlement got there first.
    ``ERROR`` carries the storage exception so the caller can abort its transaction.
    """

    status: LockStatus
    error: Exception | None = None

    @classmethod
    def acquired(cls) -> LockOutcome:
        return cls(LockStatus.ACQUIRED)

    @classmethod
    def already_held(cls) -> LockOutcome:
        return cls(LockStatus.ALREADY_HELD)

    @classmethod
    def failed(cls, error: Exception) -> LockOutcome:
        return cls(LockStatus.ERROR, error)

    def raise_for_error(self) -> None:
        if self.status is LockStatus.ERROR and self.error is not None:
            raise self.error
