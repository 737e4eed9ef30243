"""Domain error definitions."""

from __future__ import annotations


class IncentiveError(RuntimeError):
    """Base class for domain failures surfaced to callers."""


class NotFoundError(IncentiveError):
    """Raised when a referenced aggregate does not exist."""


class SubmissionNotFoundError(NotFoundError):
    pass


class CampaignNotFoundError(NotFoundError):
    pass


class SellerNotFoundError(NotFoundError):
    pass


class RequirementNotFoundError(NotFoundError):
    pass


class InvalidTransitionError(IncentiveError):
    """Raised when a submission is moved out of a terminal status."""


class DuplicateSubmissionError(IncentiveError):
    """Raised when a seller submits the same order twice in one campaign."""


class CapacityReachedError(IncentiveError):
    """Raised when a validated unit would land beyond the campaign's last tier."""

    def __init__(self, tier_number: int, ceiling: int) -> None:
        super().__init__(
            f"Capacity reached: unit would land on tier {tier_number} "
            f"but the campaign stops at tier {ceiling}"
        )
        self.tier_number = tier_number
        self.ceiling = ceiling
