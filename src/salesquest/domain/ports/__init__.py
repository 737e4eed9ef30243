"""Domain port definitions for adapters."""

from __future__ import annotations

from .persistence import (
    CampaignRepository,
    LedgerRepository,
    NotificationSink,
    OrganizationRepository,
    Repository,
    RequirementRepository,
    SellerRepository,
    SubmissionRepository,
    TierCompletionRepository,
    TierRepository,
)
from .unit_of_work import (
    IncentiveRepositories,
    IncentiveUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "CampaignRepository",
    "IncentiveRepositories",
    "IncentiveUnitOfWork",
    "LedgerRepository",
    "NotificationSink",
    "OrganizationRepository",
    "Repository",
    "RepositoryCollection",
    "RequirementRepository",
    "SellerRepository",
    "SubmissionRepository",
    "TierCompletionRepository",
    "TierRepository",
    "UnitOfWork",
]
