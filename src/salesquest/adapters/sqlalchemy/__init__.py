"""SQLAlchemy adapter package for salesquest."""

from __future__ import annotations

from .mappings import create_all_tables, mapper_registry, start_mappers
from .repositories import (
    SqlAlchemyCampaignRepository,
    SqlAlchemyLedgerRepository,
    SqlAlchemyNotificationSink,
    SqlAlchemyOrganizationRepository,
    SqlAlchemyRequirementRepository,
    SqlAlchemySellerRepository,
    SqlAlchemySubmissionRepository,
    SqlAlchemyTierCompletionRepository,
    SqlAlchemyTierRepository,
)

__all__ = [
    "SqlAlchemyCampaignRepository",
    "SqlAlchemyLedgerRepository",
    "SqlAlchemyNotificationSink",
    "SqlAlchemyOrganizationRepository",
    "SqlAlchemyRequirementRepository",
    "SqlAlchemySellerRepository",
    "SqlAlchemySubmissionRepository",
    "SqlAlchemyTierCompletionRepository",
    "SqlAlchemyTierRepository",
    "create_all_tables",
    "mapper_registry",
    "start_mappers",
]
