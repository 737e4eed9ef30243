"""Public domain model surface."""

from __future__ import annotations

from salesquest.domain.model.base import Entity, new_id, utcnow
from salesquest.domain.model.campaign import Campaign, Condition, Requirement, Tier
from salesquest.domain.model.enums import (
    ConditionOperator,
    IncrementKind,
    LedgerKind,
    SubmissionStatus,
    TierMode,
    UnitType,
)
from salesquest.domain.model.ledger import LedgerEntry, Notification, TierCompletion
from salesquest.domain.model.organization import Organization, Seller, SellerOrganization
from salesquest.domain.model.submission import OPEN_STATUSES, Submission

__all__ = [
    "OPEN_STATUSES",
    "Campaign",
    "Condition",
    "ConditionOperator",
    "Entity",
    "IncrementKind",
    "LedgerEntry",
    "LedgerKind",
    "Notification",
    "Organization",
    "Requirement",
    "Seller",
    "SellerOrganization",
    "Submission",
    "SubmissionStatus",
    "Tier",
    "TierCompletion",
    "TierMode",
    "UnitType",
    "new_id",
    "utcnow",
]
