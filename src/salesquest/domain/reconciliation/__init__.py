"""Batch reconciliation of seller submissions against external records.

``BatchReconciler`` lives in ``salesquest.domain.reconciliation.engine``; it
depends on reward settlement, which in turn uses the layout types exported here.
"""

from __future__ import annotations

from .contracts import (
    ORDER_NUMBER_FIELD,
    ORG_ID_FIELD,
    ColumnMapping,
    Decision,
    ExternalRecord,
    IdentityFailure,
    IdentityMatch,
    LookupStatus,
    MatchVia,
    OrderLookup,
    Reassignment,
    ReconciliationSummary,
    RuleOutcome,
)
from .identity import IdentityMatcher, normalize_tax_id
from .lookup import find_order
from .reallocate import MultiSlotReallocator
from .rules import RuleEvaluator
from .spillover import CampaignLayout, SpilloverAllocator, allocate_tier

__all__ = [
    "ORDER_NUMBER_FIELD",
    "ORG_ID_FIELD",
    "CampaignLayout",
    "ColumnMapping",
    "Decision",
    "ExternalRecord",
    "IdentityFailure",
    "IdentityMatch",
    "IdentityMatcher",
    "LookupStatus",
    "MatchVia",
    "MultiSlotReallocator",
    "OrderLookup",
    "Reassignment",
    "ReconciliationSummary",
    "RuleEvaluator",
    "RuleOutcome",
    "SpilloverAllocator",
    "allocate_tier",
    "find_order",
    "normalize_tax_id",
]
