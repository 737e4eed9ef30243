"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class SubmissionStatus(StrEnum):
    PENDING = "pending"
    VALIDATED = "validated"
    REJECTED = "rejected"
    CONFLICT = "conflict"


class ConditionOperator(StrEnum):
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"


class UnitType(StrEnum):
    UNIT = "unit"
    PAIR = "pair"


class LedgerKind(StrEnum):
    SELLER = "seller"
    MANAGER = "manager"


class TierMode(StrEnum):
    """How a campaign materialises its tiers."""

    MANUAL = "manual"
    AUTO_REPLICATE = "auto_replicate"


class IncrementKind(StrEnum):
    NONE = "none"
    MULTIPLIER = "multiplier"
