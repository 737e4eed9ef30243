"""Campaigns, their tiers ("cartelas") and requirement slots ("cards")."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING

from salesquest.domain.model.base import Entity
from salesquest.domain.model.enums import ConditionOperator, IncrementKind, TierMode, UnitType

if TYPE_CHECKING:
    from uuid import UUID


@dataclass(eq=False, kw_only=True)
class Campaign(Entity):
    title: str

    coins_per_tier: int = 0
    points_per_tier: Decimal = Decimal(0)
    manager_commission_percent: Decimal = Decimal(0)

    tier_mode: TierMode = TierMode.MANUAL
    increment_kind: IncrementKind = IncrementKind.NONE
    increment_factor: int = 0
    tier_limit: int | None = None


@dataclass(eq=False, kw_only=True)
class Tier(Entity):
    campaign_id: UUID
    number: int
    description: str = ""


@dataclass(eq=False, kw_only=True)
class Condition(Entity):
    """One data-driven predicate over a logical field of an external record."""

    field: str
    operator: ConditionOperator
    expected_value: str

    def describe(self) -> str:
        return f"{self.field} {self.operator.value} '{self.expected_value}'"


@dataclass(eq=False, kw_only=True)
class Requirement(Entity):
    """A slot of a tier. Same ``slot_order`` across tiers means the same logical slot."""

    campaign_id: UUID
    tier_number: int
    slot_order: int
    target_quantity: int
    unit_type: UnitType = UnitType.UNIT
    description: str = ""
    conditions: list[Condition] = field(default_factory=list["Condition"])

    def __post_init__(self) -> None:
        if self.target_quantity < 1:
            raise ValueError("target_quantity must be positive")

    @property
    def label(self) -> str:
        return self.description or f"tier {self.tier_number} slot {self.slot_order}"
