"""Spillover allocation of validated units across a campaign's tiers.

A seller's validated units for one logical slot (same ``slot_order`` across
tiers) fill tier 1 up to its quota, then tier 2, and so on. The count that
drives allocation is always a fresh aggregate read by the caller; this module
only turns that count into a tier number.
"""

from __future__ import annotations

import math
from collections import defaultdict
from dataclasses import dataclass, field
from fractions import Fraction
from typing import TYPE_CHECKING

from salesquest.domain.errors import CapacityReachedError
from salesquest.domain.model import IncrementKind, TierMode

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence
    from uuid import UUID

    from salesquest.domain.model import Campaign, Requirement


def allocate_tier(validated_count: int, target_quantity: int) -> int:
    """Tier for the next unit when every tier asks for ``target_quantity`` units."""

    if validated_count < 0:
        raise ValueError("validated_count must be non-negative")
    if target_quantity < 1:
        raise ValueError("target_quantity must be positive")
    return validated_count // target_quantity + 1


class SpilloverAllocator:
    """Walk cumulative per-tier quotas to place the next validated unit.

    With a constant quota this is exactly ``allocate_tier``; with growing quotas
    it keeps every tier at or under its own quota.
    """

    def allocate(
        self,
        validated_count: int,
        quota_for_tier: Callable[[int], int],
        *,
        ceiling: int | None = None,
    ) -> int:
        if validated_count < 0:
            raise ValueError("validated_count must be non-negative")
        tier = 1
        filled = 0
        while True:
            if ceiling is not None and tier > ceiling:
                raise CapacityReachedError(tier, ceiling)
            quota = quota_for_tier(tier)
            if quota < 0:
                raise ValueError(f"Negative quota for tier {tier}")
            if quota == 0 and ceiling is None:
                raise ValueError(f"Tier {tier} has no quota and the campaign has no ceiling")
            filled += quota
            if validated_count < filled:
                return tier
            tier += 1


@dataclass(slots=True)
class CampaignLayout:
    """Precomputed view of a campaign's tiers and slots, built once per run."""

    campaign: Campaign
    requirements: tuple[Requirement, ...]
    related_ids_by_slot: dict[int, frozenset[UUID]] = field(default_factory=dict)
    _by_id: dict[UUID, Requirement] = field(default_factory=dict)
    _by_tier: dict[int, tuple[Requirement, ...]] = field(default_factory=dict)

    @classmethod
    def build(cls, campaign: Campaign, requirements: Iterable[Requirement]) -> CampaignLayout:
        ordered = tuple(sorted(requirements, key=_requirement_sort_key))
        related: defaultdict[int, set[UUID]] = defaultdict(set)
        by_tier: defaultdict[int, list[Requirement]] = defaultdict(list)
        for requirement in ordered:
            related[requirement.slot_order].add(requirement.id)
            by_tier[requirement.tier_number].append(requirement)
        return cls(
            campaign=campaign,
            requirements=ordered,
            related_ids_by_slot={slot: frozenset(ids) for slot, ids in related.items()},
            _by_id={requirement.id: requirement for requirement in ordered},
            _by_tier={tier: tuple(items) for tier, items in by_tier.items()},
        )

    @property
    def auto_replicating(self) -> bool:
        return self.campaign.tier_mode is TierMode.AUTO_REPLICATE

    @property
    def ceiling(self) -> int | None:
        """Highest tier that may receive units; ``None`` means unbounded."""

        limit = self.campaign.tier_limit
        if self.auto_replicating:
            return limit
        defined = max(self._by_tier, default=0)
        return defined if limit is None else min(defined, limit)

    def requirement(self, requirement_id: UUID) -> Requirement | None:
        return self._by_id.get(requirement_id)

    def related_requirement_ids(self, slot_order: int) -> frozenset[UUID]:
        return self.related_ids_by_slot.get(slot_order, frozenset())

    def tier_requirements(self, tier_number: int) -> tuple[Requirement, ...]:
        """Physical requirements of a tier (tier 1 stands for every tier when replicating)."""

        if self.auto_replicating:
            return self._by_tier.get(1, ())
        return self._by_tier.get(tier_number, ())

    def slots_in_tier(self, tier_number: int) -> tuple[int, ...]:
        if self.ceiling is not None and tier_number > self.ceiling:
            return ()
        return tuple(requirement.slot_order for requirement in self.tier_requirements(tier_number))

    def siblings(self, requirement: Requirement) -> list[Requirement]:
        """Other requirements of the same tier, in deterministic slot order."""

        return [
            candidate
            for candidate in self._by_tier.get(requirement.tier_number, ())
            if candidate.id != requirement.id
        ]

    def quota(self, tier_number: int, slot_order: int) -> int:
        if tier_number < 1:
            return 0
        if not self.auto_replicating:
            for requirement in self._by_tier.get(tier_number, ()):
                if requirement.slot_order == slot_order:
                    return requirement.target_quantity
            return 0
        base = self._by_tier.get(1, ())
        for requirement in base:
            if requirement.slot_order == slot_order:
                return self._scaled_quantity(requirement.target_quantity, tier_number, base)
        return 0

    def quota_function(self, slot_order: int) -> Callable[[int], int]:
        return lambda tier_number: self.quota(tier_number, slot_order)

    def tier_numbers(self, *, extra: int = 0) -> tuple[int, ...]:
        """Tiers worth displaying; replicating campaigns show ``extra`` tiers ahead."""

        if not self.auto_replicating:
            return tuple(sorted(self._by_tier))
        count = max(1, extra)
        if self.ceiling is not None:
            count = min(count, self.ceiling)
        return tuple(range(1, count + 1))

    def _scaled_quantity(
        self, quantity: int, tier_number: int, base: Sequence[Requirement]
    ) -> int:
        campaign = self.campaign
        if campaign.increment_kind is not IncrementKind.MULTIPLIER or not base:
            return quantity
        base_quantity = base[0].target_quantity
        factor = 1 + Fraction((tier_number - 1) * campaign.increment_factor, base_quantity)
        return math.ceil(quantity * factor)


def _requirement_sort_key(requirement: Requirement) -> tuple[int, int, str]:
    return (requirement.tier_number, requirement.slot_order, str(requirement.id))
