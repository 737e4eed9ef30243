"""Read-only progress view of a seller in a campaign."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from salesquest.domain.errors import CampaignNotFoundError
from salesquest.domain.reconciliation.spillover import CampaignLayout

if TYPE_CHECKING:
    from collections.abc import Callable
    from uuid import UUID

    from salesquest.domain.ports.unit_of_work import IncentiveUnitOfWork


@dataclass(frozen=True, slots=True)
class SlotProgress:
    slot_order: int
    label: str
    quota: int
    validated: int
    pending: int

    @property
    def percent(self) -> int:
        if self.quota <= 0:
            return 0
        return min(100, round(self.validated * 100 / self.quota))


@dataclass(frozen=True, slots=True)
class TierProgress:
    tier_number: int
    slots: tuple[SlotProgress, ...]
    completed: bool

    @property
    def percent(self) -> int:
        total = sum(slot.quota for slot in self.slots)
        if total <= 0:
            return 0
        done = sum(min(slot.validated, slot.quota) for slot in self.slots)
        return round(done * 100 / total)


@dataclass(frozen=True, slots=True)
class SellerProgress:
    seller_id: UUID
    campaign_id: UUID
    tiers: tuple[TierProgress, ...]

    @property
    def completed_tiers(self) -> tuple[int, ...]:
        return tuple(tier.tier_number for tier in self.tiers if tier.completed)


def seller_progress(
    seller_id: UUID,
    campaign_id: UUID,
    *,
    unit_of_work_factory: Callable[[], IncentiveUnitOfWork],
    lookahead: int = 1,
) -> SellerProgress:
    """Summarise validated and pending units per tier and slot.

    Display only: allocation never reads from this view. Pending units are not
    tier-bound, so they are reported against every tier of their slot.
    Auto-replicating campaigns show completed tiers plus ``lookahead`` more.
    """

    with unit_of_work_factory() as uow:
        repos = uow.repositories
        campaign = repos.campaigns.get(campaign_id)
        if campaign is None:
            raise CampaignNotFoundError(f"Campaign {campaign_id} not found")
        layout = CampaignLayout.build(campaign, repos.requirements.list_for_campaign(campaign_id))
        completed = set(
            repos.tier_completions.completed_tiers(seller_id=seller_id, campaign_id=campaign_id)
        )

        tiers: list[TierProgress] = []
        for tier_number in layout.tier_numbers(extra=len(completed) + lookahead):
            slots: list[SlotProgress] = []
            for requirement in layout.tier_requirements(tier_number):
                related = layout.related_requirement_ids(requirement.slot_order)
                slots.append(
                    SlotProgress(
                        slot_order=requirement.slot_order,
                        label=requirement.label,
                        quota=layout.quota(tier_number, requirement.slot_order),
                        validated=repos.submissions.count_validated(
                            seller_id=seller_id,
                            campaign_id=campaign_id,
                            requirement_ids=related,
                            tier_number=tier_number,
                        ),
                        pending=repos.submissions.count_pending(
                            seller_id=seller_id,
                            campaign_id=campaign_id,
                            requirement_ids=related,
                        ),
                    )
                )
            tiers.append(
                TierProgress(
                    tier_number=tier_number,
                    slots=tuple(slots),
                    completed=tier_number in completed,
                )
            )

    return SellerProgress(seller_id=seller_id, campaign_id=campaign_id, tiers=tuple(tiers))
