"""The shared VALIDATED path used by the batch write phase and manual overrides."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from salesquest.domain.errors import (
    CampaignNotFoundError,
    RequirementNotFoundError,
    SellerNotFoundError,
)
from salesquest.domain.reconciliation.spillover import CampaignLayout, SpilloverAllocator
from salesquest.domain.rewards.ledger import RewardLedger

if TYPE_CHECKING:
    from datetime import datetime

    from salesquest.domain.model import Campaign, Seller, Submission
    from salesquest.domain.ports.unit_of_work import IncentiveUnitOfWork
    from salesquest.domain.rewards.ledger import SettlementResult

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SettlementContext:
    campaign: Campaign
    seller: Seller
    layout: CampaignLayout


def load_settlement_context(uow: IncentiveUnitOfWork, submission: Submission) -> SettlementContext:
    repos = uow.repositories
    campaign = repos.campaigns.get(submission.campaign_id)
    if campaign is None:
        raise CampaignNotFoundError(f"Campaign {submission.campaign_id} not found")
    seller = repos.sellers.get(submission.seller_id)
    if seller is None:
        raise SellerNotFoundError(f"Seller {submission.seller_id} not found")
    layout = CampaignLayout.build(campaign, repos.requirements.list_for_campaign(campaign.id))
    return SettlementContext(campaign=campaign, seller=seller, layout=layout)


def apply_validation(
    uow: IncentiveUnitOfWork,
    submission: Submission,
    context: SettlementContext,
    *,
    allocator: SpilloverAllocator | None = None,
    ledger: RewardLedger | None = None,
    now: datetime | None = None,
) -> SettlementResult:
    """Allocate the submission's tier, mark it VALIDATED and settle rewards.

    Runs inside the caller's unit of work; the caller commits. Raises
    ``CapacityReachedError`` before touching the submission when the unit would
    land beyond the campaign's last tier.
    """

    layout = context.layout
    requirement = layout.requirement(submission.requirement_id)
    if requirement is None:
        raise RequirementNotFoundError(
            f"Requirement {submission.requirement_id} is not part of campaign {layout.campaign.id}"
        )

    validated_count = uow.repositories.submissions.count_validated(
        seller_id=submission.seller_id,
        campaign_id=submission.campaign_id,
        requirement_ids=layout.related_requirement_ids(requirement.slot_order),
    )
    tier_number = (allocator or SpilloverAllocator()).allocate(
        validated_count,
        layout.quota_function(requirement.slot_order),
        ceiling=layout.ceiling,
    )
    log.info(
        "Spillover for submission %s: slot=%s validated=%s -> tier %s",
        submission.id,
        requirement.slot_order,
        validated_count,
        tier_number,
    )
    submission.mark_validated(tier_number, at=now)
    return (ledger or RewardLedger()).settle(
        uow, submission, context.campaign, context.seller, layout=layout
    )
