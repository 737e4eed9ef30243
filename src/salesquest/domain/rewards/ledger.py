"""Idempotent tier-completion settlement.

``RewardLedger.settle`` always runs inside the unit of work that persists the
submission's VALIDATED status. The tier-completion row is the only idempotency
gate: whoever inserts it pays the tier, everybody else finds it already held.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING

from salesquest.domain.model import LedgerEntry, LedgerKind
from salesquest.domain.reconciliation.spillover import CampaignLayout
from salesquest.domain.rewards.lock import LockStatus

if TYPE_CHECKING:
    from uuid import UUID

    from salesquest.domain.model import Campaign, Seller, Submission
    from salesquest.domain.ports.persistence import SubmissionRepository
    from salesquest.domain.ports.unit_of_work import IncentiveRepositories, IncentiveUnitOfWork

log = logging.getLogger(__name__)

_CENTS = Decimal("0.01")


@dataclass(frozen=True, slots=True)
class SettlementResult:
    tier_number: int
    tier_complete: bool
    lock: LockStatus | None = None
    manager_commission: Decimal | None = None

    @property
    def rewarded(self) -> bool:
        return self.lock is LockStatus.ACQUIRED


class RewardLedger:
    def settle(
        self,
        uow: IncentiveUnitOfWork,
        submission: Submission,
        campaign: Campaign,
        seller: Seller,
        *,
        layout: CampaignLayout | None = None,
    ) -> SettlementResult:
        tier_number = submission.validated_tier_number
        if tier_number is None:
            raise ValueError(f"Submission {submission.id} has no validated tier")

        repos = uow.repositories
        repos.notifications.notify(
            seller.id, f"Your sale '{submission.order_number}' was APPROVED."
        )

        effective_layout = layout or CampaignLayout.build(
            campaign, repos.requirements.list_for_campaign(campaign.id)
        )
        if not tier_complete(repos.submissions, effective_layout, seller.id, tier_number):
            return SettlementResult(tier_number=tier_number, tier_complete=False)

        outcome = repos.tier_completions.try_acquire(
            seller_id=seller.id, campaign_id=campaign.id, tier_number=tier_number
        )
        if outcome.status is LockStatus.ALREADY_HELD:
            log.warning(
                "Tier %s of seller %s in campaign %s already settled; skipping rewards",
                tier_number,
                seller.id,
                campaign.id,
            )
            return SettlementResult(
                tier_number=tier_number, tier_complete=True, lock=outcome.status
            )
        outcome.raise_for_error()

        commission = self._apply_rewards(repos, campaign, seller, tier_number)
        log.info(
            "Tier %s of seller %s completed in campaign %s; rewards applied",
            tier_number,
            seller.id,
            campaign.id,
        )
        return SettlementResult(
            tier_number=tier_number,
            tier_complete=True,
            lock=outcome.status,
            manager_commission=commission,
        )

    def _apply_rewards(
        self,
        repos: IncentiveRepositories,
        campaign: Campaign,
        seller: Seller,
        tier_number: int,
    ) -> Decimal | None:
        tier_amount = Decimal(campaign.points_per_tier)
        repos.ledger.append(
            LedgerEntry(
                beneficiary_id=seller.id,
                campaign_id=campaign.id,
                amount=tier_amount,
                kind=LedgerKind.SELLER,
                note=f"Automatic payment for completing tier {tier_number}.",
            )
        )
        repos.sellers.increment_balances(
            seller.id, coins=campaign.coins_per_tier, points=tier_amount
        )

        commission: Decimal | None = None
        percent = Decimal(campaign.manager_commission_percent)
        if seller.manager_id is not None and percent > 0:
            commission = manager_commission(tier_amount, percent)
            repos.ledger.append(
                LedgerEntry(
                    beneficiary_id=seller.manager_id,
                    campaign_id=campaign.id,
                    amount=commission,
                    kind=LedgerKind.MANAGER,
                    note=f"Commission for tier {tier_number} completed by {seller.name}.",
                )
            )

        repos.notifications.notify(
            seller.id,
            f"Congratulations! You completed tier {tier_number} of '{campaign.title}'. "
            "Your rewards have been credited.",
        )
        return commission


def manager_commission(tier_amount: Decimal, percent: Decimal) -> Decimal:
    return (tier_amount * percent / 100).quantize(_CENTS, rounding=ROUND_HALF_UP)


def tier_complete(
    submissions: SubmissionRepository,
    layout: CampaignLayout,
    seller_id: UUID,
    tier_number: int,
) -> bool:
    """Fresh aggregate check: every slot of the tier has reached its quota."""

    slots = layout.slots_in_tier(tier_number)
    if not slots:
        return False
    for slot_order in slots:
        validated = submissions.count_validated(
            seller_id=seller_id,
            campaign_id=layout.campaign.id,
            requirement_ids=layout.related_requirement_ids(slot_order),
            tier_number=tier_number,
        )
        if validated < layout.quota(tier_number, slot_order):
            return False
    return True
