"""Batch reconciliation of pending submissions against an external dataset.

The run has two phases:

1. Decision phase. One read-only unit of work loads the campaign layout and
   every PENDING submission, then decides each one in ``submitted_at`` order.
   Nothing is written, so a simulation simply stops here.
2. Write phase. Each decision is persisted in its own unit of work. VALIDATED
   decisions re-read the validated count, re-check conflicts and settle rewards
   inside that same transaction. Capacity rejections take the same path, so a
   unit projected earlier in the pass that failed to persist frees its place.

A storage failure while persisting one submission rolls back that submission's
transaction only; the batch keeps going and the summary counts it as failed.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from salesquest.domain.errors import CampaignNotFoundError, CapacityReachedError
from salesquest.domain.model import SellerOrganization, SubmissionStatus
from salesquest.domain.reconciliation.conflicts import ConflictResolver
from salesquest.domain.reconciliation.contracts import (
    ORDER_NUMBER_FIELD,
    ORG_ID_FIELD,
    ColumnMapping,
    Decision,
    LookupStatus,
    ReconciliationSummary,
    cell_text,
)
from salesquest.domain.reconciliation.identity import IdentityMatcher
from salesquest.domain.reconciliation.lookup import find_order
from salesquest.domain.reconciliation.reallocate import MultiSlotReallocator
from salesquest.domain.reconciliation.rules import RuleEvaluator
from salesquest.domain.reconciliation.spillover import CampaignLayout, SpilloverAllocator
from salesquest.domain.rewards.ledger import RewardLedger
from salesquest.domain.settlement import apply_validation, load_settlement_context

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping, Sequence
    from uuid import UUID

    from salesquest.domain.model import Seller, Submission
    from salesquest.domain.ports.unit_of_work import IncentiveRepositories, IncentiveUnitOfWork
    from salesquest.domain.reconciliation.contracts import ExternalRecord

log = logging.getLogger(__name__)


@dataclass(slots=True)
class _PassState:
    """Bookkeeping shared by every decision of one pass."""

    layout: CampaignLayout
    conflicts: ConflictResolver
    # units decided VALIDATED so far in this pass, per (seller, slot)
    projected: Counter[tuple[UUID, int]] = field(default_factory=Counter[tuple["UUID", int]])
    organizations: dict[UUID, SellerOrganization] = field(
        default_factory=dict["UUID", SellerOrganization]
    )


@dataclass(slots=True)
class BatchReconciler:
    unit_of_work_factory: Callable[[], IncentiveUnitOfWork]
    rules: RuleEvaluator = field(default_factory=RuleEvaluator)
    identity: IdentityMatcher = field(default_factory=IdentityMatcher)
    reallocator: MultiSlotReallocator = field(default_factory=MultiSlotReallocator)
    allocator: SpilloverAllocator = field(default_factory=SpilloverAllocator)
    ledger: RewardLedger = field(default_factory=RewardLedger)
    order_field: str = ORDER_NUMBER_FIELD
    org_field: str = ORG_ID_FIELD

    def reconcile(
        self,
        campaign_id: UUID,
        *,
        simulate: bool,
        column_mapping: ColumnMapping | Mapping[str, str | Sequence[str]],
        rows: Iterable[ExternalRecord],
    ) -> ReconciliationSummary:
        mapping = (
            column_mapping
            if isinstance(column_mapping, ColumnMapping)
            else ColumnMapping(column_mapping)
        )
        dataset = tuple(rows)
        log.info(
            "Reconciling campaign %s against %s external rows (simulate=%s)",
            campaign_id,
            len(dataset),
            simulate,
        )

        with self.unit_of_work_factory() as uow:
            decisions = self._decide_all(uow.repositories, campaign_id, mapping, dataset)

        if simulate:
            log.info("Simulation only: %s decisions computed, nothing persisted", len(decisions))
        else:
            for decision in decisions:
                self._persist(campaign_id, decision)

        summary = ReconciliationSummary.from_decisions(campaign_id, decisions, simulate=simulate)
        log.info("Reconciliation of campaign %s finished: %s", campaign_id, summary.counts())
        return summary

    # ------------------------------------------------------------------
    # decision phase

    def _decide_all(
        self,
        repos: IncentiveRepositories,
        campaign_id: UUID,
        mapping: ColumnMapping,
        rows: Sequence[ExternalRecord],
    ) -> list[Decision]:
        campaign = repos.campaigns.get(campaign_id)
        if campaign is None:
            raise CampaignNotFoundError(f"Campaign {campaign_id} not found")
        requirements = repos.requirements.list_for_campaign(campaign_id)
        state = _PassState(
            layout=CampaignLayout.build(campaign, requirements),
            conflicts=ConflictResolver(repos.submissions),
        )
        pending = repos.submissions.list_pending(campaign_id)
        log.debug("Found %s pending submissions for campaign %s", len(pending), campaign_id)
        return [self._decide(repos, state, submission, mapping, rows) for submission in pending]

    def _decide(
        self,
        repos: IncentiveRepositories,
        state: _PassState,
        submission: Submission,
        mapping: ColumnMapping,
        rows: Sequence[ExternalRecord],
    ) -> Decision:
        decision = Decision(
            submission_id=submission.id,
            order_number=submission.order_number,
            seller_id=submission.seller_id,
            status=SubmissionStatus.PENDING,
            requirement_id=submission.requirement_id,
            declared_requirement_id=submission.requirement_id,
        )

        lookup = find_order(submission.order_number, rows, mapping, order_field=self.order_field)
        if lookup.status is LookupStatus.AMBIGUOUS:
            return _conclude(decision, SubmissionStatus.CONFLICT, lookup.reason)
        if lookup.status is not LookupStatus.FOUND:
            return _conclude(decision, SubmissionStatus.REJECTED, lookup.reason)
        record = lookup.record

        org_column = mapping.column_for(self.org_field)
        if org_column is None:
            return _conclude(
                decision, SubmissionStatus.REJECTED, f"No column mapped to {self.org_field}"
            )
        seller = repos.sellers.get(submission.seller_id)
        if seller is None:
            return _conclude(
                decision, SubmissionStatus.REJECTED, f"Seller {submission.seller_id} not found"
            )
        identity = self.identity.matches(
            cell_text(record, org_column), self._seller_organization(repos, state, seller)
        )
        if not identity.matched:
            return _conclude(decision, SubmissionStatus.REJECTED, identity.reason)
        decision.identity_via = identity.via

        layout = state.layout
        requirement = layout.requirement(submission.requirement_id)
        if requirement is None:
            return _conclude(
                decision,
                SubmissionStatus.REJECTED,
                "Declared requirement is not part of this campaign",
            )
        outcome = self.rules.evaluate(record, requirement, mapping)
        if not outcome.satisfied:
            declared_failure = f"{requirement.label}: {outcome.reason}"
            reassignment = self.reallocator.try_reassign(
                record, requirement, layout.siblings(requirement), mapping
            )
            if reassignment.requirement is None:
                attempts = reassignment.joined_log(declared_failure)
                return _conclude(
                    decision,
                    SubmissionStatus.REJECTED,
                    f"Order meets no requirement of tier {requirement.tier_number}. "
                    f"Attempts: {attempts}",
                )
            requirement = reassignment.requirement
            decision.requirement_id = requirement.id
            decision.audit_note = reassignment.joined_log(declared_failure)

        holder = state.conflicts.conflicting_seller(
            submission.order_number, submission.campaign_id, submission.seller_id
        )
        if holder is not None:
            return _conclude(decision, SubmissionStatus.CONFLICT, _conflict_reason(holder))

        slot_key = (submission.seller_id, requirement.slot_order)
        validated_count = repos.submissions.count_validated(
            seller_id=submission.seller_id,
            campaign_id=submission.campaign_id,
            requirement_ids=layout.related_requirement_ids(requirement.slot_order),
        )
        try:
            projected_tier = self.allocator.allocate(
                validated_count + state.projected[slot_key],
                layout.quota_function(requirement.slot_order),
                ceiling=layout.ceiling,
            )
        except CapacityReachedError as exc:
            decision.capacity_limited = True
            return _conclude(decision, SubmissionStatus.REJECTED, str(exc))

        state.projected[slot_key] += 1
        state.conflicts.claim(submission.order_number, submission.campaign_id, submission.seller_id)
        decision.projected_tier = projected_tier
        return _conclude(decision, SubmissionStatus.VALIDATED, None)

    def _seller_organization(
        self, repos: IncentiveRepositories, state: _PassState, seller: Seller
    ) -> SellerOrganization:
        cached = state.organizations.get(seller.id)
        if cached is not None:
            return cached
        tax_id = parent_tax_id = None
        organization = (
            repos.organizations.get(seller.organization_id)
            if seller.organization_id is not None
            else None
        )
        if organization is not None:
            tax_id = organization.tax_id
            if organization.parent_id is not None:
                parent = repos.organizations.get(organization.parent_id)
                parent_tax_id = parent.tax_id if parent is not None else None
        view = SellerOrganization(
            organization_id=seller.organization_id,
            tax_id=tax_id,
            parent_tax_id=parent_tax_id,
        )
        state.organizations[seller.id] = view
        return view

    # ------------------------------------------------------------------
    # write phase

    def _persist(self, campaign_id: UUID, decision: Decision) -> None:
        try:
            with self.unit_of_work_factory() as uow:
                submission = uow.repositories.submissions.get(decision.submission_id)
                if submission is None or not submission.is_open:
                    log.warning(
                        "Submission %s changed during reconciliation; leaving it alone",
                        decision.submission_id,
                    )
                    decision.failed = True
                    return
                # capacity rejections are re-checked against fresh counts
                if decision.status is SubmissionStatus.VALIDATED or decision.capacity_limited:
                    self._persist_validated(uow, submission, decision)
                elif decision.status is SubmissionStatus.REJECTED:
                    submission.mark_rejected(decision.reason or "Rejected")
                else:
                    submission.mark_conflict(decision.reason or "Conflict")
                uow.commit()
        except Exception:  # noqa: BLE001 - one failing submission must not stop the batch
            log.exception(
                "Failed to persist decision for submission %s of campaign %s",
                decision.submission_id,
                campaign_id,
            )
            decision.failed = True

    def _persist_validated(
        self, uow: IncentiveUnitOfWork, submission: Submission, decision: Decision
    ) -> None:
        if decision.reassigned and decision.requirement_id is not None:
            submission.reassign(decision.requirement_id, note=decision.audit_note)

        holder = ConflictResolver(uow.repositories.submissions).conflicting_seller(
            submission.order_number, submission.campaign_id, submission.seller_id
        )
        if holder is not None:
            reason = _conflict_reason(holder)
            submission.mark_conflict(reason)
            _conclude(decision, SubmissionStatus.CONFLICT, reason)
            return

        context = load_settlement_context(uow, submission)
        try:
            result = apply_validation(
                uow, submission, context, allocator=self.allocator, ledger=self.ledger
            )
        except CapacityReachedError as exc:
            submission.mark_rejected(str(exc))
            _conclude(decision, SubmissionStatus.REJECTED, str(exc))
            return
        decision.tier_number = result.tier_number
        if decision.capacity_limited:
            log.info(
                "Submission %s fits tier %s after all; capacity was freed during the pass",
                submission.id,
                result.tier_number,
            )
            decision.capacity_limited = False
            _conclude(decision, SubmissionStatus.VALIDATED, None)


def _conclude(decision: Decision, status: SubmissionStatus, reason: str | None) -> Decision:
    decision.status = status
    decision.reason = reason
    return decision


def _conflict_reason(holder_seller_id: UUID) -> str:
    return f"Order already validated for another seller ({holder_seller_id}) in this campaign"
