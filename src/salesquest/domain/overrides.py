"""Manual validation and rejection of a single submission by an operator."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from salesquest.domain.errors import InvalidTransitionError, SubmissionNotFoundError
from salesquest.domain.settlement import apply_validation, load_settlement_context

if TYPE_CHECKING:
    from collections.abc import Callable
    from uuid import UUID

    from salesquest.domain.model import Submission
    from salesquest.domain.ports.unit_of_work import IncentiveUnitOfWork
    from salesquest.domain.reconciliation.spillover import SpilloverAllocator
    from salesquest.domain.rewards.ledger import RewardLedger, SettlementResult

log = logging.getLogger(__name__)


def validate_one(
    submission_id: UUID,
    *,
    unit_of_work_factory: Callable[[], IncentiveUnitOfWork],
    allocator: SpilloverAllocator | None = None,
    ledger: RewardLedger | None = None,
) -> Submission:
    """Validate one PENDING or CONFLICT submission and settle its tier."""

    submission, _ = validate_one_with_result(
        submission_id,
        unit_of_work_factory=unit_of_work_factory,
        allocator=allocator,
        ledger=ledger,
    )
    return submission


def validate_one_with_result(
    submission_id: UUID,
    *,
    unit_of_work_factory: Callable[[], IncentiveUnitOfWork],
    allocator: SpilloverAllocator | None = None,
    ledger: RewardLedger | None = None,
) -> tuple[Submission, SettlementResult]:
    """Like ``validate_one``, also returning the tier and reward outcome.

    Allocation, status change and reward settlement share one transaction, the
    same path the batch reconciler uses. ``CapacityReachedError`` propagates
    and leaves the submission untouched.
    """

    with unit_of_work_factory() as uow:
        submission = _load_open(uow, submission_id, action="validate")
        context = load_settlement_context(uow, submission)
        result = apply_validation(uow, submission, context, allocator=allocator, ledger=ledger)
        uow.commit()
    log.info(
        "Submission %s validated manually on tier %s (rewarded=%s)",
        submission.id,
        result.tier_number,
        result.rewarded,
    )
    return submission, result


def reject_one(
    submission_id: UUID,
    reason: str,
    *,
    unit_of_work_factory: Callable[[], IncentiveUnitOfWork],
) -> Submission:
    with unit_of_work_factory() as uow:
        submission = _load_open(uow, submission_id, action="reject")
        submission.mark_rejected(reason)
        uow.commit()
    log.info("Submission %s rejected manually: %s", submission.id, reason)
    return submission


def _load_open(uow: IncentiveUnitOfWork, submission_id: UUID, *, action: str) -> Submission:
    submission = uow.repositories.submissions.get(submission_id)
    if submission is None:
        raise SubmissionNotFoundError(f"Submission {submission_id} not found")
    if not submission.is_open:
        raise InvalidTransitionError(
            f"Cannot {action} submission {submission_id}: it is already {submission.status.value}"
        )
    return submission
