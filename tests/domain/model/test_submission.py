from __future__ import annotations

from uuid import uuid4

import pytest

from salesquest.domain.errors import InvalidTransitionError
from salesquest.domain.model import Requirement, Submission, SubmissionStatus


def _submission() -> Submission:
    return Submission(
        order_number="M-1", seller_id=uuid4(), campaign_id=uuid4(), requirement_id=uuid4()
    )


def test_new_submission_is_pending_and_open() -> None:
    submission = _submission()

    assert submission.status is SubmissionStatus.PENDING
    assert submission.is_open


def test_conflict_can_still_be_validated() -> None:
    submission = _submission()
    submission.mark_conflict("another seller holds the order")

    submission.mark_validated(2)

    assert submission.status is SubmissionStatus.VALIDATED
    assert submission.validated_tier_number == 2
    assert submission.rejection_reason is None
    assert submission.validated_at is not None


@pytest.mark.parametrize("terminal", [SubmissionStatus.VALIDATED, SubmissionStatus.REJECTED])
def test_terminal_submissions_cannot_move(terminal: SubmissionStatus) -> None:
    submission = _submission()
    if terminal is SubmissionStatus.VALIDATED:
        submission.mark_validated(1)
    else:
        submission.mark_rejected("nope")

    with pytest.raises(InvalidTransitionError):
        submission.mark_rejected("again")
    with pytest.raises(InvalidTransitionError):
        submission.mark_conflict("again")


def test_reassign_keeps_the_originally_declared_requirement() -> None:
    submission = _submission()
    declared = submission.requirement_id
    first, second = uuid4(), uuid4()

    submission.reassign(first, note="first")
    submission.reassign(second, note="second")

    assert submission.requirement_id == second
    assert submission.declared_requirement_id == declared
    assert submission.audit_note == "second"


def test_tier_numbers_start_at_one() -> None:
    with pytest.raises(ValueError, match="positive"):
        _submission().mark_validated(0)


def test_requirement_needs_a_positive_quantity() -> None:
    with pytest.raises(ValueError, match="positive"):
        Requirement(campaign_id=uuid4(), tier_number=1, slot_order=1, target_quantity=0)
