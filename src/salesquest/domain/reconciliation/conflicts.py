"""Cross-seller conflict detection for the same external order."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from uuid import UUID

    from salesquest.domain.ports.persistence import SubmissionRepository


class ConflictResolver:
    """Detect another seller already credited for an order in the same campaign.

    Besides persisted VALIDATED submissions, the resolver remembers orders this
    batch pass has already decided VALIDATED, so a simulated pass and a real
    pass reach the same decisions.
    """

    def __init__(self, submissions: SubmissionRepository) -> None:
        self._submissions = submissions
        self._claims: dict[tuple[str, UUID], UUID] = {}

    def conflicting_seller(
        self, order_number: str, campaign_id: UUID, candidate_seller_id: UUID
    ) -> UUID | None:
        claimed_by = self._claims.get((order_number, campaign_id))
        if claimed_by is not None and claimed_by != candidate_seller_id:
            return claimed_by
        return self._submissions.find_validated_holder(
            order_number=order_number,
            campaign_id=campaign_id,
            exclude_seller_id=candidate_seller_id,
        )

    def has_conflict(self, order_number: str, campaign_id: UUID, candidate_seller_id: UUID) -> bool:
        return self.conflicting_seller(order_number, campaign_id, candidate_seller_id) is not None

    def claim(self, order_number: str, campaign_id: UUID, seller_id: UUID) -> None:
        self._claims.setdefault((order_number, campaign_id), seller_id)
