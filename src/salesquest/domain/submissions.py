"""Seller-facing order submission."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from salesquest.domain.errors import (
    CampaignNotFoundError,
    DuplicateSubmissionError,
    RequirementNotFoundError,
    SellerNotFoundError,
)
from salesquest.domain.model import Submission

if TYPE_CHECKING:
    from collections.abc import Callable
    from uuid import UUID

    from salesquest.domain.ports.unit_of_work import IncentiveUnitOfWork

log = logging.getLogger(__name__)


def submit_order(
    *,
    order_number: str,
    seller_id: UUID,
    campaign_id: UUID,
    requirement_id: UUID,
    unit_of_work_factory: Callable[[], IncentiveUnitOfWork],
) -> Submission:
    """Record a PENDING submission of ``order_number`` against a requirement.

    A seller may claim an order once per campaign; a second attempt raises
    ``DuplicateSubmissionError`` whatever the first submission's status is.
    """

    cleaned = order_number.strip()
    if not cleaned:
        raise ValueError("order_number must not be blank")

    with unit_of_work_factory() as uow:
        repos = uow.repositories
        if repos.campaigns.get(campaign_id) is None:
            raise CampaignNotFoundError(f"Campaign {campaign_id} not found")
        if repos.sellers.get(seller_id) is None:
            raise SellerNotFoundError(f"Seller {seller_id} not found")
        requirement = repos.requirements.get(requirement_id)
        if requirement is None or requirement.campaign_id != campaign_id:
            raise RequirementNotFoundError(
                f"Requirement {requirement_id} does not belong to campaign {campaign_id}"
            )
        existing = repos.submissions.find(
            order_number=cleaned, seller_id=seller_id, campaign_id=campaign_id
        )
        if existing is not None:
            raise DuplicateSubmissionError(
                f"Order '{cleaned}' was already submitted in this campaign "
                f"(status {existing.status.value})"
            )

        submission = Submission(
            order_number=cleaned,
            seller_id=seller_id,
            campaign_id=campaign_id,
            requirement_id=requirement_id,
        )
        repos.submissions.add(submission)
        uow.commit()

    log.info("Seller %s submitted order '%s' for campaign %s", seller_id, cleaned, campaign_id)
    return submission
