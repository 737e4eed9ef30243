"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

from salesquest.adapters.spreadsheet import parse_roster
from salesquest.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyIncentiveUnitOfWork,
    is_started,
    startup,
)
from salesquest.config import get_reconciliation_config
from salesquest.domain.overrides import reject_one, validate_one, validate_one_with_result
from salesquest.domain.progress import seller_progress
from salesquest.domain.reconciliation.engine import BatchReconciler
from salesquest.domain.reconciliation.identity import IdentityMatcher
from salesquest.domain.submissions import submit_order

if TYPE_CHECKING:
    from uuid import UUID

    from salesquest.adapters.spreadsheet import ReconciliationRequest, Roster, RosterFile
    from salesquest.config import ReconciliationConfig
    from salesquest.domain.model import Submission
    from salesquest.domain.ports.unit_of_work import IncentiveUnitOfWork
    from salesquest.domain.progress import SellerProgress
    from salesquest.domain.reconciliation.contracts import ReconciliationSummary
    from salesquest.domain.rewards.ledger import SettlementResult

UnitOfWorkFactory = Callable[[], "IncentiveUnitOfWork"]


log = getLogger(__name__)


def _resolve_factory(unit_of_work_factory: UnitOfWorkFactory | None) -> UnitOfWorkFactory:
    if unit_of_work_factory is not None:
        return unit_of_work_factory
    if not is_started():
        startup()
    return SqlAlchemyIncentiveUnitOfWork


def build_reconciler(
    unit_of_work_factory: UnitOfWorkFactory,
    *,
    config: ReconciliationConfig | None = None,
) -> BatchReconciler:
    effective_config = config or get_reconciliation_config()
    return BatchReconciler(
        unit_of_work_factory=unit_of_work_factory,
        identity=IdentityMatcher(tax_id_length=effective_config.tax_id_length),
        order_field=effective_config.order_field,
        org_field=effective_config.org_field,
    )


def load_roster(
    payload: RosterFile,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> Roster:
    """Store organizations, sellers and campaign definitions from a roster file."""

    roster = parse_roster(payload)
    with _resolve_factory(unit_of_work_factory)() as uow:
        repos = uow.repositories
        for organization in roster.organizations:
            repos.organizations.add(organization)
        for seller in roster.sellers:
            repos.sellers.add(seller)
        for campaign in roster.campaigns:
            repos.campaigns.add(campaign)
        for tier in roster.tiers:
            repos.tiers.add(tier)
        for requirement in roster.requirements:
            repos.requirements.add(requirement)
        uow.commit()
    log.info(
        "Loaded roster: organizations=%s, sellers=%s, campaigns=%s, requirements=%s",
        len(roster.organizations),
        len(roster.sellers),
        len(roster.campaigns),
        len(roster.requirements),
    )
    return roster


def submit_seller_order(
    *,
    order_number: str,
    seller_id: UUID,
    campaign_id: UUID,
    requirement_id: UUID,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> Submission:
    return submit_order(
        order_number=order_number,
        seller_id=seller_id,
        campaign_id=campaign_id,
        requirement_id=requirement_id,
        unit_of_work_factory=_resolve_factory(unit_of_work_factory),
    )


def reconcile_campaign(
    request: ReconciliationRequest,
    *,
    simulate: bool | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: ReconciliationConfig | None = None,
) -> ReconciliationSummary:
    """Run a reconciliation pass described by ``request``.

    ``simulate`` overrides the flag stored in the request when given.
    """

    reconciler = build_reconciler(_resolve_factory(unit_of_work_factory), config=config)
    return reconciler.reconcile(
        request.campaign_id,
        simulate=request.simulate if simulate is None else simulate,
        column_mapping=request.column_mapping,
        rows=request.rows,
    )


def validate_submission(
    submission_id: UUID,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> Submission:
    return validate_one(submission_id, unit_of_work_factory=_resolve_factory(unit_of_work_factory))


def validate_submission_with_result(
    submission_id: UUID,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> tuple[Submission, SettlementResult]:
    return validate_one_with_result(
        submission_id, unit_of_work_factory=_resolve_factory(unit_of_work_factory)
    )


def reject_submission(
    submission_id: UUID,
    reason: str,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> Submission:
    return reject_one(
        submission_id, reason, unit_of_work_factory=_resolve_factory(unit_of_work_factory)
    )


def get_seller_progress(
    seller_id: UUID,
    campaign_id: UUID,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> SellerProgress:
    return seller_progress(
        seller_id, campaign_id, unit_of_work_factory=_resolve_factory(unit_of_work_factory)
    )
