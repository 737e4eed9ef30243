"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import exists, func, select, update
from sqlalchemy.exc import IntegrityError

from salesquest.adapters.sqlalchemy.mappings import (
    ledger_entry_table,
    notification_table,
    requirement_table,
    seller_table,
    submission_table,
    tier_completion_table,
    tier_table,
)
from salesquest.domain.model import (
    Campaign,
    LedgerEntry,
    Notification,
    Organization,
    Requirement,
    Seller,
    Submission,
    SubmissionStatus,
    Tier,
    TierCompletion,
)
from salesquest.domain.rewards.lock import LockOutcome

if TYPE_CHECKING:
    from collections.abc import Collection
    from decimal import Decimal
    from uuid import UUID

    from sqlalchemy.orm import Session

    from salesquest.domain.model import Entity

log = logging.getLogger(__name__)


class SqlAlchemyRepository[TEntity: Entity]:
    """Shared add/get for aggregates stored in one table."""

    def __init__(self, session: Session, entity_cls: type[TEntity]) -> None:
        self.session = session
        self._entity_cls = entity_cls

    def add(self, entity: TEntity) -> None:
        self.session.add(entity)

    def get(self, entity_id: UUID) -> TEntity | None:
        return self.session.get(self._entity_cls, entity_id)


class SqlAlchemyOrganizationRepository(SqlAlchemyRepository[Organization]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, Organization)


class SqlAlchemySellerRepository(SqlAlchemyRepository[Seller]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, Seller)

    def increment_balances(self, seller_id: UUID, *, coins: int, points: Decimal) -> None:
        # single UPDATE so concurrent settlements never lose an increment
        stmt = (
            update(seller_table)
            .where(seller_table.c.id == seller_id)
            .values(
                coin_balance=seller_table.c.coin_balance + coins,
                ranking_coins=seller_table.c.ranking_coins + coins,
                ranking_points=seller_table.c.ranking_points + points,
            )
        )
        self.session.execute(stmt)
        seller = self.session.get(Seller, seller_id)
        if seller is not None:
            self.session.expire(seller, ["coin_balance", "ranking_coins", "ranking_points"])


class SqlAlchemyCampaignRepository(SqlAlchemyRepository[Campaign]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, Campaign)


class SqlAlchemyTierRepository(SqlAlchemyRepository[Tier]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, Tier)

    def list_for_campaign(self, campaign_id: UUID) -> list[Tier]:
        stmt = (
            select(Tier)
            .where(tier_table.c.campaign_id == campaign_id)
            .order_by(tier_table.c.number)
        )
        return list(self.session.execute(stmt).scalars())


class SqlAlchemyRequirementRepository(SqlAlchemyRepository[Requirement]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, Requirement)

    def list_for_campaign(self, campaign_id: UUID) -> list[Requirement]:
        stmt = (
            select(Requirement)
            .where(requirement_table.c.campaign_id == campaign_id)
            .order_by(requirement_table.c.tier_number, requirement_table.c.slot_order)
        )
        return list(self.session.execute(stmt).scalars())


class SqlAlchemySubmissionRepository(SqlAlchemyRepository[Submission]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, Submission)

    def find(self, *, order_number: str, seller_id: UUID, campaign_id: UUID) -> Submission | None:
        stmt = (
            select(Submission)
            .where(submission_table.c.order_number == order_number)
            .where(submission_table.c.seller_id == seller_id)
            .where(submission_table.c.campaign_id == campaign_id)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def list_pending(self, campaign_id: UUID) -> list[Submission]:
        stmt = (
            select(Submission)
            .where(submission_table.c.campaign_id == campaign_id)
            .where(submission_table.c.status == SubmissionStatus.PENDING)
            .order_by(submission_table.c.submitted_at, submission_table.c.id)
        )
        return list(self.session.execute(stmt).scalars())

    def count_validated(
        self,
        *,
        seller_id: UUID,
        campaign_id: UUID,
        requirement_ids: Collection[UUID],
        tier_number: int | None = None,
    ) -> int:
        if not requirement_ids:
            return 0
        self.session.flush()
        stmt = (
            select(func.count())
            .select_from(submission_table)
            .where(submission_table.c.seller_id == seller_id)
            .where(submission_table.c.campaign_id == campaign_id)
            .where(submission_table.c.requirement_id.in_(list(requirement_ids)))
            .where(submission_table.c.status == SubmissionStatus.VALIDATED)
        )
        if tier_number is not None:
            stmt = stmt.where(submission_table.c.validated_tier_number == tier_number)
        return int(self.session.execute(stmt).scalar_one())

    def count_pending(
        self,
        *,
        seller_id: UUID,
        campaign_id: UUID,
        requirement_ids: Collection[UUID],
    ) -> int:
        if not requirement_ids:
            return 0
        stmt = (
            select(func.count())
            .select_from(submission_table)
            .where(submission_table.c.seller_id == seller_id)
            .where(submission_table.c.campaign_id == campaign_id)
            .where(submission_table.c.requirement_id.in_(list(requirement_ids)))
            .where(submission_table.c.status == SubmissionStatus.PENDING)
        )
        return int(self.session.execute(stmt).scalar_one())

    def find_validated_holder(
        self, *, order_number: str, campaign_id: UUID, exclude_seller_id: UUID
    ) -> UUID | None:
        self.session.flush()
        stmt = (
            select(submission_table.c.seller_id)
            .where(submission_table.c.order_number == order_number)
            .where(submission_table.c.campaign_id == campaign_id)
            .where(submission_table.c.seller_id != exclude_seller_id)
            .where(submission_table.c.status == SubmissionStatus.VALIDATED)
            .order_by(submission_table.c.validated_at)
            .limit(1)
        )
        return self.session.execute(stmt).scalar_one_or_none()


class SqlAlchemyTierCompletionRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def try_acquire(self, *, seller_id: UUID, campaign_id: UUID, tier_number: int) -> LockOutcome:
        """Insert the completion row inside a SAVEPOINT.

        A unique violation only rolls back the savepoint, so the caller's
        transaction stays usable and decides what to do with the outcome.
        """

        completion = TierCompletion(
            seller_id=seller_id, campaign_id=campaign_id, tier_number=tier_number
        )
        try:
            with self.session.begin_nested():
                self.session.add(completion)
                self.session.flush()
        except IntegrityError as exc:
            if self._exists(seller_id=seller_id, campaign_id=campaign_id, tier_number=tier_number):
                log.info(
                    "Tier %s of seller %s in campaign %s is already locked",
                    tier_number,
                    seller_id,
                    campaign_id,
                )
                return LockOutcome.already_held()
            log.error("Tier completion insert failed for seller %s: %s", seller_id, exc)
            return LockOutcome.failed(exc)
        return LockOutcome.acquired()

    def completed_tiers(self, *, seller_id: UUID, campaign_id: UUID) -> list[int]:
        stmt = (
            select(tier_completion_table.c.tier_number)
            .where(tier_completion_table.c.seller_id == seller_id)
            .where(tier_completion_table.c.campaign_id == campaign_id)
            .order_by(tier_completion_table.c.tier_number)
        )
        return list(self.session.execute(stmt).scalars())

    def _exists(self, *, seller_id: UUID, campaign_id: UUID, tier_number: int) -> bool:
        stmt = select(
            exists()
            .where(tier_completion_table.c.seller_id == seller_id)
            .where(tier_completion_table.c.campaign_id == campaign_id)
            .where(tier_completion_table.c.tier_number == tier_number)
        )
        return bool(self.session.execute(stmt).scalar())


class SqlAlchemyLedgerRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def append(self, entry: LedgerEntry) -> None:
        self.session.add(entry)

    def list_for_campaign(self, campaign_id: UUID) -> list[LedgerEntry]:
        stmt = (
            select(LedgerEntry)
            .where(ledger_entry_table.c.campaign_id == campaign_id)
            .order_by(ledger_entry_table.c.created_at)
        )
        return list(self.session.execute(stmt).scalars())


class SqlAlchemyNotificationSink:
    def __init__(self, session: Session) -> None:
        self.session = session

    def notify(self, recipient_id: UUID, message: str) -> Notification:
        notification = Notification(recipient_id=recipient_id, message=message)
        self.session.add(notification)
        return notification

    def list_for(self, recipient_id: UUID) -> list[Notification]:
        stmt = (
            select(Notification)
            .where(notification_table.c.recipient_id == recipient_id)
            .order_by(notification_table.c.created_at)
        )
        return list(self.session.execute(stmt).scalars())
