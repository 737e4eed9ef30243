"""Ports for persisting domain aggregates."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from salesquest.domain.model import (
    Campaign,
    LedgerEntry,
    Notification,
    Organization,
    Requirement,
    Seller,
    Submission,
    Tier,
)

if TYPE_CHECKING:
    from collections.abc import Collection, Sequence
    from decimal import Decimal
    from uuid import UUID

    from salesquest.domain.rewards.lock import LockOutcome


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...

    def get(self, entity_id: UUID) -> TEntity | None: ...


@runtime_checkable
class OrganizationRepository(Repository[Organization], Protocol):
    """Repository contract for organizations."""


@runtime_checkable
class SellerRepository(Repository[Seller], Protocol):
    """Repository contract for sellers, including the balance primitive."""

    def increment_balances(self, seller_id: UUID, *, coins: int, points: Decimal) -> None: ...


@runtime_checkable
class CampaignRepository(Repository[Campaign], Protocol):
    """Repository contract for campaigns."""


@runtime_checkable
class TierRepository(Repository[Tier], Protocol):
    def list_for_campaign(self, campaign_id: UUID) -> Sequence[Tier]: ...


@runtime_checkable
class RequirementRepository(Repository[Requirement], Protocol):
    def list_for_campaign(self, campaign_id: UUID) -> Sequence[Requirement]: ...


@runtime_checkable
class SubmissionRepository(Repository[Submission], Protocol):
    """Persistence contract for submissions and the aggregates the engine relies on."""

    def find(self, *, order_number: str, seller_id: UUID, campaign_id: UUID) -> Submission | None: ...

    def list_pending(self, campaign_id: UUID) -> Sequence[Submission]: ...

    def count_validated(
        self,
        *,
        seller_id: UUID,
        campaign_id: UUID,
        requirement_ids: Collection[UUID],
        tier_number: int | None = None,
    ) -> int: ...

    def count_pending(
        self,
        *,
        seller_id: UUID,
        campaign_id: UUID,
        requirement_ids: Collection[UUID],
    ) -> int: ...

    def find_validated_holder(
        self, *, order_number: str, campaign_id: UUID, exclude_seller_id: UUID
    ) -> UUID | None: ...


@runtime_checkable
class TierCompletionRepository(Protocol):
    """Insert-only lock records proving a tier was already rewarded."""

    def try_acquire(self, *, seller_id: UUID, campaign_id: UUID, tier_number: int) -> LockOutcome: ...

    def completed_tiers(self, *, seller_id: UUID, campaign_id: UUID) -> Sequence[int]: ...


@runtime_checkable
class LedgerRepository(Protocol):
    """Append-only ledger."""

    def append(self, entry: LedgerEntry) -> None: ...

    def list_for_campaign(self, campaign_id: UUID) -> Sequence[LedgerEntry]: ...


@runtime_checkable
class NotificationSink(Protocol):
    """Accepts (beneficiary, message) pairs inside the caller's transaction."""

    def notify(self, recipient_id: UUID, message: str) -> Notification: ...

    def list_for(self, recipient_id: UUID) -> Sequence[Notification]: ...
