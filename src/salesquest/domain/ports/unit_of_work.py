"""Unit-of-work abstractions for coordinating repositories."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from salesquest.domain.ports.persistence import (
        CampaignRepository,
        LedgerRepository,
        NotificationSink,
        OrganizationRepository,
        RequirementRepository,
        SellerRepository,
        SubmissionRepository,
        TierCompletionRepository,
        TierRepository,
    )


@runtime_checkable
class RepositoryCollection(Protocol):
    """Marker protocol for groups of repositories managed together."""


@runtime_checkable
class UnitOfWork[TRepositories: RepositoryCollection](Protocol):
    """Generic unit-of-work boundary around a repository collection.

    One unit of work is one database transaction: ``commit`` makes every write
    visible at once, leaving the context without a commit rolls everything back.
    """

    @property
    def repositories(self) -> TRepositories: ...

    def __enter__(self) -> UnitOfWork[TRepositories]: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


@dataclass(slots=True)
class IncentiveRepositories(RepositoryCollection):
    """Repositories touched by reconciliation, overrides and settlement."""

    organizations: OrganizationRepository
    sellers: SellerRepository
    campaigns: CampaignRepository
    tiers: TierRepository
    requirements: RequirementRepository
    submissions: SubmissionRepository
    tier_completions: TierCompletionRepository
    ledger: LedgerRepository
    notifications: NotificationSink


type IncentiveUnitOfWork = UnitOfWork[IncentiveRepositories]
