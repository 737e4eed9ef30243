"""Organizations and the sellers attached to them."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING

from salesquest.domain.model.base import Entity

if TYPE_CHECKING:
    from uuid import UUID


@dataclass(eq=False, kw_only=True)
class Organization(Entity):
    """A store identified by its tax id. ``parent_id`` points at the head office."""

    name: str
    tax_id: str | None = None
    parent_id: UUID | None = None


@dataclass(eq=False, kw_only=True)
class Seller(Entity):
    name: str
    organization_id: UUID | None = None
    manager_id: UUID | None = None

    coin_balance: int = 0
    ranking_coins: int = 0
    ranking_points: Decimal = Decimal(0)


@dataclass(frozen=True, slots=True)
class SellerOrganization:
    """Identity view of a seller's organization used for tax-id matching."""

    organization_id: UUID | None
    tax_id: str | None
    parent_tax_id: str | None = None

    @property
    def has_parent(self) -> bool:
        return self.parent_tax_id is not None
