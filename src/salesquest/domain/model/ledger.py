"""Reward bookkeeping: tier completion locks, ledger entries, notifications."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from salesquest.domain.model.base import Entity, utcnow
from salesquest.domain.model.enums import LedgerKind

if TYPE_CHECKING:
    from datetime import datetime
    from decimal import Decimal
    from uuid import UUID


@dataclass(eq=False, kw_only=True)
class TierCompletion(Entity):
    """Proof that the rewards of (seller, campaign, tier) were granted. Insert-only."""

    seller_id: UUID
    campaign_id: UUID
    tier_number: int
    completed_at: datetime = field(default_factory=utcnow)


@dataclass(eq=False, kw_only=True)
class LedgerEntry(Entity):
    """Append-only financial record."""

    beneficiary_id: UUID
    campaign_id: UUID
    amount: Decimal
    kind: LedgerKind
    note: str = ""
    created_at: datetime = field(default_factory=utcnow)


@dataclass(eq=False, kw_only=True)
class Notification(Entity):
    recipient_id: UUID
    message: str
    created_at: datetime = field(default_factory=utcnow)
