"""Reward settlement."""

from __future__ import annotations

from .ledger import RewardLedger, SettlementResult, manager_commission, tier_complete
from .lock import LockOutcome, LockStatus

__all__ = [
    "LockOutcome",
    "LockStatus",
    "RewardLedger",
    "SettlementResult",
    "manager_commission",
    "tier_complete",
]
