"""Search sibling slots of the same tier when the declared requirement fails."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from salesquest.domain.reconciliation.contracts import Reassignment
from salesquest.domain.reconciliation.rules import RuleEvaluator

if TYPE_CHECKING:
    from collections.abc import Iterable

    from salesquest.domain.model import Requirement
    from salesquest.domain.reconciliation.contracts import ColumnMapping, ExternalRecord

log = logging.getLogger(__name__)


class MultiSlotReallocator:
    """Try every other requirement of the failed requirement's tier, first match wins.

    Only the same tier is searched, so one order can never jump ahead to a later tier.
    """

    def __init__(self, rules: RuleEvaluator | None = None) -> None:
        self.rules = rules or RuleEvaluator()

    def try_reassign(
        self,
        record: ExternalRecord,
        failed_requirement: Requirement,
        siblings: Iterable[Requirement],
        mapping: ColumnMapping,
    ) -> Reassignment:
        candidates = sorted(
            (
                sibling
                for sibling in siblings
                if sibling.id != failed_requirement.id
                and sibling.tier_number == failed_requirement.tier_number
                and sibling.campaign_id == failed_requirement.campaign_id
            ),
            key=lambda sibling: (sibling.slot_order, str(sibling.id)),
        )
        attempts: list[str] = []
        for candidate in candidates:
            outcome = self.rules.evaluate(record, candidate, mapping)
            if outcome.satisfied:
                log.info(
                    "Requirement %s satisfied by sibling %s (slot %s)",
                    failed_requirement.id,
                    candidate.id,
                    candidate.slot_order,
                )
                return Reassignment(requirement=candidate, attempt_log=tuple(attempts))
            attempts.append(f"{candidate.label}: {outcome.reason}")
        log.debug(
            "No sibling of requirement %s matched after %s attempts",
            failed_requirement.id,
            len(candidates),
        )
        return Reassignment(requirement=None, attempt_log=tuple(attempts))
