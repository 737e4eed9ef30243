"""Rule evaluation: a small interpreter over data-driven requirement conditions."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from salesquest.domain.model import ConditionOperator
from salesquest.domain.reconciliation.contracts import RuleOutcome, cell_text

if TYPE_CHECKING:
    from collections.abc import Callable

    from salesquest.domain.model import Condition, Requirement
    from salesquest.domain.reconciliation.contracts import ColumnMapping, ExternalRecord


def _parse_number(value: str) -> float | None:
    try:
        number = float(value.strip())
    except ValueError:
        return None
    return None if math.isnan(number) else number


def _equals(actual: str, expected: str) -> bool:
    return actual.strip() == expected.strip()


def _contains(actual: str, expected: str) -> bool:
    return expected in actual


_TEXT_OPERATORS: dict[ConditionOperator, Callable[[str, str], bool]] = {
    ConditionOperator.EQUALS: _equals,
    ConditionOperator.NOT_EQUALS: lambda actual, expected: not _equals(actual, expected),
    ConditionOperator.CONTAINS: _contains,
    ConditionOperator.NOT_CONTAINS: lambda actual, expected: not _contains(actual, expected),
}

_NUMERIC_OPERATORS: dict[ConditionOperator, Callable[[float, float], bool]] = {
    ConditionOperator.GREATER_THAN: lambda actual, expected: actual > expected,
    ConditionOperator.LESS_THAN: lambda actual, expected: actual < expected,
}


class RuleEvaluator:
    """Evaluate a requirement's AND-ed conditions against one external record."""

    def evaluate(
        self,
        record: ExternalRecord,
        requirement: Requirement,
        mapping: ColumnMapping,
    ) -> RuleOutcome:
        for condition in requirement.conditions:
            outcome = self.check(record, condition, mapping)
            if not outcome.satisfied:
                return outcome
        return RuleOutcome.ok()

    def check(
        self,
        record: ExternalRecord,
        condition: Condition,
        mapping: ColumnMapping,
    ) -> RuleOutcome:
        column = mapping.column_for(condition.field)
        if column is None:
            return RuleOutcome.failed(f"Field '{condition.field}' not mapped")

        actual = cell_text(record, column)
        expected = condition.expected_value

        text_op = _TEXT_OPERATORS.get(condition.operator)
        if text_op is not None:
            if text_op(actual, expected):
                return RuleOutcome.ok()
            return RuleOutcome.failed(_unsatisfied(condition, actual))

        numeric_op = _NUMERIC_OPERATORS[condition.operator]
        actual_number = _parse_number(actual)
        expected_number = _parse_number(expected)
        if actual_number is None or expected_number is None:
            return RuleOutcome.failed(
                f"Condition not satisfied: {condition.describe()} "
                f"needs numeric values (found '{actual}')"
            )
        if numeric_op(actual_number, expected_number):
            return RuleOutcome.ok()
        return RuleOutcome.failed(_unsatisfied(condition, actual))


def _unsatisfied(condition: Condition, actual: str) -> str:
    return f"Condition not satisfied: {condition.describe()} (found '{actual}')"
