"""Reconciliation defaults: logical field names and tax-id format."""

from __future__ import annotations

from dataclasses import dataclass

from salesquest.domain.reconciliation.contracts import ORDER_NUMBER_FIELD, ORG_ID_FIELD
from salesquest.domain.reconciliation.identity import DEFAULT_TAX_ID_LENGTH

from .env import optional_env, optional_env_int


@dataclass(frozen=True, slots=True)
class ReconciliationConfig:
    tax_id_length: int = DEFAULT_TAX_ID_LENGTH
    order_field: str = ORDER_NUMBER_FIELD
    org_field: str = ORG_ID_FIELD


def get_reconciliation_config() -> ReconciliationConfig:
    return ReconciliationConfig(
        tax_id_length=optional_env_int(
            "SALESQUEST_TAX_ID_LENGTH", DEFAULT_TAX_ID_LENGTH, minimum=1
        ),
        order_field=optional_env("SALESQUEST_ORDER_FIELD", ORDER_NUMBER_FIELD),
        org_field=optional_env("SALESQUEST_ORG_FIELD", ORG_ID_FIELD),
    )
