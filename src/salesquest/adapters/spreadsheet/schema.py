"""Pydantic models describing the files the CLI accepts."""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal
from typing import cast
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from salesquest.domain.model import ConditionOperator, IncrementKind, TierMode, UnitType

type CellValue = str | int | float | bool | None


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class SpreadsheetBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ReconciliationRequest(SpreadsheetBaseModel):
    """One reconciliation call: mapping, rows and the simulate flag."""

    campaign_id: UUID = Field(alias="campaignId")
    simulate: bool = False
    column_mapping: dict[str, str | list[str]] = Field(alias="columnMapping")
    rows: list[dict[str, CellValue]] = Field(default_factory=list)

    @field_validator("column_mapping")
    @classmethod
    def _drop_blank_columns(
        cls, value: dict[str, str | list[str]]
    ) -> dict[str, str | list[str]]:
        cleaned: dict[str, str | list[str]] = {}
        for logical, columns in value.items():
            if isinstance(columns, str):
                if columns.strip():
                    cleaned[logical] = columns
                continue
            kept = [column for column in columns if column.strip()]
            if kept:
                cleaned[logical] = kept
        if not cleaned:
            raise ValueError("column mapping must map at least one field")
        return cleaned


class ConditionPayload(SpreadsheetBaseModel):
    field: str
    operator: ConditionOperator
    value: str = Field(alias="expectedValue")

    @model_validator(mode="before")
    @classmethod
    def _stringify_value(cls, value: object) -> object:
        if isinstance(value, Mapping):
            data = dict(cast(Mapping[str, object], value))
            for key in ("value", "expectedValue"):
                raw = data.get(key)
                if raw is not None and not isinstance(raw, str):
                    data[key] = str(raw)
            return data
        return value


class RequirementPayload(SpreadsheetBaseModel):
    slot_order: int = Field(alias="slotOrder", ge=1)
    quantity: int = Field(ge=1)
    unit_type: UnitType = Field(default=UnitType.UNIT, alias="unitType")
    description: str = ""
    conditions: list[ConditionPayload] = Field(default_factory=list)


class TierPayload(SpreadsheetBaseModel):
    number: int = Field(ge=1)
    description: str = ""
    requirements: list[RequirementPayload]


class CampaignPayload(SpreadsheetBaseModel):
    id: UUID | None = None
    title: str
    coins_per_tier: int = Field(default=0, alias="coinsPerTier", ge=0)
    points_per_tier: Decimal = Field(default=Decimal(0), alias="pointsPerTier", ge=0)
    manager_commission_percent: Decimal = Field(
        default=Decimal(0), alias="managerCommissionPercent", ge=0, le=100
    )
    tier_mode: TierMode = Field(default=TierMode.MANUAL, alias="tierMode")
    increment_kind: IncrementKind = Field(default=IncrementKind.NONE, alias="incrementKind")
    increment_factor: int = Field(default=0, alias="incrementFactor", ge=0)
    tier_limit: int | None = Field(default=None, alias="tierLimit", ge=1)
    tiers: list[TierPayload]

    @model_validator(mode="after")
    def _check_tiers(self) -> CampaignPayload:
        numbers = [tier.number for tier in self.tiers]
        if len(set(numbers)) != len(numbers):
            raise ValueError("tier numbers must be unique")
        if self.tier_mode is TierMode.AUTO_REPLICATE and numbers != [1]:
            raise ValueError("auto-replicating campaigns define tier 1 only")
        return self


class OrganizationPayload(SpreadsheetBaseModel):
    key: str
    name: str
    tax_id: str | None = Field(default=None, alias="taxId")
    parent: str | None = None

    _normalize_tax_id = field_validator("tax_id", "parent", mode="before")(_blank_to_none)


class SellerPayload(SpreadsheetBaseModel):
    id: UUID | None = None
    key: str
    name: str
    organization: str | None = None
    manager: str | None = None

    _normalize_refs = field_validator("organization", "manager", mode="before")(_blank_to_none)


class RosterFile(SpreadsheetBaseModel):
    """Organizations, sellers and campaign definitions loaded in one go.

    Organizations and sellers reference each other through their ``key``.
    """

    organizations: list[OrganizationPayload] = Field(default_factory=list)
    sellers: list[SellerPayload] = Field(default_factory=list)
    campaigns: list[CampaignPayload] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_references(self) -> RosterFile:
        org_keys = {organization.key for organization in self.organizations}
        seller_keys = {seller.key for seller in self.sellers}
        for organization in self.organizations:
            if organization.parent is not None and organization.parent not in org_keys:
                raise ValueError(f"unknown parent organization {organization.parent!r}")
        for seller in self.sellers:
            if seller.organization is not None and seller.organization not in org_keys:
                raise ValueError(f"unknown organization {seller.organization!r}")
            if seller.manager is not None and seller.manager not in seller_keys:
                raise ValueError(f"unknown manager {seller.manager!r}")
        return self
