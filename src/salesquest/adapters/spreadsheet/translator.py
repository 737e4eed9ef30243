"""Translate roster payloads into domain entities."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from salesquest.domain.model import (
    Campaign,
    Condition,
    Organization,
    Requirement,
    Seller,
    Tier,
)
from salesquest.domain.reconciliation.identity import normalize_tax_id

if TYPE_CHECKING:
    from .schema import CampaignPayload, RosterFile

log = getLogger(__name__)


@dataclass(slots=True)
class Roster:
    organizations: list[Organization] = field(default_factory=list["Organization"])
    sellers: list[Seller] = field(default_factory=list["Seller"])
    campaigns: list[Campaign] = field(default_factory=list["Campaign"])
    tiers: list[Tier] = field(default_factory=list["Tier"])
    requirements: list[Requirement] = field(default_factory=list["Requirement"])


def parse_roster(payload: RosterFile) -> Roster:
    roster = Roster()

    organizations = {
        item.key: Organization(name=item.name, tax_id=normalize_tax_id(item.tax_id))
        for item in payload.organizations
    }
    for item in payload.organizations:
        if item.parent is not None:
            organizations[item.key].parent_id = organizations[item.parent].id
    roster.organizations.extend(organizations.values())

    sellers: dict[str, Seller] = {}
    for item in payload.sellers:
        organization = organizations.get(item.organization) if item.organization else None
        seller = Seller(
            name=item.name,
            organization_id=organization.id if organization is not None else None,
        )
        if item.id is not None:
            seller.id = item.id
        sellers[item.key] = seller
    for item in payload.sellers:
        if item.manager is not None:
            sellers[item.key].manager_id = sellers[item.manager].id
    roster.sellers.extend(sellers.values())

    for campaign_payload in payload.campaigns:
        _add_campaign(roster, campaign_payload)

    log.debug(
        "Parsed roster: %s organizations, %s sellers, %s campaigns",
        len(roster.organizations),
        len(roster.sellers),
        len(roster.campaigns),
    )
    return roster


def _add_campaign(roster: Roster, payload: CampaignPayload) -> None:
    campaign = Campaign(
        title=payload.title,
        coins_per_tier=payload.coins_per_tier,
        points_per_tier=payload.points_per_tier,
        manager_commission_percent=payload.manager_commission_percent,
        tier_mode=payload.tier_mode,
        increment_kind=payload.increment_kind,
        increment_factor=payload.increment_factor,
        tier_limit=payload.tier_limit,
    )
    if payload.id is not None:
        campaign.id = payload.id
    roster.campaigns.append(campaign)

    for tier_payload in payload.tiers:
        roster.tiers.append(
            Tier(
                campaign_id=campaign.id,
                number=tier_payload.number,
                description=tier_payload.description,
            )
        )
        for requirement_payload in tier_payload.requirements:
            roster.requirements.append(
                Requirement(
                    campaign_id=campaign.id,
                    tier_number=tier_payload.number,
                    slot_order=requirement_payload.slot_order,
                    target_quantity=requirement_payload.quantity,
                    unit_type=requirement_payload.unit_type,
                    description=requirement_payload.description,
                    conditions=[
                        Condition(
                            field=condition.field,
                            operator=condition.operator,
                            expected_value=condition.value,
                        )
                        for condition in requirement_payload.conditions
                    ],
                )
            )
