"""SQLAlchemy mapping metadata for the salesquest domain model."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from functools import cache
from typing import TYPE_CHECKING

from sqlalchemy import (
    Column,
    DateTime,
    Dialect,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Table,
    Text,
    TypeDecorator,
    UniqueConstraint,
    Uuid,
    orm,
)
from sqlalchemy.orm import configure_mappers, relationship

from salesquest.domain.model import (
    Campaign,
    Condition,
    ConditionOperator,
    IncrementKind,
    LedgerEntry,
    LedgerKind,
    Notification,
    Organization,
    Requirement,
    Seller,
    Submission,
    SubmissionStatus,
    Tier,
    TierCompletion,
    TierMode,
    UnitType,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]
MoneyType = Numeric(14, 2, asdecimal=True)


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Organizations and sellers ----------------------------------------------------

organization_table = Table(
    "organization",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("name", String, nullable=False),
    Column("tax_id", String(32), nullable=True),
    Column(
        "parent_id",
        UUIDColumnType,
        ForeignKey("organization.id", ondelete="SET NULL"),
        nullable=True,
    ),
)

seller_table = Table(
    "seller",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("name", String, nullable=False),
    Column(
        "organization_id",
        UUIDColumnType,
        ForeignKey("organization.id", ondelete="SET NULL"),
        nullable=True,
    ),
    Column(
        "manager_id",
        UUIDColumnType,
        ForeignKey("seller.id", ondelete="SET NULL"),
        nullable=True,
    ),
    Column("coin_balance", Integer, nullable=False, default=0),
    Column("ranking_coins", Integer, nullable=False, default=0),
    Column("ranking_points", MoneyType, nullable=False, default=0),
)

# Campaign definition ----------------------------------------------------------

campaign_table = Table(
    "campaign",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("title", String, nullable=False),
    Column("coins_per_tier", Integer, nullable=False, default=0),
    Column("points_per_tier", MoneyType, nullable=False, default=0),
    Column("manager_commission_percent", Numeric(5, 2, asdecimal=True), nullable=False, default=0),
    Column("tier_mode", Enum(TierMode, native_enum=False), nullable=False),
    Column("increment_kind", Enum(IncrementKind, native_enum=False), nullable=False),
    Column("increment_factor", Integer, nullable=False, default=0),
    Column("tier_limit", Integer, nullable=True),
)

tier_table = Table(
    "tier",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "campaign_id", UUIDColumnType, ForeignKey("campaign.id", ondelete="CASCADE"), nullable=False
    ),
    Column("number", Integer, nullable=False),
    Column("description", String, nullable=False, default=""),
    UniqueConstraint("campaign_id", "number"),
)

requirement_table = Table(
    "requirement",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "campaign_id", UUIDColumnType, ForeignKey("campaign.id", ondelete="CASCADE"), nullable=False
    ),
    Column("tier_number", Integer, nullable=False),
    Column("slot_order", Integer, nullable=False),
    Column("target_quantity", Integer, nullable=False),
    Column("unit_type", Enum(UnitType, native_enum=False), nullable=False),
    Column("description", String, nullable=False, default=""),
    Index("ix_requirement_campaign_slot", "campaign_id", "slot_order"),
)

condition_table = Table(
    "requirement_condition",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "requirement_id",
        UUIDColumnType,
        ForeignKey("requirement.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("field", String, nullable=False),
    Column("operator", Enum(ConditionOperator, native_enum=False), nullable=False),
    Column("expected_value", String, nullable=False),
)

# Submissions ------------------------------------------------------------------

submission_table = Table(
    "submission",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("order_number", String, nullable=False),
    Column(
        "seller_id", UUIDColumnType, ForeignKey("seller.id", ondelete="CASCADE"), nullable=False
    ),
    Column(
        "campaign_id", UUIDColumnType, ForeignKey("campaign.id", ondelete="CASCADE"), nullable=False
    ),
    Column(
        "requirement_id",
        UUIDColumnType,
        ForeignKey("requirement.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("status", Enum(SubmissionStatus, native_enum=False), nullable=False),
    Column("validated_tier_number", Integer, nullable=True),
    Column("rejection_reason", Text, nullable=True),
    Column(
        "declared_requirement_id",
        UUIDColumnType,
        ForeignKey("requirement.id", ondelete="SET NULL"),
        nullable=True,
    ),
    Column("audit_note", Text, nullable=True),
    Column("submitted_at", UTCDateTime(), nullable=False),
    Column("validated_at", UTCDateTime(), nullable=True),
    UniqueConstraint("order_number", "seller_id", "campaign_id"),
    Index("ix_submission_campaign_status", "campaign_id", "status"),
)

# Rewards ----------------------------------------------------------------------

tier_completion_table = Table(
    "tier_completion",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "seller_id", UUIDColumnType, ForeignKey("seller.id", ondelete="CASCADE"), nullable=False
    ),
    Column(
        "campaign_id", UUIDColumnType, ForeignKey("campaign.id", ondelete="CASCADE"), nullable=False
    ),
    Column("tier_number", Integer, nullable=False),
    Column("completed_at", UTCDateTime(), nullable=False),
    # the idempotency gate for tier rewards
    UniqueConstraint("seller_id", "campaign_id", "tier_number"),
)

ledger_entry_table = Table(
    "ledger_entry",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "beneficiary_id",
        UUIDColumnType,
        ForeignKey("seller.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column(
        "campaign_id", UUIDColumnType, ForeignKey("campaign.id", ondelete="CASCADE"), nullable=False
    ),
    Column("amount", MoneyType, nullable=False),
    Column("kind", Enum(LedgerKind, native_enum=False), nullable=False),
    Column("note", Text, nullable=False, default=""),
    Column("created_at", UTCDateTime(), nullable=False),
)

notification_table = Table(
    "notification",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "recipient_id",
        UUIDColumnType,
        ForeignKey("seller.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("message", Text, nullable=False),
    Column("created_at", UTCDateTime(), nullable=False),
)


@cache
def start_mappers() -> orm.registry:
    """Map the domain dataclasses onto the tables above (idempotent)."""

    mapper_registry.map_imperatively(Organization, organization_table)
    mapper_registry.map_imperatively(Seller, seller_table)
    mapper_registry.map_imperatively(Campaign, campaign_table)
    mapper_registry.map_imperatively(Tier, tier_table)
    mapper_registry.map_imperatively(Condition, condition_table)
    mapper_registry.map_imperatively(
        Requirement,
        requirement_table,
        properties={
            "conditions": relationship(
                Condition,
                cascade="all, delete-orphan",
                lazy="selectin",
                order_by=condition_table.c.field,
            ),
        },
    )
    mapper_registry.map_imperatively(Submission, submission_table)
    mapper_registry.map_imperatively(TierCompletion, tier_completion_table)
    mapper_registry.map_imperatively(LedgerEntry, ledger_entry_table)
    mapper_registry.map_imperatively(Notification, notification_table)

    configure_mappers()
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the mapped metadata."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)
