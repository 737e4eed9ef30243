from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from salesquest.adapters.sqlalchemy.mappings import (
    ledger_entry_table,
    submission_table,
    tier_completion_table,
)
from salesquest.adapters.sqlalchemy.unit_of_work import SqlAlchemyIncentiveUnitOfWork
from salesquest.domain.model import LedgerKind, SubmissionStatus
from salesquest.domain.reconciliation import MatchVia
from salesquest.domain.reconciliation.engine import BatchReconciler
from tests.helpers.campaigns import (
    COLUMN_MAPPING,
    HEAD_OFFICE_TAX_ID,
    OTHER_TAX_ID,
    add_seller,
    add_submission,
    equals,
    load_seller,
    load_submission,
    order_row,
    seed_campaign,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.engine import Engine


def _count(engine: Engine, table_name: str) -> int:
    table = {
        "submission_validated": submission_table,
        "tier_completion": tier_completion_table,
        "ledger_entry": ledger_entry_table,
    }[table_name]
    stmt = select(func.count()).select_from(table)
    if table_name == "submission_validated":
        stmt = stmt.where(submission_table.c.status == SubmissionStatus.VALIDATED)
    with engine.connect() as connection:
        return int(connection.execute(stmt).scalar_one())


def test_units_spill_over_into_the_next_tier(
    sqlite_unit_of_work: Callable[[], SqlAlchemyIncentiveUnitOfWork],
) -> None:
    setup = seed_campaign(sqlite_unit_of_work, quantities={(1, 1): 2, (2, 1): 2})
    submissions = [add_submission(sqlite_unit_of_work, setup, f"A{i}") for i in range(1, 4)]
    rows = [order_row(f"A{i}") for i in range(1, 4)]

    summary = BatchReconciler(sqlite_unit_of_work).reconcile(
        setup.campaign.id, simulate=False, column_mapping=COLUMN_MAPPING, rows=rows
    )

    assert summary.counts() == {
        "total_processed": 3,
        "validated": 3,
        "rejected": 0,
        "conflicts": 0,
        "failed": 0,
    }
    tiers = [
        load_submission(sqlite_unit_of_work, submission.id).validated_tier_number
        for submission in submissions
    ]
    assert tiers == [1, 1, 2]
    assert [decision.tier_number for decision in summary.decisions] == [1, 1, 2]


def test_completed_tier_pays_seller_and_manager_once(
    sqlite_unit_of_work: Callable[[], SqlAlchemyIncentiveUnitOfWork],
    sqlite_engine: Engine,
) -> None:
    setup = seed_campaign(sqlite_unit_of_work, quantities={(1, 1): 2, (2, 1): 2})
    for i in range(1, 4):
        add_submission(sqlite_unit_of_work, setup, f"A{i}")

    BatchReconciler(sqlite_unit_of_work).reconcile(
        setup.campaign.id,
        simulate=False,
        column_mapping=COLUMN_MAPPING,
        rows=[order_row(f"A{i}") for i in range(1, 4)],
    )

    assert _count(sqlite_engine, "tier_completion") == 1
    with sqlite_unit_of_work() as uow:
        entries = uow.repositories.ledger.list_for_campaign(setup.campaign.id)
        completed = uow.repositories.tier_completions.completed_tiers(
            seller_id=setup.seller.id, campaign_id=setup.campaign.id
        )
    assert completed == [1]
    assert sorted((entry.kind, entry.amount) for entry in entries) == [
        (LedgerKind.MANAGER, Decimal("5.00")),
        (LedgerKind.SELLER, Decimal("50.00")),
    ]
    seller = load_seller(sqlite_unit_of_work, setup.seller.id)
    assert seller.coin_balance == 10
    assert seller.ranking_coins == 10
    assert seller.ranking_points == Decimal("50.00")


def test_failed_requirement_is_moved_to_matching_sibling(
    sqlite_unit_of_work: Callable[[], SqlAlchemyIncentiveUnitOfWork],
) -> None:
    setup = seed_campaign(
        sqlite_unit_of_work,
        quantities={(1, 1): 1, (1, 2): 1},
        conditions={(1, 1): [equals("PRODUCT", "TV")], (1, 2): [equals("PRODUCT", "Phone")]},
    )
    submission = add_submission(sqlite_unit_of_work, setup, "R-1")

    summary = BatchReconciler(sqlite_unit_of_work).reconcile(
        setup.campaign.id,
        simulate=False,
        column_mapping=COLUMN_MAPPING,
        rows=[order_row("R-1", product="Phone")],
    )

    decision = summary.decisions[0]
    assert decision.status is SubmissionStatus.VALIDATED
    assert decision.reassigned

    stored = load_submission(sqlite_unit_of_work, submission.id)
    assert stored.status is SubmissionStatus.VALIDATED
    assert stored.requirement_id == setup.requirement(1, 2).id
    assert stored.declared_requirement_id == setup.requirement(1, 1).id
    assert stored.audit_note is not None
    assert "T1S1" in stored.audit_note
    assert "PRODUCT equals 'TV'" in stored.audit_note


def test_order_matching_no_sibling_is_rejected_with_every_attempt(
    sqlite_unit_of_work: Callable[[], SqlAlchemyIncentiveUnitOfWork],
) -> None:
    setup = seed_campaign(
        sqlite_unit_of_work,
        quantities={(1, 1): 1, (1, 2): 1},
        conditions={(1, 1): [equals("PRODUCT", "TV")], (1, 2): [equals("PRODUCT", "Phone")]},
    )
    submission = add_submission(sqlite_unit_of_work, setup, "R-2")

    BatchReconciler(sqlite_unit_of_work).reconcile(
        setup.campaign.id,
        simulate=False,
        column_mapping=COLUMN_MAPPING,
        rows=[order_row("R-2", product="Fridge")],
    )

    stored = load_submission(sqlite_unit_of_work, submission.id)
    assert stored.status is SubmissionStatus.REJECTED
    assert stored.rejection_reason is not None
    assert "T1S1" in stored.rejection_reason
    assert "T1S2" in stored.rejection_reason
    assert stored.requirement_id == setup.requirement(1, 1).id


def test_simulation_matches_real_run_and_writes_nothing(
    sqlite_unit_of_work: Callable[[], SqlAlchemyIncentiveUnitOfWork],
    sqlite_engine: Engine,
) -> None:
    setup = seed_campaign(sqlite_unit_of_work, quantities={(1, 1): 2})
    other = add_seller(sqlite_unit_of_work, "Other", organization_id=setup.store.id)
    add_submission(sqlite_unit_of_work, setup, "S-1")
    add_submission(sqlite_unit_of_work, setup, "S-2")
    add_submission(sqlite_unit_of_work, setup, "S-2", seller=other)
    add_submission(sqlite_unit_of_work, setup, "S-3")
    add_submission(sqlite_unit_of_work, setup, "S-missing")
    rows = [order_row("S-1"), order_row("S-2"), order_row("S-3")]
    reconciler = BatchReconciler(sqlite_unit_of_work)

    simulated = reconciler.reconcile(
        setup.campaign.id, simulate=True, column_mapping=COLUMN_MAPPING, rows=rows
    )

    assert simulated.simulate
    assert _count(sqlite_engine, "submission_validated") == 0
    assert _count(sqlite_engine, "tier_completion") == 0
    assert _count(sqlite_engine, "ledger_entry") == 0

    applied = reconciler.reconcile(
        setup.campaign.id, simulate=False, column_mapping=COLUMN_MAPPING, rows=rows
    )

    assert simulated.counts() == applied.counts()
    assert [d.status for d in simulated.decisions] == [d.status for d in applied.decisions]
    assert applied.counts() == {
        "total_processed": 5,
        "validated": 2,
        "rejected": 2,
        "conflicts": 1,
        "failed": 0,
    }


def test_order_already_validated_for_another_seller_is_a_conflict(
    sqlite_unit_of_work: Callable[[], SqlAlchemyIncentiveUnitOfWork],
) -> None:
    setup = seed_campaign(sqlite_unit_of_work, quantities={(1, 1): 5})
    first = add_submission(sqlite_unit_of_work, setup, "C-1")
    reconciler = BatchReconciler(sqlite_unit_of_work)
    reconciler.reconcile(
        setup.campaign.id, simulate=False, column_mapping=COLUMN_MAPPING, rows=[order_row("C-1")]
    )

    other = add_seller(sqlite_unit_of_work, "Other", organization_id=setup.store.id)
    second = add_submission(sqlite_unit_of_work, setup, "C-1", seller=other)
    reconciler.reconcile(
        setup.campaign.id, simulate=False, column_mapping=COLUMN_MAPPING, rows=[order_row("C-1")]
    )

    assert load_submission(sqlite_unit_of_work, first.id).status is SubmissionStatus.VALIDATED
    stored = load_submission(sqlite_unit_of_work, second.id)
    assert stored.status is SubmissionStatus.CONFLICT
    assert stored.rejection_reason is not None
    assert str(setup.seller.id) in stored.rejection_reason


def test_earlier_submission_wins_within_one_batch(
    sqlite_unit_of_work: Callable[[], SqlAlchemyIncentiveUnitOfWork],
) -> None:
    setup = seed_campaign(sqlite_unit_of_work, quantities={(1, 1): 5})
    other = add_seller(sqlite_unit_of_work, "Other", organization_id=setup.store.id)
    first = add_submission(sqlite_unit_of_work, setup, "C-2")
    second = add_submission(sqlite_unit_of_work, setup, "C-2", seller=other)

    BatchReconciler(sqlite_unit_of_work).reconcile(
        setup.campaign.id, simulate=False, column_mapping=COLUMN_MAPPING, rows=[order_row("C-2")]
    )

    assert load_submission(sqlite_unit_of_work, first.id).status is SubmissionStatus.VALIDATED
    assert load_submission(sqlite_unit_of_work, second.id).status is SubmissionStatus.CONFLICT


def test_identity_rules_accept_head_office_and_reject_strangers(
    sqlite_unit_of_work: Callable[[], SqlAlchemyIncentiveUnitOfWork],
) -> None:
    setup = seed_campaign(sqlite_unit_of_work, quantities={(1, 1): 5})
    add_submission(sqlite_unit_of_work, setup, "I-1")
    add_submission(sqlite_unit_of_work, setup, "I-2")
    add_submission(sqlite_unit_of_work, setup, "I-3")
    rows = [
        order_row("I-1", tax_id="98.765.432/0001-10"),
        order_row("I-2", tax_id=OTHER_TAX_ID),
        order_row("I-3", tax_id="123"),
    ]

    summary = BatchReconciler(sqlite_unit_of_work).reconcile(
        setup.campaign.id, simulate=True, column_mapping=COLUMN_MAPPING, rows=rows
    )

    by_order = {decision.order_number: decision for decision in summary.decisions}
    assert by_order["I-1"].status is SubmissionStatus.VALIDATED
    assert by_order["I-1"].identity_via is MatchVia.PARENT
    assert by_order["I-2"].status is SubmissionStatus.REJECTED
    assert HEAD_OFFICE_TAX_ID in (by_order["I-2"].reason or "")
    assert by_order["I-3"].status is SubmissionStatus.REJECTED
    assert "expected 14 digits" in (by_order["I-3"].reason or "")


def test_order_under_several_mapped_columns_is_a_conflict(
    sqlite_unit_of_work: Callable[[], SqlAlchemyIncentiveUnitOfWork],
) -> None:
    setup = seed_campaign(sqlite_unit_of_work, quantities={(1, 1): 5})
    submission = add_submission(sqlite_unit_of_work, setup, "X-1")
    mapping = dict(COLUMN_MAPPING) | {"ORDER_NUMBER": ["Order", "Service order"]}
    rows = [
        order_row("X-1"),
        {"Order": "other", "Service order": "X-1", "CNPJ": "12345678000190"},
    ]

    BatchReconciler(sqlite_unit_of_work).reconcile(
        setup.campaign.id, simulate=False, column_mapping=mapping, rows=rows
    )

    stored = load_submission(sqlite_unit_of_work, submission.id)
    assert stored.status is SubmissionStatus.CONFLICT
    assert "ambiguous column mapping" in (stored.rejection_reason or "")


def test_units_past_the_last_tier_are_rejected(
    sqlite_unit_of_work: Callable[[], SqlAlchemyIncentiveUnitOfWork],
) -> None:
    setup = seed_campaign(sqlite_unit_of_work, quantities={(1, 1): 1})
    add_submission(sqlite_unit_of_work, setup, "K-1")
    extra = add_submission(sqlite_unit_of_work, setup, "K-2")

    summary = BatchReconciler(sqlite_unit_of_work).reconcile(
        setup.campaign.id,
        simulate=False,
        column_mapping=COLUMN_MAPPING,
        rows=[order_row("K-1"), order_row("K-2")],
    )

    assert summary.validated == 1
    assert summary.rejected == 1
    stored = load_submission(sqlite_unit_of_work, extra.id)
    assert stored.status is SubmissionStatus.REJECTED
    assert (stored.rejection_reason or "").startswith("Capacity reached")


def test_storage_failure_only_affects_its_own_submission(
    sqlite_unit_of_work: Callable[[], SqlAlchemyIncentiveUnitOfWork],
) -> None:
    setup = seed_campaign(sqlite_unit_of_work, quantities={(1, 1): 5})
    broken = add_submission(sqlite_unit_of_work, setup, "F-1")
    healthy = add_submission(sqlite_unit_of_work, setup, "F-2")
    commits = {"count": 0}

    class _FlakyUnitOfWork(SqlAlchemyIncentiveUnitOfWork):
        def commit(self) -> None:
            commits["count"] += 1
            if commits["count"] == 1:
                raise OperationalError("UPDATE submission", {}, Exception("disk I/O error"))
            super().commit()

    summary = BatchReconciler(_FlakyUnitOfWork).reconcile(
        setup.campaign.id,
        simulate=False,
        column_mapping=COLUMN_MAPPING,
        rows=[order_row("F-1"), order_row("F-2")],
    )

    assert summary.failed == 1
    assert summary.validated == 1
    assert load_submission(sqlite_unit_of_work, broken.id).status is SubmissionStatus.PENDING
    assert load_submission(sqlite_unit_of_work, healthy.id).status is SubmissionStatus.VALIDATED


def test_capacity_freed_by_a_failed_write_is_reused(
    sqlite_unit_of_work: Callable[[], SqlAlchemyIncentiveUnitOfWork],
) -> None:
    setup = seed_campaign(sqlite_unit_of_work, quantities={(1, 1): 1})
    broken = add_submission(sqlite_unit_of_work, setup, "K-1")
    waiting = add_submission(sqlite_unit_of_work, setup, "K-2")
    commits = {"count": 0}

    class _FlakyUnitOfWork(SqlAlchemyIncentiveUnitOfWork):
        def commit(self) -> None:
            commits["count"] += 1
            if commits["count"] == 1:
                raise OperationalError("UPDATE submission", {}, Exception("disk I/O error"))
            super().commit()

    reconciler = BatchReconciler(_FlakyUnitOfWork)
    rows = [order_row("K-1"), order_row("K-2")]
    simulated = reconciler.reconcile(
        setup.campaign.id, simulate=True, column_mapping=COLUMN_MAPPING, rows=rows
    )
    assert [decision.status for decision in simulated.decisions] == [
        SubmissionStatus.VALIDATED,
        SubmissionStatus.REJECTED,
    ]

    summary = reconciler.reconcile(
        setup.campaign.id, simulate=False, column_mapping=COLUMN_MAPPING, rows=rows
    )

    assert summary.failed == 1
    assert summary.validated == 1
    assert summary.rejected == 0
    assert load_submission(sqlite_unit_of_work, broken.id).status is SubmissionStatus.PENDING
    stored = load_submission(sqlite_unit_of_work, waiting.id)
    assert stored.status is SubmissionStatus.VALIDATED
    assert stored.validated_tier_number == 1
