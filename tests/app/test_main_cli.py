from __future__ import annotations

import json
import logging
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import uuid4

import pytest

from salesquest.adapters.spreadsheet import ReconciliationRequest
from salesquest.domain.model import SubmissionStatus
from salesquest.domain.reconciliation.contracts import ReconciliationSummary
from salesquest.ui import cli
from tests.helpers.campaigns import (
    COLUMN_MAPPING,
    add_submission,
    load_seller,
    load_submission,
    order_row,
    seed_campaign,
)

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from salesquest.adapters.sqlalchemy.unit_of_work import SqlAlchemyIncentiveUnitOfWork


def test_reconcile_passes_simulate_override(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    captured: dict[str, object] = {}

    def fake_reconcile(request: object, **kwargs: object) -> ReconciliationSummary:
        captured["request"] = request
        captured.update(kwargs)
        return ReconciliationSummary(campaign_id=campaign_id, simulate=True)

    campaign_id = uuid4()
    monkeypatch.setattr(cli, "reconcile_campaign", fake_reconcile)
    request_path = tmp_path / "request.json"
    request_path.write_text(
        json.dumps({"campaignId": str(campaign_id), "columnMapping": COLUMN_MAPPING}),
        encoding="utf-8",
    )

    cli.main(["reconcile", str(request_path), "--simulate"])

    assert captured["simulate"] is True
    request = captured["request"]
    assert isinstance(request, ReconciliationRequest)
    assert request.campaign_id == campaign_id


def test_simulate_flag_defaults_to_the_request_file(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    captured: dict[str, object] = {}

    def fake_reconcile(_request: object, **kwargs: object) -> ReconciliationSummary:
        captured.update(kwargs)
        return ReconciliationSummary(campaign_id=uuid4(), simulate=False)

    monkeypatch.setattr(cli, "reconcile_campaign", fake_reconcile)
    request_path = tmp_path / "request.json"
    request_path.write_text(
        json.dumps({"campaignId": str(uuid4()), "columnMapping": COLUMN_MAPPING}),
        encoding="utf-8",
    )

    cli.main(["reconcile", str(request_path)])

    assert captured["simulate"] is None


@pytest.mark.parametrize(
    "argv",
    [
        [],
        ["explode"],
        ["reject", str(uuid4())],
        ["submit", "--seller-id", str(uuid4())],
    ],
)
def test_invalid_arguments_exit_with_code_two(argv: list[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(argv)

    assert excinfo.value.code == 2


def test_invalid_log_level_is_a_usage_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SALESQUEST_LOG_LEVEL", "chatty")

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["progress", "--seller-id", str(uuid4()), "--campaign-id", str(uuid4())])

    assert excinfo.value.code == 2


def test_fatal_errors_exit_with_code_one(
    sqlite_unit_of_work: Callable[[], SqlAlchemyIncentiveUnitOfWork],
) -> None:
    _ = sqlite_unit_of_work

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["validate", str(uuid4())])

    assert excinfo.value.code == 1


def test_cli_reconciles_and_pays_end_to_end(
    sqlite_unit_of_work: Callable[[], SqlAlchemyIncentiveUnitOfWork],
    tmp_path: Path,
    caplog: pytest.LogCaptureFixture,
) -> None:
    setup = seed_campaign(sqlite_unit_of_work, quantities={(1, 1): 1})
    submission = add_submission(sqlite_unit_of_work, setup, "E2E-1")
    request_path = tmp_path / "request.json"
    request_path.write_text(
        json.dumps(
            {
                "campaignId": str(setup.campaign.id),
                "columnMapping": COLUMN_MAPPING,
                "rows": [order_row("E2E-1")],
            }
        ),
        encoding="utf-8",
    )
    caplog.set_level(logging.INFO)

    cli.main(["reconcile", str(request_path)])

    assert load_submission(sqlite_unit_of_work, submission.id).status is (
        SubmissionStatus.VALIDATED
    )
    assert load_seller(sqlite_unit_of_work, setup.seller.id).ranking_points == Decimal("50.00")
    assert "validated=1" in caplog.text

    cli.main(
        ["progress", "--seller-id", str(setup.seller.id), "--campaign-id", str(setup.campaign.id)]
    )

    assert "Tier 1: 100% (completed)" in caplog.text
