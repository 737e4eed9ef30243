from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING, NoReturn
from uuid import UUID

from dotenv import load_dotenv

from salesquest.adapters.spreadsheet import load_reconciliation_request, load_roster_file
from salesquest.app import (
    get_seller_progress,
    load_roster,
    reconcile_campaign,
    reject_submission,
    submit_seller_order,
    validate_submission_with_result,
)
from salesquest.config import ConfigurationError, configure_logging, get_log_level

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from salesquest.domain.reconciliation.contracts import ReconciliationSummary

log = logging.getLogger(__name__)


class _ArgumentParser(argparse.ArgumentParser):
    """argparse parser that reports usage errors as ``ValueError``."""

    def error(self, message: str) -> NoReturn:
        raise ValueError(message)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = _ArgumentParser(description="Reconcile sales submissions and settle rewards")
    subparsers = parser.add_subparsers(dest="command", required=True)

    roster = subparsers.add_parser("roster", help="Load organizations, sellers and campaigns")
    roster.add_argument("path", type=Path, help="Roster JSON file")

    submit = subparsers.add_parser("submit", help="Submit an order for a requirement")
    submit.add_argument("--seller-id", type=str, required=True, help="Submitting seller")
    submit.add_argument("--campaign-id", type=str, required=True, help="Campaign id")
    submit.add_argument(
        "--requirement-id", type=str, required=True, help="Requirement the order is declared for"
    )
    submit.add_argument("--order", type=str, required=True, help="External order number")

    reconcile = subparsers.add_parser(
        "reconcile", help="Reconcile pending submissions against an external dataset"
    )
    reconcile.add_argument(
        "request",
        type=Path,
        help="JSON request with campaignId, columnMapping and optionally rows",
    )
    reconcile.add_argument(
        "--rows",
        type=Path,
        help="CSV or JSON dataset replacing the rows of the request file",
    )
    reconcile.add_argument(
        "--simulate",
        action="store_true",
        default=None,
        help="Compute decisions without persisting anything",
    )

    validate = subparsers.add_parser("validate", help="Validate one submission manually")
    validate.add_argument("submission_id", type=str, help="Submission id")

    reject = subparsers.add_parser("reject", help="Reject one submission manually")
    reject.add_argument("submission_id", type=str, help="Submission id")
    reject.add_argument("--reason", type=str, required=True, help="Rejection reason")

    progress = subparsers.add_parser("progress", help="Show a seller's progress in a campaign")
    progress.add_argument("--seller-id", type=str, required=True, help="Seller id")
    progress.add_argument("--campaign-id", type=str, required=True, help="Campaign id")

    return parser.parse_args(list(argv))


def _parse_uuid(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError as exc:
        raise ValueError(f"Invalid UUID: {value}") from exc


def _log_summary(summary: ReconciliationSummary) -> None:
    log.info(
        "Reconciliation %s: processed=%s, validated=%s, rejected=%s, conflicts=%s, failed=%s",
        "simulated" if summary.simulate else "applied",
        summary.total_processed,
        summary.validated,
        summary.rejected,
        summary.conflicts,
        summary.failed,
    )
    for decision in summary.decisions:
        log.info(
            "  %s -> %s%s",
            decision.order_number,
            decision.status.value,
            f" ({decision.reason})" if decision.reason else "",
        )


def _run(args: argparse.Namespace) -> None:
    if args.command == "roster":
        load_roster(load_roster_file(args.path))
    elif args.command == "submit":
        submission = submit_seller_order(
            order_number=args.order,
            seller_id=_parse_uuid(args.seller_id),
            campaign_id=_parse_uuid(args.campaign_id),
            requirement_id=_parse_uuid(args.requirement_id),
        )
        log.info("Created submission %s", submission.id)
    elif args.command == "reconcile":
        request = load_reconciliation_request(args.request, rows_path=args.rows)
        _log_summary(reconcile_campaign(request, simulate=args.simulate))
    elif args.command == "validate":
        submission, result = validate_submission_with_result(_parse_uuid(args.submission_id))
        log.info(
            "Submission %s validated on tier %s (tier complete=%s, rewarded=%s)",
            submission.id,
            result.tier_number,
            result.tier_complete,
            result.rewarded,
        )
    elif args.command == "reject":
        submission = reject_submission(_parse_uuid(args.submission_id), args.reason)
        log.info("Submission %s rejected", submission.id)
    elif args.command == "progress":
        progress = get_seller_progress(
            _parse_uuid(args.seller_id), _parse_uuid(args.campaign_id)
        )
        for tier in progress.tiers:
            status = "completed" if tier.completed else "open"
            log.info("Tier %s: %s%% (%s)", tier.tier_number, tier.percent, status)
            for slot in tier.slots:
                log.info(
                    "  %s: %s/%s validated, %s pending",
                    slot.label,
                    slot.validated,
                    slot.quota,
                    slot.pending,
                )
    else:
        raise ValueError(f"Unsupported command: {args.command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    parsed_args: argparse.Namespace
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        configure_logging(level=get_log_level())
        parsed_args = _parse_args(args_list)
    except (ValueError, ConfigurationError):
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        _run(parsed_args)
    except Exception:
        log.exception("Fatal error during %s", parsed_args.command)
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
