"""
Command line entry point.

    vesting-claims check-claims REPORT [--router ADDR] [--token ADDR] [--output-dir DIR]
    vesting-claims claims-report --router ADDR [--start-block N] [--output FILE]
    vesting-claims adjust REPORT (--deductions FILE | --check-claims) [--only-adjusted] [--output FILE]

Exit status is 0 on success and 1 for any report, configuration or explorer
failure that aborts the run.
"""
from __future__ import annotations

import argparse
import asyncio
import dataclasses
import os
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from dotenv import find_dotenv, load_dotenv

from vesting_claims import config
from vesting_claims.config import ExplorerSettings
from vesting_claims.exceptions import ConfigurationError, VestingClaimsError
from vesting_claims.integrations import EtherscanClient
from vesting_claims.models.records import RecipientRecord, ReconciliationResult, ReportContext
from vesting_claims.services.claim_reconciler import ClaimReconciler
from vesting_claims.services.claims_report import build_claims_report, top_claimers
from vesting_claims.services.output_files import write_adjustment_files, write_json
from vesting_claims.services.payment_adjuster import (
    apply_deductions,
    deductions_from_adjustments,
    load_adjustments,
    rebase_schedule,
)
from vesting_claims.services.report_extractor import (
    extract_recipients,
    extract_report_context,
    extract_vesting_schedule,
    load_report,
)
from vesting_claims.utils import bind_run_context, get_logger, is_valid_address, setup_logging
from vesting_claims.utils.amounts import format_token_amount
from vesting_claims.utils.time import unix_to_iso

logger = get_logger(__name__)

RULE = "=" * 80


def _resolve_addresses(
    args: argparse.Namespace,
    ctx: ReportContext,
    *,
    require_router: bool = True,
) -> tuple[Optional[str], str]:
    router = args.router or ctx.payment_router
    token = args.token or ctx.token
    if not token or (require_router and not router):
        raise ConfigurationError(
            "Payment router and token address are required; pass --router/--token "
            "or include queries.addresses in the report"
        )
    for label, value in (("payment router", router), ("token", token)):
        if value is not None and not is_valid_address(value):
            raise ConfigurationError(f"Invalid {label} address: {value!r}")
    return router, token


def _project_dir(args: argparse.Namespace, ctx: ReportContext) -> Path:
    if getattr(args, "output_dir", None):
        return Path(args.output_dir)
    return Path(ctx.project_name) if ctx.project_name else Path(".")


async def _reconcile(
    settings: ExplorerSettings,
    router: str,
    token: str,
    recipients: Sequence[RecipientRecord],
) -> ReconciliationResult:
    settings.require_api_key()
    async with EtherscanClient(settings) as client:
        return await ClaimReconciler(client, settings).reconcile(router, token, recipients)


def _print_reconciliation_summary(result: ReconciliationResult, total_records: int) -> None:
    print(RULE)
    print("CLAIM CHECK SUMMARY")
    print(RULE)
    print(f"Recipient records:        {total_records}")
    print(f"Unique recipients:        {result.recipient_count}")
    print(f"Recipients with claims:   {len(result.adjustments)}")
    print(f"Recipients without:       {result.recipient_count - len(result.adjustments)}")
    print(f"Router transactions:      {result.total_transactions}")
    print(f"Receipts analyzed:        {result.candidate_transactions}")
    if result.failed:
        print(f"Receipt failures:         {len(result.failed)}")
    if result.adjustments:
        print(f"Total claimed:            {format_token_amount(result.total_claimed)} tokens")
        print(f"Claim transactions:       {result.total_claim_transactions}")
        for idx, adj in enumerate(result.adjustments, start=1):
            plural = "s" if adj.claim_count > 1 else ""
            print(f"  {idx}. {adj.address}")
            print(f"     claimed {format_token_amount(adj.claimed_amount)} tokens ({adj.claim_count} transaction{plural})")
    print(RULE)


async def cmd_check_claims(args: argparse.Namespace, settings: ExplorerSettings) -> int:
    data = load_report(args.report)
    recipients = extract_recipients(data)
    ctx = extract_report_context(data)
    bind_run_context(project=ctx.project_name)
    router, token = _resolve_addresses(args, ctx)

    result = await _reconcile(settings, router, token, recipients)
    simple, detailed = write_adjustment_files(result, _project_dir(args, ctx))

    _print_reconciliation_summary(result, len(recipients))
    print(f"Deductions:          {simple}")
    print(f"Detailed deductions: {detailed}")
    return 0


async def cmd_claims_report(args: argparse.Namespace, settings: ExplorerSettings) -> int:
    if args.start_block is not None:
        settings = dataclasses.replace(settings, start_block=args.start_block)
    settings.require_api_key()
    async with EtherscanClient(settings) as client:
        report = await build_claims_report(client, settings, args.router)

    output = write_json(args.output, report)

    print(RULE)
    print("CLAIMS REPORT")
    print(RULE)
    print(f"Total users:        {report['totalUsers']}")
    print(f"Total claims:       {report['totalClaims']}")
    print(f"Transactions:       {report['totalTransactions']}")
    for idx, user in enumerate(top_claimers(report), start=1):
        print(f"  {idx}. {user['userAddress']} ({user['totalClaimTransactions']} claim transactions)")
        for token in user["tokens"]:
            print(f"     {token['tokenAddress']}: {token['totalClaimedFormatted']} tokens")
    print(RULE)
    print(f"Output: {output}")
    return 0


async def cmd_adjust(args: argparse.Namespace, settings: ExplorerSettings) -> int:
    data = load_report(args.report)
    recipients = extract_recipients(data)
    ctx = extract_report_context(data)
    bind_run_context(project=ctx.project_name)
    router, token = _resolve_addresses(args, ctx, require_router=args.check_claims)
    original = extract_vesting_schedule(data)
    schedule = rebase_schedule(original)
    logger.info(
        "Vesting schedule rebased",
        original_start=unix_to_iso(original.start),
        cliff_days=original.cliff // 86400,
        new_start=unix_to_iso(schedule.start),
        end=unix_to_iso(schedule.end),
    )

    deductions: Dict[str, int]
    if args.deductions:
        deductions = load_adjustments(args.deductions)
    else:
        result = await _reconcile(settings, router, token, recipients)
        write_adjustment_files(result, _project_dir(args, ctx))
        deductions = deductions_from_adjustments(result.adjustments)

    payments = apply_deductions(
        recipients,
        deductions,
        token=token,
        schedule=schedule,
        only_adjusted=args.only_adjusted,
    )
    output = args.output or _project_dir(args, ctx) / config.ADJUSTED_PAYMENTS_FILE_NAME
    write_json(output, {
        "paymentRouter": router,
        "token": token,
        "safe": ctx.safe,
        "schedule": dataclasses.asdict(schedule),
        "payments": [p.to_json() for p in payments],
    })

    print(RULE)
    print(f"Adjusted payments: {len(payments)} of {len(recipients)} records")
    print(f"Total deducted:    {format_token_amount(sum(p.deducted for p in payments))} tokens")
    print(f"Output:            {output}")
    print(RULE)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vesting-claims",
        description="Detect already-claimed vesting tokens and adjust payment schedules.",
    )
    # .env is loaded before the parser is built
    parser.add_argument("--log-level", default=os.getenv("LOG_LEVEL", "INFO"), help="DEBUG, INFO, WARNING, ERROR")
    parser.add_argument("--log-file", default=os.getenv("LOG_FILE") or None, help="Optional JSON log file")
    sub = parser.add_subparsers(dest="command", required=True)

    check = sub.add_parser("check-claims", help="Reconcile a schedule report against on-chain claims")
    check.add_argument("report", help="Schedule report JSON file")
    check.add_argument("--router", help="Payment router address (defaults to report)")
    check.add_argument("--token", help="Token address (defaults to report)")
    check.add_argument("--output-dir", help="Directory for deduction files (defaults to ./<projectName>)")
    check.set_defaults(handler=cmd_check_claims)

    report = sub.add_parser("claims-report", help="Report every claim made through a payment router")
    report.add_argument("--router", required=True, help="Payment router address")
    report.add_argument("--start-block", type=int, default=None)
    report.add_argument("--output", default=config.CLAIMS_REPORT_FILE_NAME)
    report.set_defaults(handler=cmd_claims_report)

    adjust = sub.add_parser("adjust", help="Apply claim deductions to a report's payments")
    adjust.add_argument("report", help="Schedule report JSON file")
    source = adjust.add_mutually_exclusive_group(required=True)
    source.add_argument("--deductions", help="Existing addressToFilter.json")
    source.add_argument("--check-claims", action="store_true", help="Reconcile on-chain first")
    adjust.add_argument("--router", help="Payment router address (defaults to report)")
    adjust.add_argument("--token", help="Token address (defaults to report)")
    adjust.add_argument("--only-adjusted", action="store_true", help="Keep only recipients with deductions")
    adjust.add_argument("--output-dir", help="Directory for generated files (defaults to ./<projectName>)")
    adjust.add_argument("--output", type=Path, help="Adjusted payments file")
    adjust.set_defaults(handler=cmd_adjust)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv(find_dotenv(usecwd=True))
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(log_level=args.log_level.upper(), log_file=args.log_file)
    bind_run_context(command=args.command)

    try:
        settings = ExplorerSettings.from_env()
        return asyncio.run(args.handler(args, settings))
    except VestingClaimsError as e:
        logger.error("Run aborted", command=args.command, error=str(e), error_type=type(e).__name__)
        return 1


__all__ = ["main", "build_parser"]
