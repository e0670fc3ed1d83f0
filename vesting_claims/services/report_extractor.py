"""Schedule report parsing.

The report is an exported JSON document whose ``transactions.readable`` member
is a list of transaction groups, each a list of decoded contract calls. Every
``pushPayment`` call schedules one vesting payment; its first input is the
recipient and its third input the amount in token base units.

Parsing is all-or-nothing: any shape problem raises ``MalformedReportError``
and no partial record list is returned.
"""
from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, List, Mapping

from pydantic import ValidationError

from vesting_claims.config import (
    PUSH_PAYMENT_AMOUNT_INDEX,
    PUSH_PAYMENT_RECIPIENT_INDEX,
    PUSH_PAYMENT_SIGNATURE,
)
from vesting_claims.exceptions import MalformedReportError
from vesting_claims.models.records import RecipientRecord, ReportContext, VestingSchedule
from vesting_claims.models.schemas import ReportCall, ScheduleReport
from vesting_claims.utils import get_logger, is_valid_address
from vesting_claims.utils.amounts import parse_amount

logger = get_logger(__name__)

_PROJECT_SUFFIX_RE = re.compile(r"_S2$", re.IGNORECASE)


def load_report(path: str | Path) -> dict[str, Any]:
    """Read a report file from disk."""
    report_path = Path(path)
    try:
        with report_path.open("r", encoding="utf-8") as fh:
            data = json.load(fh)
    except OSError as e:
        raise MalformedReportError(f"Cannot read report {report_path}: {e}") from e
    except json.JSONDecodeError as e:
        raise MalformedReportError(f"Report {report_path} is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise MalformedReportError(f"Report {report_path} must contain a JSON object")
    logger.info("Report loaded", path=str(report_path))
    return data


def parse_report(data: Mapping[str, Any] | ScheduleReport) -> ScheduleReport:
    if isinstance(data, ScheduleReport):
        return data
    try:
        return ScheduleReport.model_validate(data)
    except ValidationError as e:
        raise MalformedReportError(f"Report does not match the expected shape: {e}") from e


def _is_push_payment(call: ReportCall) -> bool:
    return call.function_signature == PUSH_PAYMENT_SIGNATURE


def _record_from_call(call: ReportCall, group_idx: int, call_idx: int) -> RecipientRecord:
    where = f"transactions.readable[{group_idx}][{call_idx}]"
    values = call.input_values
    if len(values) <= PUSH_PAYMENT_AMOUNT_INDEX:
        raise MalformedReportError(f"{where}: pushPayment call has {len(values)} inputs, expected 6")
    address = values[PUSH_PAYMENT_RECIPIENT_INDEX]
    if not is_valid_address(address):
        raise MalformedReportError(f"{where}: recipient {address!r} is not an address")
    try:
        amount = parse_amount(values[PUSH_PAYMENT_AMOUNT_INDEX])
    except ValueError as e:
        raise MalformedReportError(f"{where}: invalid amount: {e}") from e
    return RecipientRecord(address=address.strip(), expected_amount=amount)


def extract_recipients(data: Mapping[str, Any] | ScheduleReport) -> List[RecipientRecord]:
    """Flatten every pushPayment call into a RecipientRecord.

    Order follows the report (group, then call). Repeated recipients yield
    repeated records.
    """
    report = parse_report(data)
    records: List[RecipientRecord] = []
    for group_idx, group in enumerate(report.transactions.readable):
        for call_idx, call in enumerate(group):
            if _is_push_payment(call):
                records.append(_record_from_call(call, group_idx, call_idx))
    logger.info(
        "Recipients extracted",
        groups=len(report.transactions.readable),
        recipients=len(records),
        unique_recipients=len({r.key for r in records}),
    )
    return records


def clean_project_name(name: str | None) -> str | None:
    if not name:
        return None
    cleaned = _PROJECT_SUFFIX_RE.sub("", name).rstrip("_")
    return cleaned or None


def extract_report_context(data: Mapping[str, Any] | ScheduleReport) -> ReportContext:
    report = parse_report(data)
    addresses = report.queries.addresses if report.queries else None
    project_config = report.inputs.project_config if report.inputs else None
    return ReportContext(
        project_name=clean_project_name(report.project_name),
        payment_router=addresses.payment_router if addresses else None,
        token=addresses.issuance_token if addresses else None,
        safe=project_config.safe if project_config else None,
    )


def extract_vesting_schedule(data: Mapping[str, Any] | ScheduleReport) -> VestingSchedule:
    """Start/cliff/end of the first pushPayment in the first group."""
    report = parse_report(data)
    groups = report.transactions.readable
    first = next((c for c in (groups[0] if groups else []) if _is_push_payment(c)), None)
    if first is None or len(first.input_values) < 6:
        raise MalformedReportError("First transaction group has no complete pushPayment call")
    try:
        start, cliff, end = (parse_amount(v) for v in first.input_values[3:6])
    except ValueError as e:
        raise MalformedReportError(f"Invalid vesting timing values: {e}") from e
    if start == 0 or end == 0:
        raise MalformedReportError("Vesting start and end must be non-zero")
    return VestingSchedule(start=start, cliff=cliff, end=end)


__all__ = [
    "load_report",
    "parse_report",
    "extract_recipients",
    "clean_project_name",
    "extract_report_context",
    "extract_vesting_schedule",
]
