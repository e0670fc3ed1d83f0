"""Re-apply claim deductions to scheduled payments.

Takes the recipient records of a report plus the deductions found by the
reconciler and produces the pushPayment arguments for a fresh schedule. The
Safe batch file format itself is produced elsewhere.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Sequence

from vesting_claims.exceptions import MalformedReportError
from vesting_claims.models.records import (
    AdjustedPayment,
    ClaimAdjustment,
    RecipientRecord,
    VestingSchedule,
)
from vesting_claims.utils import get_logger, is_valid_address
from vesting_claims.utils.addresses import address_key, checksum
from vesting_claims.utils.amounts import format_token_amount, parse_amount

logger = get_logger(__name__)


def rebase_schedule(schedule: VestingSchedule) -> VestingSchedule:
    """Fold the cliff into the start: the cliff has already elapsed."""
    return VestingSchedule(start=schedule.start + schedule.cliff, cliff=0, end=schedule.end)


def deductions_from_adjustments(adjustments: Sequence[ClaimAdjustment]) -> Dict[str, int]:
    return {address_key(a.address): a.amount_to_deduct for a in adjustments}


def parse_deductions(rows: Any) -> Dict[str, int]:
    """`[{address, amountToDeduct}]` -> {lowercase address: amount}."""
    if not isinstance(rows, list):
        raise MalformedReportError("Deduction file must contain a JSON list")
    deductions: Dict[str, int] = {}
    for idx, row in enumerate(rows):
        if not isinstance(row, dict) or not is_valid_address(row.get("address")):
            raise MalformedReportError(f"Deduction entry {idx} has no valid address")
        try:
            amount = parse_amount(row.get("amountToDeduct"))
        except ValueError as e:
            raise MalformedReportError(f"Deduction entry {idx}: {e}") from e
        deductions[address_key(row["address"])] = amount
    return deductions


def load_adjustments(path: str | Path) -> Dict[str, int]:
    file_path = Path(path)
    try:
        with file_path.open("r", encoding="utf-8") as fh:
            rows = json.load(fh)
    except (OSError, json.JSONDecodeError) as e:
        raise MalformedReportError(f"Cannot read deduction file {file_path}: {e}") from e
    return parse_deductions(rows)


def apply_deductions(
    recipients: Sequence[RecipientRecord],
    deductions: Mapping[str, int],
    *,
    token: str,
    schedule: VestingSchedule,
    only_adjusted: bool = False,
) -> List[AdjustedPayment]:
    """Subtract each recipient's deduction from every one of its records.

    Records whose remaining amount is not positive are dropped. With
    ``only_adjusted`` recipients without a deduction are dropped as well.
    """
    token_checksum = checksum(token)
    payments: List[AdjustedPayment] = []
    for record in recipients:
        deducted = deductions.get(record.key, 0)
        if only_adjusted and record.key not in deductions:
            continue
        amount = record.expected_amount - deducted
        if deducted:
            logger.info(
                "Deducting claimed amount",
                recipient=record.checksum_address,
                original=format_token_amount(record.expected_amount),
                deducted=format_token_amount(deducted),
                remaining=format_token_amount(max(amount, 0)),
            )
        if amount <= 0:
            logger.warning(
                "Recipient fully claimed, dropping payment",
                recipient=record.checksum_address,
                expected=str(record.expected_amount),
                deducted=str(deducted),
            )
            continue
        payments.append(
            AdjustedPayment(
                recipient=record.checksum_address,
                token=token_checksum,
                amount=amount,
                original_amount=record.expected_amount,
                deducted=deducted,
                schedule=schedule,
            )
        )
    logger.info(
        "Deductions applied",
        records=len(recipients),
        payments=len(payments),
        only_adjusted=only_adjusted,
    )
    return payments


__all__ = [
    "rebase_schedule",
    "deductions_from_adjustments",
    "parse_deductions",
    "load_adjustments",
    "apply_deductions",
]
