"""Pure token-amount helpers used by reconciliation & reporting.

Amounts are always Python ints in token base units; formatting to a human
readable decimal only happens at the edges (logs and report fields).
"""
from __future__ import annotations

from decimal import Decimal
from typing import Iterable

from eth_utils import from_wei


def parse_amount(value: object) -> int:
    """Parse a base-unit amount from a decimal string or int.

    Raises ValueError for floats, negative values and non-numeric strings.
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise ValueError(f"amount must be an integer, got {value!r}")
    if isinstance(value, int):
        amount = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        amount = int(text, 16) if text.lower().startswith("0x") else int(text, 10)
    else:
        raise ValueError(f"amount must be an integer, got {value!r}")
    if amount < 0:
        raise ValueError(f"amount must be non-negative, got {amount}")
    return amount


def format_token_amount(value: int, unit: str = "ether") -> str:
    """Base units -> plain decimal string (18 decimals by default)."""
    amount: Decimal = from_wei(value, unit)
    if amount == 0:
        return "0"
    return format(amount.normalize(), "f")


def total(values: Iterable[int]) -> int:
    return sum(values, 0)


__all__ = ["parse_amount", "format_token_amount", "total"]
