"""Vesting payment claim reconciliation tooling.

Reads exported schedule reports, replays payment-router history through a
block-explorer API and produces per-recipient claim deductions.
"""

__version__ = "0.1.0"

__all__: list[str] = ["__version__"]
