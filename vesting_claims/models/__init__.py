"""
Models package: pydantic schemas for inbound payloads, dataclass records for run state.
"""
from .records import (
    RecipientRecord,
    VestingSchedule,
    ReportContext,
    TransferEvent,
    ClaimEvidence,
    ClaimAccumulator,
    ClaimAdjustment,
    ReconciliationResult,
    AdjustedPayment,
)

__all__ = [
    "RecipientRecord",
    "VestingSchedule",
    "ReportContext",
    "TransferEvent",
    "ClaimEvidence",
    "ClaimAccumulator",
    "ClaimAdjustment",
    "ReconciliationResult",
    "AdjustedPayment",
]
