"""Domain records produced and consumed during a reconciliation run.

Amounts are plain ints in token base units. The ``to_json`` helpers emit
amounts as decimal strings so no consumer ever sees a lossy JSON number.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from vesting_claims.utils.addresses import address_key, checksum
from vesting_claims.utils.amounts import total


@dataclass(frozen=True)
class RecipientRecord:
    address: str
    expected_amount: int

    @property
    def key(self) -> str:
        return address_key(self.address)

    @property
    def checksum_address(self) -> str:
        return checksum(self.address)


@dataclass(frozen=True)
class VestingSchedule:
    start: int
    cliff: int
    end: int


@dataclass(frozen=True)
class ReportContext:
    project_name: Optional[str]
    payment_router: Optional[str]
    token: Optional[str]
    safe: Optional[str]


@dataclass(frozen=True)
class TransferEvent:
    """Decoded ERC-20 ``Transfer(address,address,uint256)`` log."""
    token: str
    from_address: str
    to_address: str
    value: int


@dataclass(frozen=True)
class ClaimEvidence:
    hash: str
    block_number: int
    timestamp: int
    value: int
    from_address: Optional[str] = None

    def to_json(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "hash": self.hash,
            "blockNumber": str(self.block_number),
            "timeStamp": str(self.timestamp),
            "value": str(self.value),
        }
        if self.from_address:
            payload["from"] = self.from_address
        return payload


@dataclass
class ClaimAccumulator:
    """Running claim total for one recipient.

    ``add`` is the only mutator, which keeps ``claimed_amount`` equal to the
    sum of evidence values.
    """
    address: str
    expected_amount: int
    claimed_amount: int = 0
    transactions: List[ClaimEvidence] = field(default_factory=list)

    def add(self, evidence: ClaimEvidence) -> None:
        if evidence.value <= 0:
            raise ValueError("claim evidence must carry a positive value")
        self.transactions.append(evidence)
        self.claimed_amount += evidence.value

    @property
    def has_claims(self) -> bool:
        return self.claimed_amount > 0


@dataclass(frozen=True)
class ClaimAdjustment:
    address: str
    amount_to_deduct: int
    expected_amount: int
    claimed_amount: int
    transactions: tuple[ClaimEvidence, ...]

    @property
    def claim_count(self) -> int:
        return len(self.transactions)

    @classmethod
    def from_accumulator(cls, acc: ClaimAccumulator) -> "ClaimAdjustment":
        # Deduct everything already claimed; no cap against expected_amount.
        return cls(
            address=checksum(acc.address),
            amount_to_deduct=acc.claimed_amount,
            expected_amount=acc.expected_amount,
            claimed_amount=acc.claimed_amount,
            transactions=tuple(acc.transactions),
        )

    def to_simple_json(self) -> Dict[str, Any]:
        return {"address": self.address, "amountToDeduct": str(self.amount_to_deduct)}

    def to_detailed_json(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "amountToDeduct": str(self.amount_to_deduct),
            "expectedAmount": str(self.expected_amount),
            "claimedAmount": str(self.claimed_amount),
            "claimCount": self.claim_count,
            "transactions": [e.to_json() for e in self.transactions],
        }


@dataclass
class ReconciliationResult:
    router: str
    token: str
    adjustments: List[ClaimAdjustment] = field(default_factory=list)
    recipient_count: int = 0
    total_transactions: int = 0
    candidate_transactions: int = 0
    inconclusive: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    @property
    def total_claimed(self) -> int:
        return total(a.claimed_amount for a in self.adjustments)

    @property
    def total_claim_transactions(self) -> int:
        return sum(a.claim_count for a in self.adjustments)


@dataclass(frozen=True)
class AdjustedPayment:
    """A pushPayment call after deducting already-claimed tokens."""
    recipient: str
    token: str
    amount: int
    original_amount: int
    deducted: int
    schedule: VestingSchedule

    def to_json(self) -> Dict[str, Any]:
        return {
            "recipient": self.recipient,
            "token": self.token,
            "amount": str(self.amount),
            "originalAmount": str(self.original_amount),
            "deducted": str(self.deducted),
            "start": str(self.schedule.start),
            "cliff": str(self.schedule.cliff),
            "end": str(self.schedule.end),
        }


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
