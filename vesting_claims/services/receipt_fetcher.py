"""Receipt fetch wrapper classifying explorer failures.

The reconciler and the claims report both walk a list of router transactions
and need a receipt per transaction. A failure for one transaction must not
stop the walk, so this wrapper converts explorer errors into a ``FetchOutcome``
the caller can log and skip. No retries: a failed fetch simply contributes no
evidence.
"""
from __future__ import annotations

from dataclasses import dataclass

from vesting_claims.exceptions import ApiOperationalError
from vesting_claims.integrations.base import BlockExplorer
from vesting_claims.models.schemas import TransactionReceipt
from vesting_claims.utils import get_logger

logger = get_logger(__name__)


@dataclass
class FetchOutcome:
    tx_hash: str
    success: bool
    receipt: TransactionReceipt | None
    error_code: str | None = None
    error_message: str | None = None

    @property
    def rate_limited(self) -> bool:
        return self.error_code == "rate_limited"


def classify_error(message: str) -> str:
    msg = message.lower()
    if "rate limit" in msg or "max calls per sec" in msg or "429" in msg:
        return "rate_limited"
    if "api key" in msg or "apikey" in msg or "401" in msg or "403" in msg:
        return "auth_error"
    return "fetch_error"


class ReceiptFetcher:
    """Fetches one receipt per call and never raises explorer errors."""

    def __init__(self, explorer: BlockExplorer):
        self.explorer = explorer
        self.failures = 0
        self.throttled = 0

    async def fetch(self, tx_hash: str) -> FetchOutcome:
        try:
            receipt = await self.explorer.get_transaction_receipt(tx_hash)
        except ApiOperationalError as e:
            self.failures += 1
            code = classify_error(str(e))
            logger.error(
                "Receipt fetch failed, skipping transaction",
                tx_hash=tx_hash,
                error_code=code,
                error=str(e),
            )
            outcome = FetchOutcome(
                tx_hash=tx_hash,
                success=False,
                receipt=None,
                error_code=code,
                error_message=str(e),
            )
            if outcome.rate_limited:
                self.throttled += 1
            return outcome
        return FetchOutcome(tx_hash=tx_hash, success=True, receipt=receipt)


__all__ = ["ReceiptFetcher", "FetchOutcome", "classify_error"]
