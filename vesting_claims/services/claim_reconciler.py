"""Claim reconciliation orchestrator.

``ClaimReconciler.reconcile(router, token, recipients)``:
1. Seeds one ClaimAccumulator per recipient, keyed by lowercase address.
2. Fetches the full transaction history of the payment router once
   (start block from settings through latest, ascending).
3. Keeps successful transactions sent by a known recipient.
4. Fetches each surviving receipt sequentially; every request passes through
   the explorer's rate limiter.
5. Counts a log as a claim when it is an ERC-20 Transfer of ``token`` to the
   transaction sender with a positive value.
6. Adds each claim to the sender's accumulator with its evidence.
7. Returns a ClaimAdjustment for every recipient with a positive total.

Failure policy:
* Router query failure, or a router with no transactions at all, aborts the
  run with ApiOperationalError.
* A failed receipt fetch or an undecodable log is logged and recorded in
  ``result.failed``; the walk continues.
* A receipt without matching transfers is logged as inconclusive and
  recorded in ``result.inconclusive``.
"""
from __future__ import annotations

import time
from typing import Dict, Iterable, List, Sequence

from vesting_claims.config import ExplorerSettings
from vesting_claims.exceptions import (
    ApiOperationalError,
    ConfigurationError,
    InconclusiveEvidenceWarning,
)
from vesting_claims.integrations.base import BlockExplorer
from vesting_claims.models.records import (
    ClaimAccumulator,
    ClaimAdjustment,
    ClaimEvidence,
    RecipientRecord,
    ReconciliationResult,
)
from vesting_claims.models.schemas import CandidateTransaction, TransactionReceipt
from vesting_claims.services.log_decoder import decode_transfer_log, is_claim_transfer
from vesting_claims.services.receipt_fetcher import ReceiptFetcher
from vesting_claims.utils import get_logger, is_valid_address, log_business_event, log_performance
from vesting_claims.utils.addresses import address_key, same_address
from vesting_claims.utils.amounts import format_token_amount

logger = get_logger(__name__)


def build_lookup(recipients: Iterable[RecipientRecord]) -> Dict[str, ClaimAccumulator]:
    """Lowercase address -> accumulator. Later duplicates overwrite expected_amount."""
    lookup: Dict[str, ClaimAccumulator] = {}
    for record in recipients:
        existing = lookup.get(record.key)
        if existing is None:
            lookup[record.key] = ClaimAccumulator(address=record.address, expected_amount=record.expected_amount)
        else:
            existing.expected_amount = record.expected_amount
    return lookup


def select_candidates(
    transactions: Sequence[CandidateTransaction],
    lookup: Dict[str, ClaimAccumulator],
) -> List[CandidateTransaction]:
    candidates = [
        tx for tx in transactions
        if tx.from_address and address_key(tx.from_address) in lookup and tx.succeeded
    ]
    # Explorer sorts ascending already; keep that order stable for equal blocks
    return sorted(candidates, key=lambda tx: tx.block_number)


def collect_evidence(
    tx: CandidateTransaction,
    receipt: TransactionReceipt | None,
    token: str,
) -> List[ClaimEvidence]:
    """Claim evidence contained in one receipt.

    Raises InconclusiveEvidenceWarning when there is none, ValueError when a
    Transfer log emitted by ``token`` cannot be decoded.
    """
    if receipt is None:
        raise InconclusiveEvidenceWarning(tx.hash, "no receipt available")
    if not receipt.logs:
        raise InconclusiveEvidenceWarning(tx.hash, "receipt has no logs")

    evidence: List[ClaimEvidence] = []
    for log in receipt.logs:
        # Logs of other contracts are never decoded
        if not same_address(log.address, token):
            continue
        event = decode_transfer_log(log)
        if event is None or not is_claim_transfer(event, sender=tx.from_address, token=token):
            continue
        evidence.append(
            ClaimEvidence(
                hash=tx.hash,
                block_number=tx.block_number,
                timestamp=tx.timestamp,
                value=event.value,
                from_address=event.from_address,
            )
        )
    if not evidence:
        raise InconclusiveEvidenceWarning(tx.hash, "no matching token transfer to sender")
    return evidence


class ClaimReconciler:
    """Works out how much each scheduled recipient has already withdrawn."""

    def __init__(self, explorer: BlockExplorer, settings: ExplorerSettings):
        self.explorer = explorer
        self.settings = settings
        self.fetcher = ReceiptFetcher(explorer)

    async def reconcile(
        self,
        router: str,
        token: str,
        recipients: Sequence[RecipientRecord],
    ) -> ReconciliationResult:
        for label, value in (("payment router", router), ("token", token)):
            if not is_valid_address(value):
                raise ConfigurationError(f"Invalid {label} address: {value!r}")

        started = time.perf_counter()
        lookup = build_lookup(recipients)
        result = ReconciliationResult(router=router, token=token, recipient_count=len(lookup))

        logger.info(
            "Starting claim reconciliation",
            router=router,
            token=token,
            chain_id=self.settings.chain_id,
            recipients=len(lookup),
        )

        transactions = await self.explorer.list_transactions(router, start_block=self.settings.start_block)
        result.total_transactions = len(transactions)
        if not transactions:
            raise ApiOperationalError(
                f"Explorer returned no transactions for payment router {router}; "
                "check the router address and chain id"
            )

        candidates = select_candidates(transactions, lookup)
        result.candidate_transactions = len(candidates)
        logger.info(
            "Router transactions filtered",
            total=len(transactions),
            candidates=len(candidates),
        )

        for idx, tx in enumerate(candidates, start=1):
            logger.debug("Analyzing transaction", position=f"{idx}/{len(candidates)}", tx_hash=tx.hash)

            outcome = await self.fetcher.fetch(tx.hash)
            if not outcome.success:
                result.failed.append(tx.hash)
                continue

            try:
                evidence = collect_evidence(tx, outcome.receipt, token)
            except InconclusiveEvidenceWarning as w:
                logger.warning(
                    "Inconclusive claim evidence",
                    tx_hash=w.tx_hash,
                    reason=w.reason,
                    sender=tx.from_address,
                )
                result.inconclusive.append(tx.hash)
                continue
            except ValueError as e:
                logger.error("Undecodable transfer log, skipping transaction", tx_hash=tx.hash, error=str(e))
                result.failed.append(tx.hash)
                continue

            acc = lookup[address_key(tx.from_address)]
            for item in evidence:
                acc.add(item)
                logger.info(
                    "Claim found",
                    recipient=tx.from_address,
                    amount=format_token_amount(item.value),
                    source=item.from_address,
                    tx_hash=tx.hash,
                    block=tx.block_number,
                )

        result.adjustments = [ClaimAdjustment.from_accumulator(acc) for acc in lookup.values() if acc.has_claims]

        duration_ms = (time.perf_counter() - started) * 1000
        log_performance(
            "claim_reconciliation",
            duration_ms,
            {"transactions": result.total_transactions, "receipts": len(candidates)},
        )
        log_business_event(
            "claims_reconciled",
            {
                "router": router,
                "token": token,
                "recipients": result.recipient_count,
                "recipients_with_claims": len(result.adjustments),
                "total_claimed": str(result.total_claimed),
                "inconclusive": len(result.inconclusive),
                "failed": len(result.failed),
                "rate_limited": self.fetcher.throttled,
            },
        )
        return result


__all__ = ["ClaimReconciler", "build_lookup", "select_candidates", "collect_evidence"]
