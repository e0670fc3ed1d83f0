"""Router-wide claims report.

Unlike the reconciler, this does not start from a recipient list: every
successful transaction sent to the router is inspected and any Transfer log
(of any token) that pays the transaction sender counts as a claim. Results are
grouped by user, then by token.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

from vesting_claims.config import ExplorerSettings
from vesting_claims.exceptions import ConfigurationError
from vesting_claims.integrations.base import BlockExplorer
from vesting_claims.services.log_decoder import decode_transfer_log, is_claim_transfer
from vesting_claims.services.receipt_fetcher import ReceiptFetcher
from vesting_claims.utils import get_logger, is_valid_address, log_business_event
from vesting_claims.utils.addresses import address_key
from vesting_claims.utils.amounts import format_token_amount
from vesting_claims.utils.time import unix_to_iso, utc_now

logger = get_logger(__name__)

PROGRESS_EVERY = 10


@dataclass
class TokenClaims:
    token_address: str
    total_claimed: int = 0
    claims: List[Dict[str, Any]] = field(default_factory=list)

    def to_json(self) -> Dict[str, Any]:
        return {
            "tokenAddress": self.token_address,
            "totalClaimed": str(self.total_claimed),
            "totalClaimedFormatted": format_token_amount(self.total_claimed),
            "claimCount": len(self.claims),
            "claims": self.claims,
        }


async def build_claims_report(
    explorer: BlockExplorer,
    settings: ExplorerSettings,
    router: str,
    *,
    chain_name: str = "Polygon",
) -> Dict[str, Any]:
    if not is_valid_address(router):
        raise ConfigurationError(f"Invalid payment router address: {router!r}")

    logger.info("Generating claims report", router=router, start_block=settings.start_block)
    transactions = await explorer.list_transactions(router, start_block=settings.start_block)
    successful = [tx for tx in transactions if tx.succeeded]
    logger.info("Router transactions fetched", total=len(transactions), successful=len(successful))

    fetcher = ReceiptFetcher(explorer)
    # user -> token -> TokenClaims
    by_user: Dict[str, Dict[str, TokenClaims]] = {}
    claim_total = 0

    for idx, tx in enumerate(successful, start=1):
        if idx % PROGRESS_EVERY == 0:
            logger.info("Progress", analyzed=idx, total=len(successful))

        outcome = await fetcher.fetch(tx.hash)
        if not outcome.success or outcome.receipt is None or not outcome.receipt.logs:
            continue

        for log in outcome.receipt.logs:
            try:
                event = decode_transfer_log(log)
            except ValueError as e:
                logger.error("Undecodable transfer log", tx_hash=tx.hash, error=str(e))
                continue
            if event is None or not is_claim_transfer(event, sender=tx.from_address):
                continue

            claim_total += 1
            user_tokens = by_user.setdefault(address_key(event.to_address), {})
            token_claims = user_tokens.setdefault(event.token, TokenClaims(token_address=log.address))
            token_claims.total_claimed += event.value
            token_claims.claims.append({
                "transactionHash": tx.hash,
                "blockNumber": str(tx.block_number),
                "timestamp": str(tx.timestamp),
                "date": unix_to_iso(tx.timestamp),
                "amount": str(event.value),
                "amountFormatted": format_token_amount(event.value),
                "from": event.from_address,
            })

    users: List[Dict[str, Any]] = []
    for user_address in sorted(by_user):
        tokens = [t.to_json() for t in by_user[user_address].values()]
        users.append({
            "userAddress": user_address,
            "tokens": tokens,
            "totalClaimTransactions": sum(t["claimCount"] for t in tokens),
        })

    report = {
        "generatedAt": utc_now().isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        "paymentRouterAddress": router,
        "chainId": settings.chain_id,
        "chainName": chain_name,
        "totalTransactions": len(transactions),
        "successfulTransactions": len(successful),
        "totalClaims": claim_total,
        "totalUsers": len(users),
        "users": users,
    }
    log_business_event(
        "claims_report_generated",
        {"router": router, "users": len(users), "claims": claim_total, "failed_receipts": fetcher.failures},
    )
    return report


def top_claimers(report: Dict[str, Any], limit: int = 10) -> List[Dict[str, Any]]:
    """Users ordered by number of claim transactions, most first."""
    return sorted(report.get("users", []), key=lambda u: u["totalClaimTransactions"], reverse=True)[:limit]


__all__ = ["build_claims_report", "top_claimers", "TokenClaims"]
