"""
Etherscan (v2 multichain) API integration.
Provides the two explorer queries the reconciliation needs: the transaction
list of an address and a transaction receipt via the JSON-RPC proxy module.
"""
import asyncio
from typing import Any, Dict, List, Optional

import aiohttp
from pydantic import ValidationError

from vesting_claims.config import ExplorerSettings
from vesting_claims.exceptions import ApiOperationalError
from vesting_claims.integrations.base import BlockExplorer
from vesting_claims.models.schemas import (
    CandidateTransaction,
    ExplorerEnvelope,
    TransactionReceipt,
)
from vesting_claims.utils import get_logger
from vesting_claims.utils.ratelimiter import FixedIntervalRateLimiter

logger = get_logger(__name__)

NO_TRANSACTIONS_MESSAGE = "No transactions found"

class EtherscanClient(BlockExplorer):
    """Etherscan-compatible explorer client.

    Use as an async context manager so the underlying aiohttp session is
    closed. An externally owned ``session`` is used as-is and never closed.
    """

    def __init__(
        self,
        settings: ExplorerSettings,
        rate_limiter: Optional[FixedIntervalRateLimiter] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.settings = settings
        self.rate_limiter = rate_limiter or FixedIntervalRateLimiter(settings.request_interval_seconds)
        self._session = session
        self._owns_session = session is None
        self.request_count = 0
        self.logger = get_logger("integration.etherscan")

    async def __aenter__(self) -> "EtherscanClient":
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=self.settings.request_timeout_seconds)
            self._session = aiohttp.ClientSession(
                timeout=timeout,
                headers={"User-Agent": "vesting-claims/0.1"},
            )
            self._owns_session = True
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    def _params(self, **params: Any) -> Dict[str, str]:
        base = {"chainid": self.settings.chain_id}
        base.update({k: str(v) for k, v in params.items()})
        base["apikey"] = self.settings.api_key or ""
        return base

    async def _get_json(self, params: Dict[str, str]) -> Dict[str, Any]:
        """Single rate-limited GET against the explorer endpoint."""
        if self._session is None:
            raise RuntimeError("EtherscanClient used outside of 'async with'")

        await self.rate_limiter.acquire()
        self.request_count += 1
        action = params.get("action")

        self.logger.debug(
            "Making explorer API request",
            module=params.get("module"),
            action=action,
        )

        try:
            async with self._session.get(self.settings.api_url, params=params) as response:
                if response.status != 200:
                    self.logger.error(
                        "Explorer API request failed",
                        status_code=response.status,
                        action=action,
                    )
                    raise ApiOperationalError(
                        f"Explorer returned HTTP {response.status} for {action}",
                        status=response.status,
                    )
                data = await response.json(content_type=None)

        except asyncio.TimeoutError as e:
            self.logger.error("Explorer API request timed out", action=action)
            raise ApiOperationalError(f"Explorer request timed out ({action})") from e

        except aiohttp.ClientError as e:
            self.logger.error("Explorer API client error", action=action, error=str(e))
            raise ApiOperationalError(f"Explorer client error ({action}): {e}") from e

        except ValueError as e:
            # JSON decode failure
            raise ApiOperationalError(f"Explorer returned a non-JSON body for {action}") from e

        if not isinstance(data, dict):
            raise ApiOperationalError(f"Explorer returned an unexpected payload for {action}")
        return data

    async def list_transactions(self, address: str, start_block: int = 0) -> List[CandidateTransaction]:
        params = self._params(
            module="account",
            action="txlist",
            address=address,
            startblock=start_block,
            endblock="latest",
            sort="asc",
        )
        data = await self._get_json(params)
        envelope = ExplorerEnvelope.model_validate(data)

        if envelope.status == "0" and envelope.message == NO_TRANSACTIONS_MESSAGE:
            self.logger.info("Explorer reports no transactions", address=address)
            return []

        if not envelope.ok:
            detail = envelope.result if isinstance(envelope.result, str) else envelope.message
            self.logger.error(
                "Explorer txlist query failed",
                address=address,
                status=envelope.status,
                explorer_message=envelope.message,
                detail=detail,
            )
            raise ApiOperationalError(
                f"Explorer API error: {detail or 'unknown error'}",
                status=envelope.status,
                explorer_message=envelope.message,
            )

        try:
            transactions = [CandidateTransaction.model_validate(tx) for tx in (envelope.result or [])]
        except ValidationError as e:
            raise ApiOperationalError(f"Explorer txlist returned malformed transactions: {e}") from e

        self.logger.info(
            "Explorer transactions fetched",
            address=address,
            start_block=start_block,
            count=len(transactions),
        )
        return transactions

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[TransactionReceipt]:
        params = self._params(
            module="proxy",
            action="eth_getTransactionReceipt",
            txhash=tx_hash,
        )
        data = await self._get_json(params)

        error = data.get("error")
        if error:
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise ApiOperationalError(f"Explorer API error: {message}", explorer_message=message)

        # Invalid keys and rate limiting come back in the account-module envelope
        if data.get("status") == "0":
            detail = data.get("result") if isinstance(data.get("result"), str) else data.get("message")
            raise ApiOperationalError(
                f"Explorer API error: {detail or 'unknown error'}",
                status="0",
                explorer_message=data.get("message"),
            )

        result = data.get("result")
        if result is None:
            return None
        if not isinstance(result, dict):
            raise ApiOperationalError(f"Explorer returned an unexpected receipt for {tx_hash}: {result!r}")
        try:
            return TransactionReceipt.model_validate(result)
        except ValidationError as e:
            raise ApiOperationalError(f"Explorer returned a malformed receipt for {tx_hash}: {e}") from e
