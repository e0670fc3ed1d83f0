"""Core configuration & tunable explorer settings.

Tunables that may change per deployment (explorer endpoint, chain, request
pacing) are read from the environment once at import time and kept
as module constants. Anything a run actually depends on is copied into an
immutable ``ExplorerSettings`` value that is handed to the explorer client and
the reconciler explicitly, so no component reads ambient state mid-run.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Final, Mapping

from vesting_claims.exceptions import ConfigurationError

# ------------------------------ Block explorer ---------------------------- #
EXPLORER_API_URL: str = os.getenv("EXPLORER_API_URL", "https://api.etherscan.io/v2/api")
EXPLORER_CHAIN_ID: str = os.getenv("EXPLORER_CHAIN_ID", "137")  # Polygon PoS
# Free tier allows ~4 requests/sec
EXPLORER_REQUEST_INTERVAL_SECONDS: float = float(os.getenv("EXPLORER_REQUEST_INTERVAL_SECONDS", "0.25"))
EXPLORER_REQUEST_TIMEOUT_SECONDS: float = float(os.getenv("EXPLORER_REQUEST_TIMEOUT_SECONDS", "30"))
EXPLORER_START_BLOCK: int = int(os.getenv("EXPLORER_START_BLOCK", "0"))

# Value shipped in example configs; never a usable key.
PLACEHOLDER_API_KEY: Final[str] = "YourApiKeyToken"
API_KEY_ENV_VARS: Final[tuple[str, ...]] = ("ETHERSCAN_API_KEY", "POLYGONSCAN_API_KEY")

# --------------------------------- Report --------------------------------- #
PUSH_PAYMENT_SIGNATURE: Final[str] = "pushPayment(address,address,uint256,uint256,uint256,uint256)"
PUSH_PAYMENT_RECIPIENT_INDEX: Final[int] = 0
PUSH_PAYMENT_AMOUNT_INDEX: Final[int] = 2

# --------------------------------- Outputs -------------------------------- #
ADJUSTMENT_FILE_NAME: Final[str] = "addressToFilter.json"
DETAILED_ADJUSTMENT_FILE_NAME: Final[str] = "addressToFilter_detailed.json"
CLAIMS_REPORT_FILE_NAME: Final[str] = "claims_report.json"
ADJUSTED_PAYMENTS_FILE_NAME: Final[str] = "adjusted_payments.json"


@dataclass(frozen=True)
class ExplorerSettings:
    """Everything needed to talk to an Etherscan-compatible explorer."""

    api_key: str | None
    api_url: str = EXPLORER_API_URL
    chain_id: str = EXPLORER_CHAIN_ID
    request_interval_seconds: float = EXPLORER_REQUEST_INTERVAL_SECONDS
    request_timeout_seconds: float = EXPLORER_REQUEST_TIMEOUT_SECONDS
    start_block: int = EXPLORER_START_BLOCK

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ExplorerSettings":
        """Build settings from ``environ`` (defaults to ``os.environ``).

        Unset variables fall back to the module defaults above.
        """
        env = os.environ if environ is None else environ
        api_key = next((env[name] for name in API_KEY_ENV_VARS if env.get(name)), None)
        try:
            return cls(
                api_key=api_key,
                api_url=env.get("EXPLORER_API_URL", EXPLORER_API_URL),
                chain_id=env.get("EXPLORER_CHAIN_ID", EXPLORER_CHAIN_ID),
                request_interval_seconds=float(
                    env.get("EXPLORER_REQUEST_INTERVAL_SECONDS", EXPLORER_REQUEST_INTERVAL_SECONDS)
                ),
                request_timeout_seconds=float(
                    env.get("EXPLORER_REQUEST_TIMEOUT_SECONDS", EXPLORER_REQUEST_TIMEOUT_SECONDS)
                ),
                start_block=int(env.get("EXPLORER_START_BLOCK", EXPLORER_START_BLOCK)),
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid explorer setting: {e}") from e

    @property
    def has_usable_api_key(self) -> bool:
        return bool(self.api_key) and self.api_key != PLACEHOLDER_API_KEY

    def require_api_key(self) -> str:
        if not self.has_usable_api_key:
            raise ConfigurationError(
                f"Explorer API key not set; export one of {', '.join(API_KEY_ENV_VARS)} "
                "or add it to a .env file"
            )
        return self.api_key  # type: ignore[return-value]


__all__ = [
    "EXPLORER_API_URL",
    "EXPLORER_CHAIN_ID",
    "EXPLORER_REQUEST_INTERVAL_SECONDS",
    "EXPLORER_REQUEST_TIMEOUT_SECONDS",
    "EXPLORER_START_BLOCK",
    "PLACEHOLDER_API_KEY",
    "PUSH_PAYMENT_SIGNATURE",
    "PUSH_PAYMENT_RECIPIENT_INDEX",
    "PUSH_PAYMENT_AMOUNT_INDEX",
    "ADJUSTMENT_FILE_NAME",
    "DETAILED_ADJUSTMENT_FILE_NAME",
    "CLAIMS_REPORT_FILE_NAME",
    "ADJUSTED_PAYMENTS_FILE_NAME",
    "ExplorerSettings",
]
