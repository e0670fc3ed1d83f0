from abc import ABC, abstractmethod
from typing import List, Optional

from vesting_claims.models.schemas import CandidateTransaction, TransactionReceipt

class BlockExplorer(ABC):
    @abstractmethod
    async def list_transactions(self, address: str, start_block: int = 0) -> List[CandidateTransaction]:
        """All transactions sent to `address`, ascending by block."""

    @abstractmethod
    async def get_transaction_receipt(self, tx_hash: str) -> Optional[TransactionReceipt]:
        """Execution receipt for `tx_hash`, or None if the explorer has none."""
