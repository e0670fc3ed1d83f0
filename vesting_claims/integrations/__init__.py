"""
Integrations package initialization.
Exports the block-explorer interface and its Etherscan implementation.
"""
from .base import BlockExplorer
from .etherscan import EtherscanClient

__all__ = [
    "BlockExplorer",
    "EtherscanClient",
]
