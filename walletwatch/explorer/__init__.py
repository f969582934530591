"""
Explorer package: Etherscan-compatible transaction fetcher and its raw models.
"""

from walletwatch.explorer.client import PAGE_SIZE, ExplorerClient
from walletwatch.explorer.models import (
    CATEGORIES,
    FetchResult,
    InternalTransfer,
    NativeTransfer,
    RawTransaction,
    TokenTransfer,
)

__all__ = [
    "CATEGORIES",
    "ExplorerClient",
    "FetchResult",
    "InternalTransfer",
    "NativeTransfer",
    "PAGE_SIZE",
    "RawTransaction",
    "TokenTransfer",
]
