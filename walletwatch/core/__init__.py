"""
Core utilities: shared exception types used across fetcher, stores,
monitoring service and scheduler.
"""

from walletwatch.core.exceptions import (
    BatchAlreadyRunning,
    FetchFailed,
    NotificationFailure,
    PartialFetchDegraded,
    UnsupportedChain,
    WalletWatchError,
)

__all__ = [
    "BatchAlreadyRunning",
    "FetchFailed",
    "NotificationFailure",
    "PartialFetchDegraded",
    "UnsupportedChain",
    "WalletWatchError",
]
