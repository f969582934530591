"""
Application-level exceptions.

Failures are contained per wallet by the monitoring service; none of these
should reach the scheduler thread. A duplicate transaction hash is not an
error: insert_if_absent reports it with inserted=False.
"""

from __future__ import annotations


class WalletWatchError(Exception):
    """Base class for walletwatch errors."""


class UnsupportedChain(WalletWatchError):
    """Chain id is not in the registry."""

    def __init__(self, chain_id: int) -> None:
        self.chain_id = chain_id
        super().__init__(f"Unsupported chain ID: {chain_id}")


class FetchFailed(WalletWatchError):
    """Explorer could not be reached, timed out, or returned an unusable reply."""

    def __init__(self, chain_id: int, action: str, reason: str) -> None:
        self.chain_id = chain_id
        self.action = action
        self.reason = reason
        super().__init__(f"Explorer {action} failed on chain {chain_id}: {reason}")


class PartialFetchDegraded(WalletWatchError):
    """One transaction category came back with a non-success status."""

    def __init__(self, chain_id: int, action: str, message: str) -> None:
        self.chain_id = chain_id
        self.action = action
        self.message = message
        super().__init__(f"Explorer {action} degraded on chain {chain_id}: {message}")


class NotificationFailure(WalletWatchError):
    """Notification row could not be written."""

    def __init__(self, tx_hash: str, reason: str) -> None:
        self.tx_hash = tx_hash
        self.reason = reason
        super().__init__(f"Notification for {tx_hash} failed: {reason}")


class BatchAlreadyRunning(WalletWatchError):
    """A batch pass is in flight and the caller asked not to wait."""

    def __init__(self) -> None:
        super().__init__("A monitoring batch pass is already running")
