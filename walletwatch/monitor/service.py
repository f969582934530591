"""
Monitoring orchestrator.

One wallet cycle:
  read chain head -> read cursor -> fetch (cursor, head] -> classify & write
  -> notify per new row -> advance cursor to head.

The head is read first and bounds the fetch, so a transfer mined after the
fetch cannot fall below the new cursor. A cursor never moves backwards: when
the reported head is behind the stored cursor the cursor is kept.

Failures are contained per wallet: any exception in a cycle is logged, the
cursor is left unchanged and the pass moves on. A single lock guarantees at
most one batch pass in flight.
"""

from __future__ import annotations

import threading
import time
from dataclasses import asdict, dataclass, field
from typing import Any, Callable

from walletwatch.chains.registry import ChainRegistry
from walletwatch.core.exceptions import BatchAlreadyRunning, UnsupportedChain
from walletwatch.database.models import MonitorRecord, NotificationRecord, StoredTransaction
from walletwatch.database.repositories import (
    MonitorRepository,
    NotificationRepository,
    TransactionRepository,
)
from walletwatch.explorer.client import ExplorerClient
from walletwatch.logging import bind_wallet, get_logger
from walletwatch.monitor.classifier import TransactionWriter, classify
from walletwatch.monitor.notifier import NotificationEmitter
from walletwatch.utils.wallet_utils import is_valid_wallet, normalize_address, short

logger = get_logger(__name__)

DEFAULT_INTER_WALLET_DELAY_SEC = 0.2


@dataclass
class WalletCheckResult:
    wallet_address: str
    chain_id: int
    success: bool
    new_transactions: int = 0
    notifications_failed: int = 0
    previous_block: int = 0
    cursor_block: int = 0
    degraded: list[str] = field(default_factory=list)
    error: str | None = None


@dataclass
class BatchSummary:
    """Totals of one batch pass."""

    wallets_checked: int = 0
    new_transactions_found: int = 0
    wallets_failed: int = 0
    notifications_failed: int = 0
    duration: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["duration"] = round(self.duration, 3)
        return d


@dataclass
class InitializationResult:
    """Per-chain starting cursors for a freshly registered wallet."""

    wallet_address: str
    chains: dict[int, int] = field(default_factory=dict)
    """chain_id -> initial cursor (head at registration time)."""
    warnings: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.warnings

    def to_dict(self) -> dict[str, Any]:
        return {
            "wallet_address": self.wallet_address,
            "chains": {str(k): v for k, v in self.chains.items()},
            "warnings": list(self.warnings),
            "ok": self.ok,
        }


class MonitoringService:
    def __init__(
        self,
        registry: ChainRegistry,
        explorer: ExplorerClient,
        monitors: MonitorRepository,
        transactions: TransactionRepository,
        notifications: NotificationRepository,
        *,
        inter_wallet_delay_sec: float = DEFAULT_INTER_WALLET_DELAY_SEC,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._registry = registry
        self._explorer = explorer
        self._monitors = monitors
        self._transactions = transactions
        self._notifications = notifications
        self._writer = TransactionWriter(transactions)
        self._emitter = NotificationEmitter(notifications)
        self._delay = max(0.0, inter_wallet_delay_sec)
        self._sleep = sleep
        self._clock = clock
        self._batch_lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._batch_lock.locked()

    # --- one wallet ---

    def check_wallet(self, monitor: MonitorRecord) -> WalletCheckResult:
        """Run one cycle for a (wallet, chain) pair. Never raises."""
        log = bind_wallet(short(monitor.wallet_address), monitor.chain_id)
        result = WalletCheckResult(
            wallet_address=monitor.wallet_address,
            chain_id=monitor.chain_id,
            success=False,
        )
        try:
            chain = self._registry.config_for(monitor.chain_id)
            head = self._explorer.get_block_number(chain.chain_id)
            cursor = self._monitors.get(monitor.wallet_address, chain.chain_id)
            result.previous_block = cursor
            result.cursor_block = cursor

            if head <= cursor:
                log.info("wallet_check_no_new_blocks", cursor=cursor, head=head)
                # Refreshes last_checked_at without moving the cursor backwards
                self._monitors.upsert(monitor.user_id, monitor.wallet_address, chain.chain_id, cursor)
                result.success = True
                return result

            fetched = self._explorer.fetch(monitor.wallet_address, chain.chain_id, cursor, head)
            result.degraded = sorted(fetched.degraded)

            records = classify(fetched, monitor.user_id, monitor.wallet_address, chain)
            new_rows = self._writer.write(records)
            _, failed = self._emitter.notify_all(monitor.user_id, new_rows)

            self._monitors.upsert(monitor.user_id, monitor.wallet_address, chain.chain_id, head)
            result.new_transactions = len(new_rows)
            result.notifications_failed = failed
            result.cursor_block = head
            result.success = True
            log.info(
                "wallet_check_done",
                from_block=cursor,
                to_block=head,
                fetched=fetched.total,
                new_transactions=len(new_rows),
                notifications_failed=failed,
                degraded=result.degraded,
            )
        except Exception as e:
            result.error = f"{type(e).__name__}: {e}"
            log.error("wallet_check_failed", error=result.error, cursor=result.previous_block)
        return result

    # --- batch pass ---

    def run_batch(self, wait: bool = True) -> BatchSummary:
        """
        Check every active pair once, most overdue first.

        Args:
            wait: Block until an in-flight pass finishes. With wait=False a busy
                lock raises BatchAlreadyRunning instead.
        """
        if not self._batch_lock.acquire(blocking=wait):
            raise BatchAlreadyRunning()
        try:
            return self._run_batch_locked()
        finally:
            self._batch_lock.release()

    def _run_batch_locked(self) -> BatchSummary:
        started = self._clock()
        summary = BatchSummary()
        try:
            monitors = self._monitors.list_active()
        except Exception as e:
            logger.error("batch_list_active_failed", error=str(e))
            summary.duration = self._clock() - started
            return summary

        logger.info("batch_started", wallets=len(monitors))
        for i, monitor in enumerate(monitors):
            if i > 0 and self._delay:
                self._sleep(self._delay)
            res = self.check_wallet(monitor)
            summary.wallets_checked += 1
            if res.success:
                summary.new_transactions_found += res.new_transactions
                summary.notifications_failed += res.notifications_failed
            else:
                summary.wallets_failed += 1

        summary.duration = self._clock() - started
        logger.info("batch_finished", **summary.to_dict())
        return summary

    # --- registration ---

    def initialize_monitoring(self, user_id: int, wallet_address: str) -> InitializationResult:
        """
        Start monitoring a wallet on every registered chain from the current head.
        No history is backfilled. A chain whose head cannot be read is skipped and
        reported in warnings; the caller decides what to surface.
        """
        if not is_valid_wallet(wallet_address):
            raise ValueError(f"invalid wallet address: {wallet_address!r}")
        wallet = normalize_address(wallet_address)
        result = InitializationResult(wallet_address=wallet)
        for chain_id in self._registry.chain_ids():
            try:
                head = self._explorer.get_block_number(chain_id)
                self._monitors.upsert(user_id, wallet, chain_id, head)
            except Exception as e:
                msg = f"chain {chain_id}: {e}"
                result.warnings.append(msg)
                logger.warning(
                    "monitoring_init_chain_skipped",
                    wallet_id=short(wallet),
                    chain_id=chain_id,
                    error=str(e),
                )
                continue
            result.chains[chain_id] = head
        logger.info(
            "monitoring_initialized",
            wallet_id=short(wallet),
            user_id=user_id,
            chains=sorted(result.chains),
            warnings=len(result.warnings),
        )
        return result

    # --- read side ---

    def recent_transactions(self, user_id: int, limit: int = 50) -> list[StoredTransaction]:
        return self._transactions.list_for_user(user_id, limit=limit)

    def notifications(self, user_id: int, limit: int = 20, unread_only: bool = False) -> list[NotificationRecord]:
        return self._notifications.list_for_user(user_id, limit=limit, unread_only=unread_only)

    def mark_notification_read(self, notification_id: int, user_id: int) -> bool:
        return self._notifications.mark_read(notification_id, user_id)

    def monitoring_status(self, user_id: int) -> list[dict[str, Any]]:
        """Per-chain cursor state for a user's wallets, with chain names."""
        out = []
        for rec in self._monitors.list_for_user(user_id):
            d = rec.to_dict()
            try:
                d["chain_name"] = self._registry.config_for(rec.chain_id).name
            except UnsupportedChain:
                d["chain_name"] = None
            out.append(d)
        return out
