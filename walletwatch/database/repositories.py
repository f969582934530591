"""
Repositories: cursor store, transaction store, notification store.

These are the only storage operations the monitoring engine needs:
cursor get/upsert/list_active, insert_if_absent, insert_notification,
plus the read-side queries used by the external HTTP layer.
"""

from __future__ import annotations

import time
from typing import Callable

from sqlalchemy.exc import IntegrityError

from walletwatch.database.models import (
    InsertResult,
    MonitorRecord,
    NotificationRecord,
    StoredTransaction,
)
from walletwatch.database.session import Database
from walletwatch.database.tables import Notification, WalletMonitoring, WalletTransaction
from walletwatch.logging import get_logger
from walletwatch.utils.wallet_utils import normalize_address, short

logger = get_logger(__name__)

Clock = Callable[[], float]


class MonitorRepository:
    """Cursor store: last fully processed block per (wallet, chain)."""

    def __init__(self, db: Database, *, clock: Clock = time.time) -> None:
        self._db = db
        self._clock = clock

    def get(self, wallet_address: str, chain_id: int) -> int:
        """Return last_checked_block, or 0 when the pair has never been recorded."""
        wallet = normalize_address(wallet_address)
        with self._db.session_scope() as session:
            row = (
                session.query(WalletMonitoring.last_checked_block)
                .filter(
                    WalletMonitoring.wallet_address == wallet,
                    WalletMonitoring.chain_id == chain_id,
                )
                .first()
            )
            return int(row[0]) if row and row[0] is not None else 0

    def get_record(self, wallet_address: str, chain_id: int) -> MonitorRecord | None:
        wallet = normalize_address(wallet_address)
        with self._db.session_scope() as session:
            row = (
                session.query(WalletMonitoring)
                .filter(
                    WalletMonitoring.wallet_address == wallet,
                    WalletMonitoring.chain_id == chain_id,
                )
                .first()
            )
            return row.to_record() if row else None

    def upsert(self, user_id: int, wallet_address: str, chain_id: int, block_height: int) -> None:
        """
        Create the record if absent, else overwrite block height and checked time.
        Re-activates a deactivated record. Monotonicity is the caller's job.
        """
        wallet = normalize_address(wallet_address)
        now = int(self._clock())
        try:
            self._upsert_once(user_id, wallet, chain_id, block_height, now)
        except IntegrityError:
            # Lost an insert race for the same pair; the row exists now.
            self._upsert_once(user_id, wallet, chain_id, block_height, now)
        logger.debug(
            "cursor_upserted",
            wallet_id=short(wallet),
            chain_id=chain_id,
            block=block_height,
        )

    def _upsert_once(self, user_id: int, wallet: str, chain_id: int, block_height: int, now: int) -> None:
        with self._db.session_scope() as session:
            row = (
                session.query(WalletMonitoring)
                .filter(
                    WalletMonitoring.wallet_address == wallet,
                    WalletMonitoring.chain_id == chain_id,
                )
                .first()
            )
            if row is None:
                session.add(
                    WalletMonitoring(
                        user_id=user_id,
                        wallet_address=wallet,
                        chain_id=chain_id,
                        last_checked_block=block_height,
                        last_checked_at=now,
                        is_active=True,
                        created_at=now,
                        updated_at=now,
                    )
                )
                session.flush()
                return
            row.user_id = user_id
            row.last_checked_block = block_height
            row.last_checked_at = now
            row.is_active = True
            row.updated_at = now

    def list_active(self) -> list[MonitorRecord]:
        """Active records, most overdue first (never checked, then oldest last_checked_at)."""
        with self._db.session_scope() as session:
            rows = (
                session.query(WalletMonitoring)
                .filter(WalletMonitoring.is_active.is_(True))
                .order_by(
                    WalletMonitoring.last_checked_at.is_(None).desc(),
                    WalletMonitoring.last_checked_at.asc(),
                    WalletMonitoring.id.asc(),
                )
                .all()
            )
            return [r.to_record() for r in rows]

    def list_for_user(self, user_id: int) -> list[MonitorRecord]:
        """All records (active or not) owned by a user, by chain id."""
        with self._db.session_scope() as session:
            rows = (
                session.query(WalletMonitoring)
                .filter(WalletMonitoring.user_id == user_id)
                .order_by(WalletMonitoring.chain_id.asc(), WalletMonitoring.id.asc())
                .all()
            )
            return [r.to_record() for r in rows]

    def deactivate(self, wallet_address: str, chain_id: int) -> bool:
        """Stop scanning a pair. Returns False when no record exists."""
        wallet = normalize_address(wallet_address)
        with self._db.session_scope() as session:
            updated = (
                session.query(WalletMonitoring)
                .filter(
                    WalletMonitoring.wallet_address == wallet,
                    WalletMonitoring.chain_id == chain_id,
                )
                .update({"is_active": False, "updated_at": int(self._clock())})
            )
        if updated:
            logger.info("monitoring_deactivated", wallet_id=short(wallet), chain_id=chain_id)
        return bool(updated)


class TransactionRepository:
    """Append-only store of inbound transfers, deduplicated by (chain_id, tx_hash)."""

    def __init__(self, db: Database, *, clock: Clock = time.time) -> None:
        self._db = db
        self._clock = clock

    def insert_if_absent(self, tx: StoredTransaction) -> InsertResult:
        """
        Insert tx unless (chain_id, tx_hash) already exists.
        A duplicate is the steady-state case on overlapping scans, not an error.
        """
        try:
            with self._db.session_scope() as session:
                row = WalletTransaction.from_record(tx, created_at=int(self._clock()))
                session.add(row)
                session.flush()
                row_id = row.id
        except IntegrityError:
            logger.debug("transaction_already_stored", chain_id=tx.chain_id, tx_hash=tx.tx_hash)
            return InsertResult(inserted=False)
        logger.info(
            "transaction_stored",
            wallet_id=short(tx.wallet_address),
            chain_id=tx.chain_id,
            tx_hash=tx.tx_hash,
            token_symbol=tx.token_symbol,
        )
        return InsertResult(inserted=True, id=row_id)

    def exists(self, chain_id: int, tx_hash: str) -> bool:
        with self._db.session_scope() as session:
            return (
                session.query(WalletTransaction.id)
                .filter(WalletTransaction.chain_id == chain_id, WalletTransaction.tx_hash == tx_hash)
                .first()
                is not None
            )

    def list_for_user(self, user_id: int, *, limit: int = 50) -> list[StoredTransaction]:
        """Most recent transactions for a user, newest block first."""
        with self._db.session_scope() as session:
            rows = (
                session.query(WalletTransaction)
                .filter(WalletTransaction.user_id == user_id)
                .order_by(WalletTransaction.block_timestamp.desc(), WalletTransaction.id.desc())
                .limit(max(1, limit))
                .all()
            )
            return [r.to_record() for r in rows]

    def count(self) -> int:
        with self._db.session_scope() as session:
            return session.query(WalletTransaction).count()


class NotificationRepository:
    """Notification rows: append by the emitter, read/ack by the user-facing layer."""

    def __init__(self, db: Database, *, clock: Clock = time.time) -> None:
        self._db = db
        self._clock = clock

    def insert_notification(
        self,
        user_id: int,
        wallet_address: str,
        notification_type: str,
        title: str,
        message: str,
        tx_hash: str | None,
    ) -> NotificationRecord:
        with self._db.session_scope() as session:
            row = Notification(
                user_id=user_id,
                wallet_address=wallet_address,
                notification_type=notification_type,
                title=title,
                message=message,
                tx_hash=tx_hash,
                is_sent=False,
                created_at=int(self._clock()),
            )
            session.add(row)
            session.flush()
            return row.to_record()

    def list_for_user(
        self,
        user_id: int,
        *,
        limit: int = 20,
        unread_only: bool = False,
    ) -> list[NotificationRecord]:
        with self._db.session_scope() as session:
            q = session.query(Notification).filter(Notification.user_id == user_id)
            if unread_only:
                q = q.filter(Notification.is_sent.is_(False))
            rows = q.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(max(1, limit)).all()
            return [r.to_record() for r in rows]

    def mark_read(self, notification_id: int, user_id: int) -> bool:
        """Flag a user's notification as sent/read. False if it is not theirs or missing."""
        with self._db.session_scope() as session:
            updated = (
                session.query(Notification)
                .filter(Notification.id == notification_id, Notification.user_id == user_id)
                .update({"is_sent": True, "sent_at": int(self._clock())})
            )
        return bool(updated)

    def count_for_tx(self, tx_hash: str) -> int:
        with self._db.session_scope() as session:
            return session.query(Notification).filter(Notification.tx_hash == tx_hash).count()
