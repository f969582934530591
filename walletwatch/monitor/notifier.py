"""
Notification emitter: one user-facing notification per newly stored deposit.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Iterable

from walletwatch.core.exceptions import NotificationFailure
from walletwatch.database.models import (
    NOTIFICATION_TYPE_NEW_DEPOSIT,
    NotificationRecord,
    StoredTransaction,
)
from walletwatch.database.repositories import NotificationRepository
from walletwatch.logging import get_logger
from walletwatch.utils.wallet_utils import short

logger = get_logger(__name__)

AMOUNT_PLACES = Decimal("0.000001")


def format_amount(value: str, decimals: int) -> str:
    """Raw integer amount -> human amount with 6 decimal places, rounded half-up."""
    try:
        raw = Decimal(str(value or "0"))
    except InvalidOperation:
        raw = Decimal(0)
    # uint256 amounts exceed the default 28-digit context
    with localcontext() as ctx:
        ctx.prec = 100
        amount = raw.scaleb(-int(decimals or 0))
        return f"{amount.quantize(AMOUNT_PLACES, rounding=ROUND_HALF_UP):f}"


def build_title_message(tx: StoredTransaction) -> tuple[str, str]:
    symbol = tx.token_symbol or "token"
    amount = format_amount(tx.value, tx.token_decimals)
    return f"New {symbol} Deposit", f"Received {amount} {symbol} in your wallet"


class NotificationEmitter:
    def __init__(self, notifications: NotificationRepository) -> None:
        self._notifications = notifications

    def notify(self, user_id: int, tx: StoredTransaction) -> NotificationRecord:
        """Write the notification row for tx. Raises NotificationFailure on any formatting or storage error."""
        try:
            title, message = build_title_message(tx)
            record = self._notifications.insert_notification(
                user_id=user_id,
                wallet_address=tx.wallet_address,
                notification_type=NOTIFICATION_TYPE_NEW_DEPOSIT,
                title=title,
                message=message,
                tx_hash=tx.tx_hash,
            )
        except Exception as e:
            raise NotificationFailure(tx.tx_hash, str(e)) from e
        logger.info(
            "notification_created",
            wallet_id=short(tx.wallet_address),
            chain_id=tx.chain_id,
            tx_hash=tx.tx_hash,
            title=title,
        )
        return record

    def notify_all(self, user_id: int, txs: Iterable[StoredTransaction]) -> tuple[int, int]:
        """
        Notify for each tx in order. A failure is logged and the rest still go out;
        the stored transaction is never undone. Returns (sent, failed).
        """
        sent = failed = 0
        for tx in txs:
            try:
                self.notify(user_id, tx)
                sent += 1
            except NotificationFailure as e:
                failed += 1
                logger.error(
                    "notification_failed",
                    wallet_id=short(tx.wallet_address),
                    chain_id=tx.chain_id,
                    tx_hash=e.tx_hash,
                    error=e.reason,
                )
        return sent, failed
