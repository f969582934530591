"""
Domain records for database entities.

Monitoring cursors, stored transactions and notifications as plain
dataclasses. Repositories return these; no ORM objects leak past a session.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

TRANSACTION_TYPE_DEPOSIT = "deposit"
NOTIFICATION_TYPE_NEW_DEPOSIT = "new_deposit"


@dataclass(frozen=True)
class MonitorRecord:
    """One (user, wallet, chain) monitoring cursor."""

    id: int | None
    user_id: int
    wallet_address: str
    """Lower-cased 0x address."""
    chain_id: int
    last_checked_block: int
    """Last block height fully scanned; never decreases."""
    last_checked_at: int | None
    """Unix timestamp (seconds) of the last scan attempt that completed."""
    is_active: bool = True

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class StoredTransaction:
    """Normalized inbound transfer, unique per (chain_id, tx_hash)."""

    user_id: int
    wallet_address: str
    chain_id: int
    tx_hash: str
    block_number: int
    block_timestamp: int
    from_address: str
    to_address: str
    value: str
    """Raw integer amount in the token's smallest unit, as a decimal string."""
    token_address: str | None
    token_symbol: str
    token_decimals: int
    transaction_type: str = TRANSACTION_TYPE_DEPOSIT
    gas_used: int = 0
    gas_price: str = "0"
    transaction_fee: str = "0"
    id: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class InsertResult:
    """Outcome of insert_if_absent: inserted is False when the hash already existed."""

    inserted: bool
    id: int | None = None


@dataclass(frozen=True)
class NotificationRecord:
    """User-facing notification for one stored transaction."""

    id: int | None
    user_id: int
    wallet_address: str
    notification_type: str
    title: str
    message: str
    tx_hash: str | None
    is_sent: bool = False
    sent_at: int | None = None
    created_at: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
