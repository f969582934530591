"""
SQLAlchemy models for wallet monitoring, stored transactions and notifications.
"""

from __future__ import annotations

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base

from walletwatch.database.models import (
    MonitorRecord,
    NotificationRecord,
    StoredTransaction,
)

Base = declarative_base()


class WalletMonitoring(Base):
    """
    Block cursor per (wallet, chain). One row per pair; user_id records the owner.
    """

    __tablename__ = "wallet_monitoring"
    __table_args__ = (
        UniqueConstraint("wallet_address", "chain_id", name="uq_wallet_monitoring_wallet_chain"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)
    wallet_address = Column(String(64), nullable=False, index=True)
    chain_id = Column(Integer, nullable=False)
    last_checked_block = Column(BigInteger, nullable=False, default=0)
    last_checked_at = Column(Integer, nullable=True, index=True)  # Unix
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(Integer, nullable=True)
    updated_at = Column(Integer, nullable=True)

    def to_record(self) -> MonitorRecord:
        return MonitorRecord(
            id=self.id,
            user_id=self.user_id,
            wallet_address=self.wallet_address,
            chain_id=self.chain_id,
            last_checked_block=int(self.last_checked_block or 0),
            last_checked_at=self.last_checked_at,
            is_active=bool(self.is_active),
        )


class WalletTransaction(Base):
    """
    Inbound transfer detected for a monitored wallet. Append-only.
    Amounts, gas price and fee are strings to keep uint256 precision.
    """

    __tablename__ = "wallet_transactions"
    __table_args__ = (
        UniqueConstraint("chain_id", "tx_hash", name="uq_wallet_transactions_chain_hash"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)
    wallet_address = Column(String(64), nullable=False, index=True)
    chain_id = Column(Integer, nullable=False)
    tx_hash = Column(String(80), nullable=False)
    block_number = Column(BigInteger, nullable=False)
    block_timestamp = Column(Integer, nullable=False, index=True)
    from_address = Column(String(64), nullable=False)
    to_address = Column(String(64), nullable=False)
    value = Column(String(80), nullable=False)
    token_address = Column(String(64), nullable=True)
    token_symbol = Column(String(64), nullable=False)  # classifier truncates to fit
    token_decimals = Column(Integer, nullable=False)
    transaction_type = Column(String(32), nullable=False)
    gas_used = Column(BigInteger, nullable=False, default=0)
    gas_price = Column(String(80), nullable=False, default="0")
    transaction_fee = Column(String(80), nullable=False, default="0")
    created_at = Column(Integer, nullable=True)

    @classmethod
    def from_record(cls, tx: StoredTransaction, created_at: int) -> "WalletTransaction":
        return cls(
            user_id=tx.user_id,
            wallet_address=tx.wallet_address,
            chain_id=tx.chain_id,
            tx_hash=tx.tx_hash,
            block_number=tx.block_number,
            block_timestamp=tx.block_timestamp,
            from_address=tx.from_address,
            to_address=tx.to_address,
            value=tx.value,
            token_address=tx.token_address,
            token_symbol=tx.token_symbol,
            token_decimals=tx.token_decimals,
            transaction_type=tx.transaction_type,
            gas_used=tx.gas_used,
            gas_price=tx.gas_price,
            transaction_fee=tx.transaction_fee,
            created_at=created_at,
        )

    def to_record(self) -> StoredTransaction:
        return StoredTransaction(
            id=self.id,
            user_id=self.user_id,
            wallet_address=self.wallet_address,
            chain_id=self.chain_id,
            tx_hash=self.tx_hash,
            block_number=int(self.block_number),
            block_timestamp=int(self.block_timestamp),
            from_address=self.from_address,
            to_address=self.to_address,
            value=self.value,
            token_address=self.token_address,
            token_symbol=self.token_symbol,
            token_decimals=int(self.token_decimals),
            transaction_type=self.transaction_type,
            gas_used=int(self.gas_used or 0),
            gas_price=self.gas_price or "0",
            transaction_fee=self.transaction_fee or "0",
        )


class Notification(Base):
    """
    One notification per newly stored transaction. is_sent/sent_at are set by the
    read/ack interface only.
    """

    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)
    wallet_address = Column(String(64), nullable=False)
    notification_type = Column(String(32), nullable=False)
    title = Column(String(256), nullable=False)
    message = Column(Text, nullable=False)
    tx_hash = Column(String(80), nullable=True, index=True)
    is_sent = Column(Boolean, nullable=False, default=False, index=True)
    sent_at = Column(Integer, nullable=True)
    created_at = Column(Integer, nullable=False, index=True)

    def to_record(self) -> NotificationRecord:
        return NotificationRecord(
            id=self.id,
            user_id=self.user_id,
            wallet_address=self.wallet_address,
            notification_type=self.notification_type,
            title=self.title,
            message=self.message,
            tx_hash=self.tx_hash,
            is_sent=bool(self.is_sent),
            sent_at=self.sent_at,
            created_at=self.created_at,
        )
