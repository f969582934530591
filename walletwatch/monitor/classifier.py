"""
Classifier and dedup writer: raw explorer transfers -> stored deposits.

Rules (structural only, no pricing):
- inbound only: `to` equals the monitored wallet, compared lower-cased;
- native/internal transfers with value 0 or a reverted status are dropped;
- token transfers are kept regardless of value;
- native/internal carry the chain's native symbol and 18 decimals.
Writing is insert-if-absent keyed by (chain_id, tx_hash); only rows that were
actually inserted are returned, so callers notify exactly once per hash.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable

from walletwatch.chains.registry import NATIVE_DECIMALS, ChainConfig
from walletwatch.database.models import TRANSACTION_TYPE_DEPOSIT, StoredTransaction
from walletwatch.database.repositories import TransactionRepository
from walletwatch.explorer.models import (
    FetchResult,
    InternalTransfer,
    NativeTransfer,
    TokenTransfer,
)
from walletwatch.logging import get_logger
from walletwatch.utils.wallet_utils import normalize_address, short

logger = get_logger(__name__)

# Matches the token_symbol column width; spam tokens carry arbitrarily long symbols
MAX_SYMBOL_LENGTH = 64


def is_inbound(to_address: str, wallet_address: str) -> bool:
    wallet = normalize_address(wallet_address)
    return bool(wallet) and normalize_address(to_address) == wallet


def _native_to_stored(
    tx: NativeTransfer | InternalTransfer,
    user_id: int,
    wallet_address: str,
    chain: ChainConfig,
) -> StoredTransaction:
    return StoredTransaction(
        user_id=user_id,
        wallet_address=wallet_address,
        chain_id=chain.chain_id,
        tx_hash=tx.hash,
        block_number=tx.block_number,
        block_timestamp=tx.timestamp,
        from_address=tx.from_address,
        to_address=tx.to_address,
        value=tx.value,
        token_address=None,
        token_symbol=chain.native_symbol,
        token_decimals=NATIVE_DECIMALS,
        transaction_type=TRANSACTION_TYPE_DEPOSIT,
        gas_used=tx.gas_used or 0,
        gas_price=str(tx.gas_price or 0),
        transaction_fee=str(tx.fee),
    )


def _token_to_stored(
    tx: TokenTransfer,
    user_id: int,
    wallet_address: str,
    chain: ChainConfig,
) -> StoredTransaction:
    return StoredTransaction(
        user_id=user_id,
        wallet_address=wallet_address,
        chain_id=chain.chain_id,
        tx_hash=tx.hash,
        block_number=tx.block_number,
        block_timestamp=tx.timestamp,
        from_address=tx.from_address,
        to_address=tx.to_address,
        value=tx.value,
        token_address=tx.contract_address or None,
        token_symbol=tx.token_symbol[:MAX_SYMBOL_LENGTH],
        token_decimals=tx.token_decimals,
        transaction_type=TRANSACTION_TYPE_DEPOSIT,
        gas_used=tx.gas_used or 0,
        gas_price=str(tx.gas_price or 0),
        transaction_fee=str(tx.fee),
    )


def _keep_value_transfer(tx: NativeTransfer | InternalTransfer, wallet_address: str) -> bool:
    if not is_inbound(tx.to_address, wallet_address):
        return False
    if tx.is_error:
        return False
    return tx.value != "0"


def classify(
    fetched: FetchResult,
    user_id: int,
    wallet_address: str,
    chain: ChainConfig,
) -> list[StoredTransaction]:
    """
    Filter and normalize one fetch into deposit records, in category order
    (native, internal, token) and ascending block order within each.
    """
    out: list[StoredTransaction] = []
    for tx in fetched.native:
        if _keep_value_transfer(tx, wallet_address):
            out.append(_native_to_stored(tx, user_id, wallet_address, chain))
    for tx in fetched.internal:
        if _keep_value_transfer(tx, wallet_address):
            out.append(_native_to_stored(tx, user_id, wallet_address, chain))
    for tx in fetched.token:
        if is_inbound(tx.to_address, wallet_address):
            out.append(_token_to_stored(tx, user_id, wallet_address, chain))

    dropped = fetched.total - len(out)
    if dropped:
        logger.debug(
            "classifier_dropped",
            wallet_id=short(wallet_address),
            chain_id=chain.chain_id,
            kept=len(out),
            dropped=dropped,
        )
    return out


class TransactionWriter:
    """Writes classified deposits through insert_if_absent."""

    def __init__(self, transactions: TransactionRepository) -> None:
        self._transactions = transactions

    def write(self, records: Iterable[StoredTransaction]) -> list[StoredTransaction]:
        """Insert each record; return the ones that were new, with their row ids."""
        new_rows: list[StoredTransaction] = []
        seen: set[tuple[int, str]] = set()
        for tx in records:
            key = (tx.chain_id, tx.tx_hash)
            if key in seen:
                continue
            seen.add(key)
            result = self._transactions.insert_if_absent(tx)
            if result.inserted:
                new_rows.append(replace(tx, id=result.id))
        return new_rows
