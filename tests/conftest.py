"""
Pytest fixtures for walletwatch tests. Each test gets a temporary SQLite DB.
"""

from __future__ import annotations

import pytest

from walletwatch.chains.registry import CHAIN_BSC, CHAIN_ETHEREUM, build_registry
from walletwatch.core.exceptions import FetchFailed
from walletwatch.database.repositories import (
    MonitorRepository,
    NotificationRepository,
    TransactionRepository,
)
from walletwatch.database.session import Database
from walletwatch.explorer.models import FetchResult, InternalTransfer, NativeTransfer, TokenTransfer
from walletwatch.monitor.service import MonitoringService

WALLET_A = "0x" + "a1" * 20
WALLET_B = "0x" + "b2" * 20
SENDER = "0x" + "5e" * 20
TOKEN_CONTRACT = "0x" + "c0" * 20
ONE_ETH = "1000000000000000000"


class FakeClock:
    """Deterministic unix clock; each call returns the current value then advances it by one second."""

    def __init__(self, start: int = 1_700_000_000) -> None:
        self.now = start

    def __call__(self) -> float:
        value = self.now
        self.now += 1
        return float(value)


class FakeExplorer:
    """
    In-memory stand-in for ExplorerClient.

    heads: chain_id -> head height returned by get_block_number.
    transfers: (wallet, chain_id) -> list of raw transfers; fetch returns those in (from, to].
    failing: set of (wallet, chain_id) whose fetch raises FetchFailed.
    """

    def __init__(self) -> None:
        self.heads: dict[int, int] = {CHAIN_ETHEREUM: 110, CHAIN_BSC: 500}
        self.head_failures: set[int] = set()
        self.transfers: dict[tuple[str, int], list] = {}
        self.degraded: dict[tuple[str, int], dict[str, str]] = {}
        self.failing: set[tuple[str, int]] = set()
        self.fetch_calls: list[tuple[str, int, int, int | None]] = []

    def add(self, wallet: str, chain_id: int, *transfers) -> None:
        self.transfers.setdefault((wallet.lower(), chain_id), []).extend(transfers)

    def get_block_number(self, chain_id: int) -> int:
        if chain_id in self.head_failures:
            raise FetchFailed(chain_id, "eth_blockNumber", "connection refused")
        return self.heads[chain_id]

    def fetch(self, wallet_address, chain_id, from_block_exclusive, to_block=None) -> FetchResult:
        key = (wallet_address.lower(), chain_id)
        self.fetch_calls.append((wallet_address, chain_id, from_block_exclusive, to_block))
        if key in self.failing:
            raise FetchFailed(chain_id, "txlist", "timed out")
        result = FetchResult(degraded=dict(self.degraded.get(key, {})))
        for tx in self.transfers.get(key, []):
            if tx.block_number <= from_block_exclusive:
                continue
            if to_block is not None and tx.block_number > to_block:
                continue
            if isinstance(tx, TokenTransfer):
                result.token.append(tx)
            elif isinstance(tx, InternalTransfer):
                result.internal.append(tx)
            else:
                result.native.append(tx)
        return result

    def close(self) -> None:
        pass


def native_tx(tx_hash, block, to, value=ONE_ETH, frm=SENDER, is_error=False, gas_used=21000, gas_price=10):
    return NativeTransfer(
        hash=tx_hash,
        block_number=block,
        timestamp=1_700_000_000 + block,
        from_address=frm,
        to_address=to,
        value=value,
        gas_used=gas_used,
        gas_price=gas_price,
        is_error=is_error,
    )


def internal_tx(tx_hash, block, to, value=ONE_ETH, frm=SENDER, is_error=False):
    return InternalTransfer(
        hash=tx_hash,
        block_number=block,
        timestamp=1_700_000_000 + block,
        from_address=frm,
        to_address=to,
        value=value,
        gas_used=None,
        gas_price=None,
        is_error=is_error,
        category="internal",
    )


def token_tx(tx_hash, block, to, value="2500000", frm=SENDER, symbol="USDT", decimals=6):
    return TokenTransfer(
        hash=tx_hash,
        block_number=block,
        timestamp=1_700_000_000 + block,
        from_address=frm,
        to_address=to,
        value=value,
        gas_used=50000,
        gas_price=20,
        contract_address=TOKEN_CONTRACT,
        token_symbol=symbol,
        token_decimals=decimals,
        category="token",
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def db(tmp_path):
    database = Database(f"sqlite:///{tmp_path / 'walletwatch_test.db'}")
    database.init_db()
    yield database
    database.dispose()


@pytest.fixture
def registry():
    return build_registry({CHAIN_ETHEREUM: "eth-key", CHAIN_BSC: "bsc-key"})


@pytest.fixture
def monitors(db, clock):
    return MonitorRepository(db, clock=clock)


@pytest.fixture
def transactions(db, clock):
    return TransactionRepository(db, clock=clock)


@pytest.fixture
def notifications(db, clock):
    return NotificationRepository(db, clock=clock)


@pytest.fixture
def explorer():
    return FakeExplorer()


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def service(registry, explorer, monitors, transactions, notifications, sleeps):
    return MonitoringService(
        registry,
        explorer,
        monitors,
        transactions,
        notifications,
        inter_wallet_delay_sec=0.2,
        sleep=sleeps.append,
    )
