"""
Repository tests against a temporary SQLite DB: cursors, transactions, notifications.
"""

from __future__ import annotations

from conftest import WALLET_A, WALLET_B

from walletwatch.database.models import StoredTransaction


def _stored(tx_hash: str, chain_id: int = 1, user_id: int = 7, block: int = 105) -> StoredTransaction:
    return StoredTransaction(
        user_id=user_id,
        wallet_address=WALLET_A,
        chain_id=chain_id,
        tx_hash=tx_hash,
        block_number=block,
        block_timestamp=1_700_000_000 + block,
        from_address="0x" + "5e" * 20,
        to_address=WALLET_A,
        value="1000",
        token_address=None,
        token_symbol="ETH",
        token_decimals=18,
    )


# --- cursor store ---


def test_cursor_absent_is_zero(monitors):
    assert monitors.get(WALLET_A, 1) == 0
    assert monitors.get_record(WALLET_A, 1) is None


def test_cursor_upsert_creates_then_overwrites(monitors):
    monitors.upsert(7, WALLET_A, 1, 100)
    first = monitors.get_record(WALLET_A, 1)
    monitors.upsert(7, WALLET_A, 1, 150)
    second = monitors.get_record(WALLET_A, 1)

    assert monitors.get(WALLET_A, 1) == 150
    assert first.id == second.id
    assert second.last_checked_at > first.last_checked_at
    assert second.is_active is True


def test_cursor_addresses_are_case_insensitive(monitors):
    mixed = WALLET_A.upper().replace("0X", "0x")
    monitors.upsert(7, mixed, 1, 100)
    assert monitors.get(WALLET_A, 1) == 100
    assert monitors.get_record(WALLET_A, 1).wallet_address == WALLET_A


def test_one_record_per_wallet_chain_pair(monitors):
    monitors.upsert(7, WALLET_A, 1, 100)
    monitors.upsert(7, WALLET_A, 1, 101)
    monitors.upsert(7, WALLET_A, 56, 900)
    assert len(monitors.list_active()) == 2


def test_list_active_orders_by_staleness(monitors, db):
    monitors.upsert(7, WALLET_A, 1, 100)
    monitors.upsert(7, WALLET_B, 1, 100)
    monitors.upsert(7, WALLET_A, 56, 100)
    # Refresh A/1 so it becomes the most recently checked
    monitors.upsert(7, WALLET_A, 1, 101)

    order = [(r.wallet_address, r.chain_id) for r in monitors.list_active()]
    assert order == [(WALLET_B, 1), (WALLET_A, 56), (WALLET_A, 1)]


def test_list_active_puts_never_checked_first(monitors, db):
    from walletwatch.database.tables import WalletMonitoring

    monitors.upsert(7, WALLET_A, 1, 100)
    with db.session_scope() as session:
        session.add(
            WalletMonitoring(user_id=8, wallet_address=WALLET_B, chain_id=1, last_checked_block=0, is_active=True)
        )
    order = [r.wallet_address for r in monitors.list_active()]
    assert order == [WALLET_B, WALLET_A]


def test_deactivate_hides_record_and_upsert_reactivates(monitors):
    monitors.upsert(7, WALLET_A, 1, 100)
    assert monitors.deactivate(WALLET_A, 1) is True
    assert monitors.list_active() == []
    assert monitors.deactivate(WALLET_B, 1) is False
    monitors.upsert(7, WALLET_A, 1, 120)
    assert [r.last_checked_block for r in monitors.list_active()] == [120]


def test_list_for_user(monitors):
    monitors.upsert(7, WALLET_A, 56, 900)
    monitors.upsert(7, WALLET_A, 1, 100)
    monitors.upsert(8, WALLET_B, 1, 100)
    records = monitors.list_for_user(7)
    assert [r.chain_id for r in records] == [1, 56]
    assert monitors.list_for_user(99) == []


# --- transaction store ---


def test_insert_if_absent(transactions):
    first = transactions.insert_if_absent(_stored("0xabc"))
    again = transactions.insert_if_absent(_stored("0xabc"))

    assert first.inserted is True
    assert first.id is not None
    assert again.inserted is False
    assert again.id is None
    assert transactions.exists(1, "0xabc")
    assert not transactions.exists(56, "0xabc")
    assert transactions.count() == 1


def test_transactions_for_user_newest_first(transactions):
    transactions.insert_if_absent(_stored("0x1", block=100))
    transactions.insert_if_absent(_stored("0x2", block=200))
    transactions.insert_if_absent(_stored("0x3", block=150, user_id=8))

    rows = transactions.list_for_user(7)
    assert [r.tx_hash for r in rows] == ["0x2", "0x1"]
    assert rows[0].token_symbol == "ETH"
    assert [r.tx_hash for r in transactions.list_for_user(7, limit=1)] == ["0x2"]


# --- notifications ---


def test_notifications_insert_list_mark_read(notifications):
    n1 = notifications.insert_notification(7, WALLET_A, "new_deposit", "New ETH Deposit", "Received", "0x1")
    n2 = notifications.insert_notification(7, WALLET_A, "new_deposit", "New USDT Deposit", "Received", "0x2")

    assert n1.id is not None
    assert n1.is_sent is False
    assert [n.id for n in notifications.list_for_user(7)] == [n2.id, n1.id]

    assert notifications.mark_read(n1.id, 7) is True
    assert notifications.mark_read(n2.id, 8) is False
    unread = notifications.list_for_user(7, unread_only=True)
    assert [n.id for n in unread] == [n2.id]
    assert notifications.count_for_tx("0x1") == 1
