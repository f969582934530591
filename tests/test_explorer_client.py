"""
ExplorerClient tests with mocked explorer responses (httpx.MockTransport).

Verifies: query params per category, envelope handling ("No transactions found"
is empty, other non-success statuses degrade one category), retry/backoff on
retryable HTTP statuses, FetchFailed on transport errors and non-retryable
statuses, chain head parsing.
"""

from __future__ import annotations

import threading

import httpx
import pytest

from walletwatch.chains.registry import CHAIN_ETHEREUM
from walletwatch.core.exceptions import FetchFailed, UnsupportedChain
from walletwatch.explorer.client import ExplorerClient

WALLET = "0x" + "a1" * 20
SENDER = "0x" + "5e" * 20
CONTRACT = "0x" + "c0" * 20

NATIVE_ITEM = {
    "blockNumber": "105",
    "timeStamp": "1700000105",
    "hash": "0xnative105",
    "from": SENDER,
    "to": WALLET.upper().replace("0X", "0x"),
    "value": "1000000000000000000",
    "gas": "21000",
    "gasPrice": "20000000000",
    "gasUsed": "21000",
    "isError": "0",
}
INTERNAL_ITEM = {
    "blockNumber": "106",
    "timeStamp": "1700000106",
    "hash": "0xinternal106",
    "from": CONTRACT,
    "to": WALLET,
    "value": "5000",
    "gasUsed": "0",
    "isError": "0",
}
TOKEN_ITEM = {
    "blockNumber": "107",
    "timeStamp": "1700000107",
    "hash": "0xtoken107",
    "from": SENDER,
    "to": WALLET,
    "value": "2500000",
    "contractAddress": CONTRACT,
    "tokenSymbol": "USDT",
    "tokenDecimal": "6",
    "gasUsed": "50000",
    "gasPrice": "10",
}

EMPTY = {"status": "0", "message": "No transactions found", "result": []}


def ok(items):
    return {"status": "1", "message": "OK", "result": items}


def make_client(registry, handler, **kwargs):
    sleeps: list[float] = []
    http = httpx.Client(transport=httpx.MockTransport(handler))
    client = ExplorerClient(registry, client=http, sleep=sleeps.append, **kwargs)
    return client, sleeps


def by_action(replies):
    """Handler that answers per explorer action and records request params."""
    seen: list[dict[str, str]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        params = dict(request.url.params)
        seen.append(params)
        reply = replies[params["action"]]
        if isinstance(reply, httpx.Response):
            return reply
        return httpx.Response(200, json=reply)

    return handler, seen


def test_fetch_sends_range_query_per_category(registry):
    """Each category is queried with startblock=cursor+1, endblock=head, one ascending page of 100."""
    handler, seen = by_action({"txlist": EMPTY, "txlistinternal": EMPTY, "tokentx": EMPTY})
    client, _ = make_client(registry, handler)

    client.fetch(WALLET, CHAIN_ETHEREUM, 100, 110)

    assert sorted(p["action"] for p in seen) == ["tokentx", "txlist", "txlistinternal"]
    for params in seen:
        assert params["module"] == "account"
        assert params["address"] == WALLET
        assert params["startblock"] == "101"
        assert params["endblock"] == "110"
        assert params["page"] == "1"
        assert params["offset"] == "100"
        assert params["sort"] == "asc"
        assert params["apikey"] == "eth-key"


def test_fetch_without_upper_bound_uses_latest(registry):
    handler, seen = by_action({"txlist": EMPTY, "txlistinternal": EMPTY, "tokentx": EMPTY})
    client, _ = make_client(registry, handler)

    client.fetch(WALLET, CHAIN_ETHEREUM, 0)

    assert {p["endblock"] for p in seen} == {"latest"}
    assert {p["startblock"] for p in seen} == {"1"}


def test_fetch_parses_all_three_shapes(registry):
    handler, _ = by_action(
        {"txlist": ok([NATIVE_ITEM]), "txlistinternal": ok([INTERNAL_ITEM]), "tokentx": ok([TOKEN_ITEM])}
    )
    client, _ = make_client(registry, handler)

    result = client.fetch(WALLET, CHAIN_ETHEREUM, 100, 110)

    assert result.total == 3
    assert not result.is_partial
    native = result.native[0]
    assert native.hash == "0xnative105"
    assert native.block_number == 105
    assert native.value == "1000000000000000000"
    assert native.fee == 21000 * 20000000000
    assert native.is_error is False
    internal = result.internal[0]
    assert internal.gas_price is None
    assert internal.fee == 0
    token = result.token[0]
    assert token.token_symbol == "USDT"
    assert token.token_decimals == 6
    assert token.contract_address == CONTRACT


def test_no_transactions_found_is_not_degradation(registry):
    handler, _ = by_action(
        {
            "txlist": EMPTY,
            "txlistinternal": {"status": "0", "message": "No records found", "result": []},
            "tokentx": EMPTY,
        }
    )
    client, _ = make_client(registry, handler)

    result = client.fetch(WALLET, CHAIN_ETHEREUM, 100, 110)

    assert result.total == 0
    assert result.degraded == {}


def test_non_success_status_degrades_one_category(registry):
    """A NOTOK reply empties that category only; the others are still returned."""
    handler, _ = by_action(
        {
            "txlist": ok([NATIVE_ITEM]),
            "txlistinternal": ok([INTERNAL_ITEM]),
            "tokentx": {"status": "0", "message": "NOTOK", "result": "Max rate limit reached"},
        }
    )
    client, _ = make_client(registry, handler)

    result = client.fetch(WALLET, CHAIN_ETHEREUM, 100, 110)

    assert result.token == []
    assert result.degraded == {"token": "Max rate limit reached"}
    assert result.is_partial
    assert len(result.native) == 1
    assert len(result.internal) == 1


def test_malformed_items_are_skipped(registry):
    broken = {"hash": "0xbroken", "blockNumber": "not-a-number", "to": WALLET}
    handler, _ = by_action({"txlist": ok([broken, NATIVE_ITEM, "junk"]), "txlistinternal": EMPTY, "tokentx": EMPTY})
    client, _ = make_client(registry, handler)

    result = client.fetch(WALLET, CHAIN_ETHEREUM, 100, 110)

    assert [tx.hash for tx in result.native] == ["0xnative105"]


def test_transport_error_fails_whole_fetch(registry):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.params["action"] == "tokentx":
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200, json=EMPTY)

    client, _ = make_client(registry, handler, max_retries=0)

    with pytest.raises(FetchFailed) as exc_info:
        client.fetch(WALLET, CHAIN_ETHEREUM, 100, 110)
    assert exc_info.value.action == "tokentx"
    assert exc_info.value.chain_id == CHAIN_ETHEREUM


def test_get_block_number_parses_hex(registry):
    handler, seen = by_action({"eth_blockNumber": {"jsonrpc": "2.0", "id": 83, "result": "0x6e"}})
    client, _ = make_client(registry, handler)

    assert client.get_block_number(CHAIN_ETHEREUM) == 110
    assert seen[0]["module"] == "proxy"
    assert seen[0]["apikey"] == "eth-key"


def test_get_block_number_rejects_error_reply(registry):
    handler, _ = by_action(
        {"eth_blockNumber": {"status": "0", "message": "NOTOK", "result": "Invalid API Key"}}
    )
    client, _ = make_client(registry, handler)

    with pytest.raises(FetchFailed, match="Invalid API Key"):
        client.get_block_number(CHAIN_ETHEREUM)


def test_retryable_status_is_retried_with_backoff(registry):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        if len(calls) < 3:
            return httpx.Response(503)
        return httpx.Response(200, json={"result": "0x10"})

    client, sleeps = make_client(registry, handler, max_retries=2, min_retry_delay_sec=1.0)

    assert client.get_block_number(CHAIN_ETHEREUM) == 16
    assert len(calls) == 3
    assert sleeps == [1.0, 2.0]


def test_retries_exhausted_raises_fetch_failed(registry):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        return httpx.Response(429)

    client, sleeps = make_client(registry, handler, max_retries=1)

    with pytest.raises(FetchFailed, match="HTTP 429"):
        client.get_block_number(CHAIN_ETHEREUM)
    assert len(calls) == 2
    assert len(sleeps) == 1


def test_client_error_status_is_not_retried(registry):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        return httpx.Response(403)

    client, sleeps = make_client(registry, handler, max_retries=3)

    with pytest.raises(FetchFailed, match="HTTP 403"):
        client.get_block_number(CHAIN_ETHEREUM)
    assert len(calls) == 1
    assert sleeps == []


def test_invalid_json_raises_fetch_failed(registry):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>gateway</html>")

    client, _ = make_client(registry, handler)

    with pytest.raises(FetchFailed, match="invalid JSON"):
        client.get_block_number(CHAIN_ETHEREUM)


def test_unsupported_chain(registry):
    handler, seen = by_action({})
    client, _ = make_client(registry, handler)

    with pytest.raises(UnsupportedChain):
        client.fetch(WALLET, 137, 0)
    with pytest.raises(UnsupportedChain):
        client.get_block_number(137)
    assert seen == []


def test_default_client_carries_timeout(registry):
    """Without an injected client every request is bounded by timeout_sec."""
    client = ExplorerClient(registry, timeout_sec=7.5)
    try:
        assert client._client.timeout == httpx.Timeout(7.5)
    finally:
        client.close()


def test_categories_are_queried_concurrently(registry):
    """All three category requests must be in flight at once for the barrier to open."""
    barrier = threading.Barrier(3, timeout=5)
    finished = []
    lock = threading.Lock()
    replies = {"txlist": ok([NATIVE_ITEM]), "txlistinternal": ok([INTERNAL_ITEM]), "tokentx": ok([TOKEN_ITEM])}

    def handler(request: httpx.Request) -> httpx.Response:
        action = request.url.params["action"]
        barrier.wait()
        with lock:
            finished.append(action)
        return httpx.Response(200, json=replies[action])

    client, _ = make_client(registry, handler)

    result = client.fetch(WALLET, CHAIN_ETHEREUM, 100, 110)

    assert sorted(finished) == ["tokentx", "txlist", "txlistinternal"]
    assert (len(result.native), len(result.internal), len(result.token)) == (1, 1, 1)
