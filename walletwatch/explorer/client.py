"""
Explorer client: Etherscan-compatible account and proxy queries.

Responsibilities:
- Look up the chain head (proxy/eth_blockNumber).
- Fetch native, internal and token transfers for a wallet above a block height,
  one page (100 items, ascending) per category, the three categories in parallel.
- Degrade a single category to empty on a non-success API status.
- Raise FetchFailed on transport errors, timeouts and HTTP error statuses after
  bounded retries with exponential backoff.
"""

from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable

import httpx

from walletwatch.chains.registry import ChainConfig, ChainRegistry
from walletwatch.core.exceptions import FetchFailed, PartialFetchDegraded
from walletwatch.explorer.models import (
    CATEGORY_INTERNAL,
    CATEGORY_NATIVE,
    CATEGORY_TOKEN,
    FetchResult,
    InternalTransfer,
    NativeTransfer,
    TokenTransfer,
)
from walletwatch.logging import get_logger
from walletwatch.utils.wallet_utils import short

logger = get_logger(__name__)

PAGE_SIZE = 100
DEFAULT_TIMEOUT_SEC = 15.0
DEFAULT_MAX_RETRIES = 2
DEFAULT_MIN_RETRY_DELAY_SEC = 1.0
DEFAULT_MAX_RETRY_DELAY_SEC = 8.0
RETRYABLE_STATUS = frozenset({429, 500, 502, 503, 504})

# Explorer replies with status "0" and one of these messages when a range is simply empty
EMPTY_RESULT_MESSAGES = ("no transactions found", "no records found")

ACTION_BLOCK_NUMBER = "eth_blockNumber"
CATEGORY_ACTIONS: dict[str, tuple[str, Callable[[dict[str, Any]], Any]]] = {
    CATEGORY_NATIVE: ("txlist", NativeTransfer.from_api_item),
    CATEGORY_INTERNAL: ("txlistinternal", InternalTransfer.from_api_item),
    CATEGORY_TOKEN: ("tokentx", TokenTransfer.from_api_item),
}


class ExplorerClient:
    """
    Blocking explorer client shared by all wallets of a batch pass.

    httpx.Client is thread-safe, so the per-category queries of one fetch run on
    a small thread pool against the same connection pool.
    """

    def __init__(
        self,
        registry: ChainRegistry,
        *,
        timeout_sec: float = DEFAULT_TIMEOUT_SEC,
        max_retries: int = DEFAULT_MAX_RETRIES,
        min_retry_delay_sec: float = DEFAULT_MIN_RETRY_DELAY_SEC,
        max_retry_delay_sec: float = DEFAULT_MAX_RETRY_DELAY_SEC,
        page_size: int = PAGE_SIZE,
        client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """
        Args:
            registry: Chain registry used to resolve explorer URL and API key.
            timeout_sec: Per-request timeout (connect + read).
            max_retries: Extra attempts after a transport error or retryable HTTP status.
            min_retry_delay_sec: First backoff delay; doubled per attempt.
            max_retry_delay_sec: Backoff cap.
            page_size: Items per category query (explorer "offset").
            client: Pre-built httpx.Client (tests pass one with a MockTransport).
            sleep: Backoff sleep function.
        """
        if page_size < 1:
            raise ValueError("page_size must be positive")
        self._registry = registry
        self._max_retries = max(0, max_retries)
        self._min_retry_delay = min_retry_delay_sec
        self._max_retry_delay = max_retry_delay_sec
        self._page_size = page_size
        self._sleep = sleep
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=httpx.Timeout(timeout_sec))

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    # --- chain head ---

    def get_block_number(self, chain_id: int) -> int:
        """Return the chain head. Raises UnsupportedChain or FetchFailed."""
        cfg = self._registry.config_for(chain_id)
        data = self._get(cfg, ACTION_BLOCK_NUMBER, {"module": "proxy", "action": ACTION_BLOCK_NUMBER})
        result = data.get("result")
        if isinstance(result, str) and result.lower().startswith("0x"):
            try:
                return int(result, 16)
            except ValueError:
                pass
        err = data.get("error")
        reason = (
            (err.get("message") if isinstance(err, dict) else None)
            or (result if isinstance(result, str) and result else None)
            or data.get("message")
        )
        raise FetchFailed(chain_id, ACTION_BLOCK_NUMBER, f"unexpected block number reply: {reason!r}")

    # --- transfers ---

    def fetch(
        self,
        wallet_address: str,
        chain_id: int,
        from_block_exclusive: int,
        to_block: int | None = None,
    ) -> FetchResult:
        """
        Fetch the three transfer categories in (from_block_exclusive, to_block].
        to_block None means "latest". A category with a non-success status is
        empty in the result and listed in FetchResult.degraded.
        """
        cfg = self._registry.config_for(chain_id)
        start_block = max(0, int(from_block_exclusive)) + 1
        end_block: int | str = "latest" if to_block is None else int(to_block)

        with ThreadPoolExecutor(max_workers=len(CATEGORY_ACTIONS), thread_name_prefix="explorer") as executor:
            futures = {
                category: executor.submit(
                    self._query_category, cfg, category, wallet_address, start_block, end_block
                )
                for category in CATEGORY_ACTIONS
            }
            # All three complete before anything is classified
            outcomes: dict[str, Any] = {}
            for category, fut in futures.items():
                try:
                    outcomes[category] = fut.result()
                except Exception as e:
                    outcomes[category] = e

        result = FetchResult()
        for category, outcome in outcomes.items():
            if isinstance(outcome, PartialFetchDegraded):
                result.degraded[category] = outcome.message
                logger.warning(
                    "explorer_category_degraded",
                    wallet_id=short(wallet_address),
                    chain_id=chain_id,
                    category=category,
                    message=outcome.message,
                )
            elif isinstance(outcome, Exception):
                raise outcome
            else:
                setattr(result, category, outcome)

        logger.debug(
            "explorer_fetch_done",
            wallet_id=short(wallet_address),
            chain_id=chain_id,
            start_block=start_block,
            end_block=end_block,
            native=len(result.native),
            internal=len(result.internal),
            token=len(result.token),
            degraded=sorted(result.degraded),
        )
        return result

    def _query_category(
        self,
        cfg: ChainConfig,
        category: str,
        wallet_address: str,
        start_block: int,
        end_block: int | str,
    ) -> list[Any]:
        action, parse_item = CATEGORY_ACTIONS[category]
        params = {
            "module": "account",
            "action": action,
            "address": wallet_address,
            "startblock": start_block,
            "endblock": end_block,
            "page": 1,
            "offset": self._page_size,
            "sort": "asc",
        }
        data = self._get(cfg, action, params)
        status = str(data.get("status", ""))
        message = str(data.get("message") or "")
        result = data.get("result")
        if status != "1":
            if isinstance(result, list) and not result and message.lower().startswith(EMPTY_RESULT_MESSAGES):
                return []
            detail = result if isinstance(result, str) and result else message or "non-success status"
            raise PartialFetchDegraded(cfg.chain_id, action, detail)
        if not isinstance(result, list):
            raise PartialFetchDegraded(cfg.chain_id, action, f"unexpected result type {type(result).__name__}")

        items: list[Any] = []
        for item in result:
            if not isinstance(item, dict):
                continue
            try:
                items.append(parse_item(item))
            except (KeyError, TypeError, ValueError) as e:
                logger.debug(
                    "explorer_item_skipped",
                    chain_id=cfg.chain_id,
                    action=action,
                    tx_hash=item.get("hash"),
                    error=str(e),
                )
        if len(result) >= self._page_size:
            logger.warning(
                "explorer_page_cap_reached",
                wallet_id=short(wallet_address),
                chain_id=cfg.chain_id,
                action=action,
                page_size=self._page_size,
            )
        return items

    def _get(self, cfg: ChainConfig, action: str, params: dict[str, Any]) -> dict[str, Any]:
        """GET the explorer with retry/backoff; return the decoded JSON envelope."""
        query = dict(params)
        if cfg.api_key:
            query["apikey"] = cfg.api_key
        delay = self._min_retry_delay
        attempts = self._max_retries + 1
        last_reason = ""
        for attempt in range(attempts):
            try:
                resp = self._client.get(cfg.api_url, params=query)
                if resp.status_code in RETRYABLE_STATUS:
                    last_reason = f"HTTP {resp.status_code}"
                else:
                    resp.raise_for_status()
                    data = resp.json()
                    if not isinstance(data, dict):
                        raise FetchFailed(cfg.chain_id, action, "response is not a JSON object")
                    return data
            except httpx.HTTPStatusError as e:
                raise FetchFailed(cfg.chain_id, action, f"HTTP {e.response.status_code}") from e
            except httpx.TransportError as e:
                last_reason = f"{type(e).__name__}: {e}"
            except ValueError as e:
                raise FetchFailed(cfg.chain_id, action, f"invalid JSON: {e}") from e

            if attempt + 1 < attempts:
                logger.warning(
                    "explorer_retry",
                    chain_id=cfg.chain_id,
                    action=action,
                    attempt=attempt + 1,
                    max_attempts=attempts,
                    error=last_reason,
                )
                self._sleep(delay)
                delay = min(delay * 2, self._max_retry_delay)

        logger.error("explorer_give_up", chain_id=cfg.chain_id, action=action, error=last_reason)
        raise FetchFailed(cfg.chain_id, action, last_reason)
