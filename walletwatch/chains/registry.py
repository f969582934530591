"""
Chain registry: chain id -> explorer endpoint, API key, native asset.

Built once at process start from Settings and never mutated afterwards.
Explorers are Etherscan-compatible (module/action query API).
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from walletwatch.core.exceptions import UnsupportedChain

CHAIN_ETHEREUM = 1
CHAIN_BSC = 56

NATIVE_DECIMALS = 18


@dataclass(frozen=True)
class ChainConfig:
    """Explorer settings for one chain."""

    chain_id: int
    name: str
    api_url: str
    api_key: str
    native_symbol: str


# chain_id -> (name, default explorer URL, native symbol)
DEFAULT_CHAINS: dict[int, tuple[str, str, str]] = {
    CHAIN_ETHEREUM: ("Ethereum", "https://api.etherscan.io/api", "ETH"),
    CHAIN_BSC: ("BSC", "https://api.bscscan.com/api", "BNB"),
}


class ChainRegistry:
    """Read-only lookup of supported chains."""

    def __init__(self, chains: list[ChainConfig]) -> None:
        by_id: dict[int, ChainConfig] = {}
        for cfg in chains:
            if cfg.chain_id in by_id:
                raise ValueError(f"duplicate chain id {cfg.chain_id}")
            by_id[cfg.chain_id] = cfg
        self._chains: Mapping[int, ChainConfig] = MappingProxyType(by_id)

    def config_for(self, chain_id: int) -> ChainConfig:
        """Return the chain's config or raise UnsupportedChain."""
        try:
            return self._chains[int(chain_id)]
        except (KeyError, TypeError, ValueError):
            raise UnsupportedChain(chain_id) from None

    def chain_ids(self) -> list[int]:
        return sorted(self._chains)

    def __contains__(self, chain_id: object) -> bool:
        return chain_id in self._chains

    def __len__(self) -> int:
        return len(self._chains)


def build_registry(
    api_keys: Mapping[int, str] | None = None,
    api_urls: Mapping[int, str] | None = None,
) -> ChainRegistry:
    """Default registry (Ethereum, BSC) with per-chain keys and optional URL overrides."""
    api_keys = api_keys or {}
    api_urls = api_urls or {}
    return ChainRegistry(
        [
            ChainConfig(
                chain_id=chain_id,
                name=name,
                api_url=api_urls.get(chain_id) or url,
                api_key=api_keys.get(chain_id, ""),
                native_symbol=symbol,
            )
            for chain_id, (name, url, symbol) in DEFAULT_CHAINS.items()
        ]
    )
