"""
Chain registry package: supported chains and their explorer endpoints.
"""

from walletwatch.chains.registry import (
    CHAIN_BSC,
    CHAIN_ETHEREUM,
    NATIVE_DECIMALS,
    ChainConfig,
    ChainRegistry,
    build_registry,
)

__all__ = [
    "CHAIN_BSC",
    "CHAIN_ETHEREUM",
    "NATIVE_DECIMALS",
    "ChainConfig",
    "ChainRegistry",
    "build_registry",
]
