"""
walletwatch: incoming-transfer monitoring for registered EVM wallets.

Scans explorer APIs per (wallet, chain) from a stored block cursor, stores
new inbound transfers exactly once and creates a deposit notification for
each. A background scheduler drives recurring batch passes.
"""

__version__ = "0.1.0"
