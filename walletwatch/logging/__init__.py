"""
Structured logging for walletwatch.

JSON logs with timestamp, wallet_id, chain_id, event_type.
Use get_logger() in every module.
"""

from walletwatch.logging.logger import bind_wallet, get_logger

__all__ = ["bind_wallet", "get_logger"]
