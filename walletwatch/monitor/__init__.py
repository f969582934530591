"""
Monitoring engine: classify and store inbound transfers, notify, advance cursors.
"""

from walletwatch.monitor.classifier import TransactionWriter, classify, is_inbound
from walletwatch.monitor.notifier import NotificationEmitter, build_title_message, format_amount
from walletwatch.monitor.service import (
    BatchSummary,
    InitializationResult,
    MonitoringService,
    WalletCheckResult,
)

__all__ = [
    "BatchSummary",
    "InitializationResult",
    "MonitoringService",
    "NotificationEmitter",
    "TransactionWriter",
    "WalletCheckResult",
    "build_title_message",
    "classify",
    "format_amount",
    "is_inbound",
]
