"""
Composition root: build every component once and wire them by reference.

    app = build_app(Settings.from_env())
    app.scheduler.start()
    ...
    app.close()
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable

import httpx

from walletwatch.chains.registry import ChainRegistry, build_registry
from walletwatch.config.env import mask_url
from walletwatch.config.settings import Settings
from walletwatch.database.repositories import (
    MonitorRepository,
    NotificationRepository,
    TransactionRepository,
)
from walletwatch.database.session import Database
from walletwatch.explorer.client import ExplorerClient
from walletwatch.logging import get_logger
from walletwatch.monitor.service import MonitoringService
from walletwatch.scheduler.engine import MonitoringScheduler

logger = get_logger(__name__)


@dataclass
class MonitoringApp:
    settings: Settings
    registry: ChainRegistry
    database: Database
    monitors: MonitorRepository
    transactions: TransactionRepository
    notifications: NotificationRepository
    explorer: ExplorerClient
    service: MonitoringService
    scheduler: MonitoringScheduler

    def close(self) -> None:
        """Stop the scheduler, then release the HTTP client and the engine."""
        self.scheduler.stop()
        self.explorer.close()
        self.database.dispose()
        logger.info("app_closed")


def build_app(
    settings: Settings,
    *,
    http_client: httpx.Client | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> MonitoringApp:
    """
    Construct the monitoring app from settings. Creates tables if missing.

    Args:
        settings: Runtime configuration.
        http_client: Optional pre-built httpx.Client for the explorer (tests).
        sleep: Sleep used for retry backoff and inter-wallet delay.
    """
    registry = build_registry(settings.api_keys, settings.api_urls)
    database = Database(settings.database_url)
    database.init_db()

    monitors = MonitorRepository(database)
    transactions = TransactionRepository(database)
    notifications = NotificationRepository(database)
    explorer = ExplorerClient(
        registry,
        timeout_sec=settings.explorer_timeout_sec,
        max_retries=settings.explorer_max_retries,
        client=http_client,
        sleep=sleep,
    )
    service = MonitoringService(
        registry,
        explorer,
        monitors,
        transactions,
        notifications,
        inter_wallet_delay_sec=settings.inter_wallet_delay_sec,
        sleep=sleep,
    )
    scheduler = MonitoringScheduler(service, settings)

    missing_keys = [cid for cid in registry.chain_ids() if not registry.config_for(cid).api_key]
    if missing_keys:
        logger.warning("explorer_api_key_missing", chain_ids=missing_keys)
    logger.info(
        "app_built",
        app_env=settings.app_env,
        database=mask_url(settings.database_url),
        chains=registry.chain_ids(),
    )
    return MonitoringApp(
        settings=settings,
        registry=registry,
        database=database,
        monitors=monitors,
        transactions=transactions,
        notifications=notifications,
        explorer=explorer,
        service=service,
        scheduler=scheduler,
    )
