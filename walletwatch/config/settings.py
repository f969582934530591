"""
Application settings.

One Settings object is built at process start (Settings.from_env()) and
passed to build_app(); nothing reads settings through a module global.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from walletwatch.config.env import (
    PRODUCTION,
    env_float,
    env_int,
    env_str,
    get_app_env,
    get_database_url,
    load_walletwatch_env,
)

DEFAULT_EXPLORER_TIMEOUT_SEC = 15.0
DEFAULT_EXPLORER_MAX_RETRIES = 2
DEFAULT_INTER_WALLET_DELAY_SEC = 0.2
DEFAULT_DAILY_RUN_HOUR = 2
DEFAULT_FREQUENT_INTERVAL_HOURS = 4
DEFAULT_PROBE_INTERVAL_MINUTES = 5


@dataclass
class Settings:
    """Runtime configuration for the monitoring engine."""

    app_env: str = "development"
    database_url: str = "sqlite:///walletwatch.db"
    api_keys: dict[int, str] = field(default_factory=dict)
    """Explorer API key per chain id."""
    api_urls: dict[int, str] = field(default_factory=dict)
    """Optional explorer URL override per chain id."""
    explorer_timeout_sec: float = DEFAULT_EXPLORER_TIMEOUT_SEC
    explorer_max_retries: int = DEFAULT_EXPLORER_MAX_RETRIES
    inter_wallet_delay_sec: float = DEFAULT_INTER_WALLET_DELAY_SEC
    daily_run_hour: int = DEFAULT_DAILY_RUN_HOUR
    frequent_interval_hours: int = DEFAULT_FREQUENT_INTERVAL_HOURS
    probe_interval_minutes: int = DEFAULT_PROBE_INTERVAL_MINUTES

    def __post_init__(self) -> None:
        self.app_env = (self.app_env or "development").strip().lower()
        if not 0 <= self.daily_run_hour <= 23:
            raise ValueError("daily_run_hour must be between 0 and 23")
        if not 1 <= self.frequent_interval_hours <= 24:
            raise ValueError("frequent_interval_hours must be between 1 and 24")
        if self.probe_interval_minutes < 1:
            raise ValueError("probe_interval_minutes must be positive")
        self.explorer_timeout_sec = max(1.0, float(self.explorer_timeout_sec))
        self.explorer_max_retries = max(0, int(self.explorer_max_retries))
        self.inter_wallet_delay_sec = max(0.0, float(self.inter_wallet_delay_sec))

    @property
    def is_production(self) -> bool:
        return self.app_env == PRODUCTION

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables (and .env at project root)."""
        load_walletwatch_env()
        api_keys = {
            1: env_str("ETHERSCAN_API_KEY"),
            56: env_str("BSCSCAN_API_KEY"),
        }
        api_urls = {
            chain_id: url
            for chain_id, url in (
                (1, env_str("ETHERSCAN_API_URL")),
                (56, env_str("BSCSCAN_API_URL")),
            )
            if url
        }
        return cls(
            app_env=get_app_env(),
            database_url=get_database_url(),
            api_keys={k: v for k, v in api_keys.items() if v},
            api_urls=api_urls,
            explorer_timeout_sec=env_float("EXPLORER_TIMEOUT_SEC", DEFAULT_EXPLORER_TIMEOUT_SEC),
            explorer_max_retries=env_int("EXPLORER_MAX_RETRIES", DEFAULT_EXPLORER_MAX_RETRIES),
            inter_wallet_delay_sec=env_float("INTER_WALLET_DELAY_SEC", DEFAULT_INTER_WALLET_DELAY_SEC),
            daily_run_hour=env_int("DAILY_RUN_HOUR", DEFAULT_DAILY_RUN_HOUR),
            frequent_interval_hours=env_int("FREQUENT_INTERVAL_HOURS", DEFAULT_FREQUENT_INTERVAL_HOURS),
            probe_interval_minutes=env_int("PROBE_INTERVAL_MINUTES", DEFAULT_PROBE_INTERVAL_MINUTES),
        )


def get_settings() -> Settings:
    """Return settings freshly read from the environment."""
    return Settings.from_env()
