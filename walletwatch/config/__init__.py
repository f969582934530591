"""
Configuration management for walletwatch.

Loads settings from environment variables and the project .env file.
"""

from walletwatch.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
