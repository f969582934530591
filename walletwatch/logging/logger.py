"""
structlog setup for walletwatch.

Each line is one JSON object carrying event_type, level, a UTC timestamp and
whatever keyword context the caller passed (wallet_id, chain_id, counts).
LOG_FORMAT=console switches to the dev renderer. Output goes to stderr so the
CLI can print JSON summaries on stdout.

This module must not import anything from walletwatch.
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

import structlog

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_LEVEL_VALUE = getattr(logging, LOG_LEVEL, logging.INFO)

# JSON output for production (LOG_FORMAT=json); human-readable for local
LOG_FORMAT = os.getenv("LOG_FORMAT", "json").strip().lower()


def _add_timestamp(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Stamp events with an ISO 8601 UTC time unless the caller set one."""
    if "timestamp" not in event_dict:
        event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def _normalize_event(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Store the event name under event_type and mirror it into message."""
    if "event" in event_dict and "event_type" not in event_dict:
        event_dict["event_type"] = event_dict.pop("event")
    if "message" not in event_dict and "event_type" in event_dict:
        event_dict["message"] = str(event_dict["event_type"])
    return event_dict


def configure_structlog() -> None:
    """Install the processor chain. Runs at import unless structlog is already set up."""
    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        _add_timestamp,
        _normalize_event,
    ]
    if LOG_FORMAT == "json":
        shared_processors.append(structlog.processors.JSONRenderer())
    else:
        shared_processors.append(
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
        )
    structlog.configure(
        processors=shared_processors,
        wrapper_class=structlog.make_filtering_bound_logger(LOG_LEVEL_VALUE),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


if not structlog.is_configured():
    configure_structlog()


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Return a structured logger for the given module name.

        logger = get_logger(__name__)
        logger.info("wallet_checked", wallet_id=addr, chain_id=1, new_transactions=2)

    Output (JSON): {"event_type": "wallet_checked", "wallet_id": "...", "chain_id": 1,
    "new_transactions": 2, "timestamp": "...", "level": "info", "logger": "module.name"}
    """
    return structlog.get_logger(name).bind(logger=name)


def bind_wallet(wallet_id: str, chain_id: int | None = None) -> structlog.BoundLogger:
    """Return a logger with wallet_id (and chain_id when given) bound to every call."""
    bound = get_logger("walletwatch").bind(wallet_id=wallet_id)
    if chain_id is not None:
        bound = bound.bind(chain_id=chain_id)
    return bound
