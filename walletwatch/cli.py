"""
walletwatch command line.

Usage:
  python -m walletwatch run                          # start scheduler, block until SIGINT/SIGTERM
  python -m walletwatch trigger                      # one monitoring pass, print summary JSON
  python -m walletwatch init-wallet USER_ID ADDRESS  # start monitoring a wallet from the current head
  python -m walletwatch status                       # scheduler jobs and batch state
"""

from __future__ import annotations

import argparse
import json
import signal
import sys
import threading
from typing import Any, Sequence

from walletwatch.app import MonitoringApp, build_app
from walletwatch.config.settings import get_settings
from walletwatch.logging import get_logger

logger = get_logger(__name__)


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, default=str))


def cmd_run(app: MonitoringApp, args: argparse.Namespace) -> int:
    stop = threading.Event()

    def _handle_signal(signum: int, _frame: Any) -> None:
        logger.info("cli_signal_received", signal=signum)
        stop.set()

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    app.scheduler.start()
    if args.run_now:
        _print_json(app.scheduler.trigger_now().to_dict())
    try:
        while not stop.wait(1.0):
            pass
    finally:
        app.scheduler.stop()
    return 0


def cmd_trigger(app: MonitoringApp, args: argparse.Namespace) -> int:
    summary = app.scheduler.trigger_now()
    _print_json(summary.to_dict())
    return 0 if summary.wallets_failed == 0 else 1


def cmd_init_wallet(app: MonitoringApp, args: argparse.Namespace) -> int:
    try:
        result = app.service.initialize_monitoring(args.user_id, args.address)
    except ValueError as e:
        logger.error("cli_init_wallet_invalid", error=str(e))
        print(str(e), file=sys.stderr)
        return 2
    _print_json(result.to_dict())
    return 0 if result.ok else 1


def cmd_status(app: MonitoringApp, args: argparse.Namespace) -> int:
    status = app.scheduler.status()
    status["jobs"] = [job.to_dict() for job in status["jobs"]]
    if args.user_id is not None:
        status["monitoring"] = app.service.monitoring_status(args.user_id)
    _print_json(status)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="walletwatch",
        description="Multi-chain wallet deposit monitor.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_run = sub.add_parser("run", help="Start the scheduler and block until interrupted.")
    p_run.add_argument(
        "--run-now",
        action="store_true",
        help="Run one monitoring pass immediately after starting.",
    )
    p_run.set_defaults(func=cmd_run)

    p_trigger = sub.add_parser("trigger", help="Run one monitoring pass and print the summary.")
    p_trigger.set_defaults(func=cmd_trigger)

    p_init = sub.add_parser("init-wallet", help="Start monitoring a wallet on every chain.")
    p_init.add_argument("user_id", type=int)
    p_init.add_argument("address")
    p_init.set_defaults(func=cmd_init_wallet)

    p_status = sub.add_parser("status", help="Show scheduler jobs and batch state.")
    p_status.add_argument("--user-id", type=int, default=None, help="Also list this user's cursors.")
    p_status.set_defaults(func=cmd_status)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    app = build_app(get_settings())
    try:
        return args.func(app, args)
    finally:
        app.close()
