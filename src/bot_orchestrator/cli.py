"""Command-line interface for Bot Orchestrator."""

from __future__ import annotations

import argparse
import json
import sys
from typing import List, Optional

import uvicorn

from bot_orchestrator import __version__
from bot_orchestrator.config import OrchestratorConfig
from bot_orchestrator.errors import OrchestratorError
from bot_orchestrator.services.bot_service import BotService, build_service

BOT_COMMANDS = ("deploy", "start", "stop", "restart", "status", "logs", "stats", "delete")


def _print_json(data) -> None:
    print(json.dumps(data, indent=2, default=str))


def run_bot_command(service: BotService, args: argparse.Namespace) -> int:
    """Execute one per-bot command against ``service``; returns the exit code."""
    bot_id = args.bot_id
    try:
        if args.command == "deploy":
            ref = service.deploy_bot(bot_id, triggered_by=args.triggered_by)
            _print_json(ref.model_dump())
        elif args.command == "start":
            service.start_bot(bot_id)
            print(f"Bot {bot_id} started")
        elif args.command == "stop":
            service.stop_bot(bot_id)
            print(f"Bot {bot_id} stopped")
        elif args.command == "restart":
            service.restart_bot(bot_id)
            print(f"Bot {bot_id} restarted")
        elif args.command == "status":
            _print_json(service.bot_status(bot_id).model_dump(mode="json"))
        elif args.command == "logs":
            print(service.bot_logs(bot_id, tail=args.tail), end="")
        elif args.command == "stats":
            _print_json(service.bot_stats(bot_id).model_dump())
        elif args.command == "delete":
            result = service.delete_bot(bot_id, purge_volume=args.purge_volume)
            _print_json(result.model_dump())
            if result.warning:
                print(f"Warning: {result.warning}", file=sys.stderr)
    except OrchestratorError as e:
        print(f"Error ({e.kind}): {e.message}", file=sys.stderr)
        return 1
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bot-orchestrator",
        description="Bot Orchestrator - container lifecycle management for bots"
    )

    subparsers = parser.add_subparsers(
        dest="command",
        help="Available commands"
    )

    # Server command (runs both API and monitor)
    server_parser = subparsers.add_parser(
        "server",
        help="Run the full server (API + monitor)"
    )
    server_parser.add_argument("--host", default=None, help="Host to bind to (default: API_HOST or 0.0.0.0)")
    server_parser.add_argument("--port", type=int, default=None, help="Port to bind to (default: API_PORT or 8000)")

    # API server command (API only)
    api_parser = subparsers.add_parser(
        "api",
        help="Run only the API server"
    )
    api_parser.add_argument("--host", default=None, help="Host to bind to (default: API_HOST or 0.0.0.0)")
    api_parser.add_argument("--port", type=int, default=None, help="Port to bind to (default: API_PORT or 8000)")

    # Monitor command (monitor only)
    monitor_parser = subparsers.add_parser(
        "monitor",
        help="Run only the health monitor"
    )
    monitor_parser.add_argument(
        "--interval",
        type=int,
        default=None,
        help="Monitoring interval in seconds (default: HEALTH_INTERVAL_SECONDS or 60)"
    )

    subparsers.add_parser(
        "version",
        help="Show version information"
    )

    for name in BOT_COMMANDS:
        bot_parser = subparsers.add_parser(name, help=f"{name.capitalize()} a bot")
        bot_parser.add_argument("bot_id", help="Logical bot id")
        if name == "deploy":
            bot_parser.add_argument("--triggered-by", default=None, help="User id recorded in deployment history")
        elif name == "logs":
            bot_parser.add_argument("--tail", type=int, default=100, help="Number of lines (default: 100)")
        elif name == "delete":
            bot_parser.add_argument("--purge-volume", action="store_true", help="Also remove the data volume")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run the Bot Orchestrator CLI.

    Args:
        argv: Command-line arguments. If None, uses sys.argv.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    config = OrchestratorConfig.from_env()

    if args.command in ("server", "api"):
        if args.host:
            config.api_host = args.host
        if args.port:
            config.api_port = args.port

    if args.command == "server":
        from bot_orchestrator.main import run
        run(config)
        return 0

    elif args.command == "api":
        uvicorn.run("bot_orchestrator.api.app:app", host=config.api_host, port=config.api_port)
        return 0

    elif args.command == "monitor":
        from bot_orchestrator.monitoring.health_monitor import run_forever
        if args.interval:
            config.health_interval_seconds = args.interval
        run_forever(config)
        return 0

    elif args.command == "version":
        print(f"Bot Orchestrator version {__version__}")
        return 0

    elif args.command in BOT_COMMANDS:
        try:
            service = build_service(config)
        except OrchestratorError as e:
            print(f"Error ({e.kind}): {e.message}", file=sys.stderr)
            return 1
        return run_bot_command(service, args)

    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
