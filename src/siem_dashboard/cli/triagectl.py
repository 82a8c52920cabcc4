#!/usr/bin/env python3
"""
triagectl - SIEM dashboard triage CLI

A terminal front-end for the triage pipeline:
- One-off triaged view (triagectl snapshot)
- Live refreshing view (triagectl watch)
- Backend health checks (triagectl doctor)
- Version info (triagectl version)
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from siem_dashboard import __version__
from siem_dashboard.core.config import AppConfig, get_config
from siem_dashboard.errors import BackendFetchError
from siem_dashboard.events.backend_client import BackendClient
from siem_dashboard.events.models import LogFilter, LogLevel
from siem_dashboard.poller.coordinator import PollingCoordinator
from siem_dashboard.poller.snapshot import Snapshot
from siem_dashboard.ui import views


class Colors:
    """ANSI color codes for terminal output."""

    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    RED = "\033[91m"
    BLUE = "\033[94m"
    RESET = "\033[0m"
    BOLD = "\033[1m"


def colorize(text: str, color: str) -> str:
    """Colorize text if stdout is a TTY."""
    if sys.stdout.isatty():
        return f"{color}{text}{Colors.RESET}"
    return text


LEVEL_COLORS = {
    LogLevel.SECURITY: Colors.RED,
    LogLevel.ERROR: Colors.YELLOW,
    LogLevel.WARN: Colors.YELLOW,
    LogLevel.INFO: Colors.GREEN,
}


def level_color(display_level: str) -> str:
    """Color for a rendered level; unknown levels are left uncolored."""
    for level, color in LEVEL_COLORS.items():
        if display_level == level.value.upper():
            return color
    return Colors.RESET


def setup_logging(log_level: str):
    """
    Setup logging configuration.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


def render_summary(summary: Dict[str, Any]) -> List[str]:
    """Render the header line, plus stale warnings per stream."""
    lines = [
        colorize("SIEM Dashboard", Colors.BOLD)
        + f"  Hosts: {summary['hosts']} | Logs: {summary['logs']} | Alerts: {summary['alerts']}"
    ]
    for name, stream in summary["streams"].items():
        if stream["error"]:
            label = "stale" if stream["stale"] else "unavailable"
            lines.append(colorize(f"  [{label}] {name}: {stream['error']}", Colors.YELLOW))
    return lines


def render_board(board: Dict[str, Any]) -> List[str]:
    """Render the alert board."""
    lines = [colorize(f"Active Alerts ({board['total']})", Colors.BOLD)]

    if board["state"] == "no_data":
        lines.append("  Waiting for first alert refresh...")
        return lines
    if board["state"] == "all_clear":
        lines.append(colorize("  ✓ No active alerts", Colors.GREEN))
        return lines

    for card in board["high"]:
        lines.append(
            colorize(f"  HIGH   {card['type']}", Colors.RED)
            + f"  {card['time']}  {card['message']}  [{card['host']}]"
        )
    for card in board["medium"]:
        lines.append(
            colorize(f"  MEDIUM {card['type']}", Colors.YELLOW)
            + f"  {card['time']}  {card['message']}"
        )

    hidden = board["total"] - len(board["high"]) - len(board["medium"])
    if hidden > 0:
        lines.append(f"  ... {hidden} more not shown")
    return lines


def render_logs(logs_view: Dict[str, Any]) -> List[str]:
    """Render the log table."""
    lines = [colorize(f"Recent Logs (filter: {logs_view['filter']})", Colors.BOLD)]
    if not logs_view["rows"]:
        lines.append("  (no matching logs)")
        return lines

    for row in logs_view["rows"]:
        level = row["level"]
        level_str = colorize(f"{level:<8}", level_color(level))
        lines.append(f"  {row['time']:<8}  {row['host']:<16} {level_str} {row['message']}")
    return lines


def render_snapshot(snapshot: Snapshot, log_filter: LogFilter, config: AppConfig) -> str:
    """Render the full triaged view of a snapshot."""
    lines: List[str] = []
    lines.extend(render_summary(views.get_summary_view(snapshot)))
    lines.append("")
    lines.extend(render_board(views.get_alert_board_view(snapshot, display=config.display)))
    lines.append("")
    lines.extend(render_logs(
        views.get_logs_view(snapshot, log_filter=log_filter, display=config.display)
    ))
    return "\n".join(lines)


def snapshot_as_dict(snapshot: Snapshot, log_filter: LogFilter, config: AppConfig) -> Dict[str, Any]:
    return {
        "summary": views.get_summary_view(snapshot),
        "alerts": views.get_alert_board_view(snapshot, display=config.display),
        "logs": views.get_logs_view(snapshot, log_filter=log_filter, display=config.display),
    }


def build_coordinator(args, config: AppConfig) -> PollingCoordinator:
    """Build a coordinator from config, honouring --url/--interval overrides."""
    backend = config.backend
    if args.url:
        backend = backend.model_copy(update={"url": args.url})

    polling = config.polling
    if getattr(args, "interval", None):
        polling = polling.model_copy(update={"interval_seconds": args.interval})

    return PollingCoordinator.from_config(polling, backend)


async def cmd_snapshot(args) -> int:
    """
    Poll both streams once and print the triaged view.

    Returns:
        Exit code (0 if both streams loaded, 1 otherwise)
    """
    config = get_config()
    coordinator = build_coordinator(args, config)

    try:
        snapshot = await coordinator.poll_once()
    finally:
        await coordinator.stop()

    log_filter = LogFilter(args.filter)
    if args.json:
        print(json.dumps(snapshot_as_dict(snapshot, log_filter, config), indent=2, default=str))
    else:
        print(render_snapshot(snapshot, log_filter, config))

    if snapshot.logs_status.failed or snapshot.alerts_status.failed:
        return 1
    return 0


async def cmd_watch(args) -> int:
    """
    Poll continuously and redraw the triaged view whenever it changes.

    Returns:
        Exit code (always 0; interrupt with Ctrl-C)
    """
    config = get_config()
    log_filter = LogFilter(args.filter)
    last_version: Optional[int] = None

    async with build_coordinator(args, config) as coordinator:
        while True:
            snapshot = coordinator.snapshot
            if snapshot.version != last_version:
                last_version = snapshot.version
                if sys.stdout.isatty():
                    print("\033[2J\033[H", end="")
                print(render_snapshot(snapshot, log_filter, config))
                print()
            await asyncio.sleep(coordinator.interval_seconds / 2)


async def check_endpoint(name: str, fetch) -> tuple[str, str]:
    """
    Fetch one stream and report how it went.

    Returns:
        (status, message) where status is "OK", "WARN", or "ERROR"
    """
    try:
        records = await fetch()
    except BackendFetchError as e:
        return "ERROR", str(e)
    except Exception as e:
        return "ERROR", f"Unexpected error: {e}"

    if not records:
        return "WARN", f"{name} endpoint returned no records"
    return "OK", f"{len(records)} record(s)"


def format_check_result(name: str, status: str, message: str, width: int = 40) -> str:
    """Format a check result line."""
    padding = " " * max(1, width - len(name))

    if status == "OK":
        status_str = colorize("[OK]", Colors.GREEN)
    elif status == "WARN":
        status_str = colorize("[WARN]", Colors.YELLOW)
    else:  # ERROR
        status_str = colorize("[ERROR]", Colors.RED)

    return f"{name}:{padding}{status_str} {message}"


async def cmd_doctor(args) -> int:
    """
    Run backend checks and print a summary.

    Returns:
        Exit code (0 on success, non-zero on critical failure)
    """
    config = get_config()
    backend = config.backend
    base_url = args.url or backend.url

    print(colorize("\nSIEM Dashboard Doctor", Colors.BOLD))
    print(colorize("=" * 60, Colors.BOLD))
    print()

    all_ok = True

    async with BackendClient(base_url=base_url, timeout=args.timeout) as client:
        try:
            health = await client.health()
            details = ", ".join(f"{k}={v}" for k, v in health.items() if k != "status")
            status = "OK" if health.get("status") == "healthy" else "WARN"
            message = f"{health.get('status', 'unknown')} {details}".strip()
        except BackendFetchError as e:
            status, message = "WARN", str(e)
        print(format_check_result(f"Backend ({base_url})", status, message))

        status, message = await check_endpoint("logs", client.fetch_logs)
        print(format_check_result(f"Logs ({client.logs_path})", status, message))
        if status == "ERROR":
            all_ok = False

        status, message = await check_endpoint("alerts", client.fetch_alerts)
        print(format_check_result(f"Alerts ({client.alerts_path})", status, message))
        if status == "ERROR":
            all_ok = False

    print()

    if all_ok:
        print(colorize("✓ All critical checks passed", Colors.GREEN))
        return 0
    else:
        print(colorize("✗ One or more critical checks failed", Colors.RED))
        return 1


def cmd_version(args) -> int:
    """
    Print version information.

    Returns:
        Exit code (always 0)
    """
    print(f"triagectl version {__version__}")
    print("SIEM Dashboard - real-time security event triage client")
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for triagectl."""
    parser = argparse.ArgumentParser(
        description="SIEM dashboard triage CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  triagectl snapshot                 # Poll once and print the triaged view
  triagectl snapshot --filter error  # Only error log rows
  triagectl watch                    # Live view, refreshes every interval
  triagectl doctor                   # Check backend endpoints
  triagectl version                  # Show version information

Environment variables:
  SIEM_BACKEND_URL                   # Backend URL (default: http://localhost:8080)
  SIEM_POLL_INTERVAL_SECONDS         # Polling interval (default: 2.0)
  SIEM_LOG_LEVEL                     # Logging level (default: INFO)
        """
    )
    parser.add_argument(
        "--url",
        help="Backend URL (overrides SIEM_BACKEND_URL)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    filter_choices = [f.value for f in LogFilter]

    # snapshot command
    snapshot_parser = subparsers.add_parser(
        "snapshot",
        help="Poll once and print the triaged view"
    )
    snapshot_parser.add_argument(
        "--filter",
        choices=filter_choices,
        default=LogFilter.ALL.value,
        help="Log level filter (default: all)"
    )
    snapshot_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the view models as JSON"
    )

    # watch command
    watch_parser = subparsers.add_parser(
        "watch",
        help="Poll continuously and redraw the triaged view"
    )
    watch_parser.add_argument(
        "--filter",
        choices=filter_choices,
        default=LogFilter.ALL.value,
        help="Log level filter (default: all)"
    )
    watch_parser.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Polling interval in seconds (overrides SIEM_POLL_INTERVAL_SECONDS)"
    )

    # doctor command
    doctor_parser = subparsers.add_parser(
        "doctor",
        help="Check backend health and stream endpoints"
    )
    doctor_parser.add_argument(
        "--timeout",
        type=float,
        default=5.0,
        help="Timeout for HTTP requests in seconds (default: 5.0)"
    )

    # version command
    subparsers.add_parser(
        "version",
        help="Show version information"
    )

    return parser


def main(argv=None):
    """Main entry point for triagectl CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    setup_logging(get_config().log_level)

    # Dispatch to command handlers
    if args.command == "snapshot":
        return asyncio.run(cmd_snapshot(args))
    elif args.command == "watch":
        try:
            return asyncio.run(cmd_watch(args))
        except KeyboardInterrupt:
            return 0
    elif args.command == "doctor":
        return asyncio.run(cmd_doctor(args))
    elif args.command == "version":
        return cmd_version(args)
    else:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
