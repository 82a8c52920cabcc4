"""
View logic for the triage dashboard.

Functions that derive bounded, filtered view models from the latest
snapshot. Nothing here mutates the snapshot or caches results: every call
recomputes from the snapshot it is given.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from siem_dashboard.core.config import DisplayConfig, get_config
from siem_dashboard.events.models import AlertEvent, LogEntry, LogFilter
from siem_dashboard.poller.snapshot import Snapshot, StreamStatus
from siem_dashboard.triage.classifier import TriageClassifier

logger = logging.getLogger(__name__)


def filter_logs(
    logs: Sequence[LogEntry],
    log_filter: LogFilter = LogFilter.ALL,
    limit: int = 50,
) -> List[LogEntry]:
    """
    Apply a level filter, then cap to the first ``limit`` matches.

    Args:
        logs: Log entries in arrival order
        log_filter: Level filter
        limit: Maximum rows returned

    Returns:
        Matching entries in arrival order
    """
    rows: List[LogEntry] = []
    if limit <= 0:
        return rows

    for entry in logs:
        if log_filter.matches(entry):
            rows.append(entry)
            if len(rows) >= limit:
                break
    return rows


def distinct_host_count(logs: Sequence[LogEntry]) -> int:
    """Number of distinct host values across all logs, regardless of filter."""
    return len({entry.host for entry in logs})


def log_row(entry: LogEntry) -> Dict[str, str]:
    """Render a log entry as a table row."""
    return {
        "time": entry.display_timestamp(),
        "host": entry.host,
        "level": entry.display_level(),
        "message": entry.message,
    }


def alert_card(alert: AlertEvent) -> Dict[str, Any]:
    """Render an alert as a board card."""
    return {
        "type": alert.type,
        "time": alert.display_timestamp(),
        "message": alert.message,
        "host": alert.host,
        "severity": alert.severity,
    }


def _stream_view(status: StreamStatus) -> Dict[str, Any]:
    return {
        "loaded": status.loaded,
        "stale": status.stale,
        "error": status.last_error if status.failed else None,
        "dropped": status.dropped,
    }


def get_summary_view(snapshot: Snapshot) -> Dict[str, Any]:
    """
    Get the dashboard header counts.

    Returns:
        Dictionary with host/log/alert totals and per-stream status
    """
    return {
        "hosts": distinct_host_count(snapshot.logs),
        "logs": len(snapshot.logs),
        "alerts": len(snapshot.alerts),
        "version": snapshot.version,
        "streams": {
            "logs": _stream_view(snapshot.logs_status),
            "alerts": _stream_view(snapshot.alerts_status),
        },
    }


def get_alert_board_view(
    snapshot: Snapshot,
    display: Optional[DisplayConfig] = None,
) -> Dict[str, Any]:
    """
    Get data for the alert board.

    Args:
        snapshot: Latest snapshot
        display: Display caps (default: from config)

    Returns:
        Dictionary with board state, total count and capped HIGH/MEDIUM cards
    """
    display = display or get_config().display
    classifier = TriageClassifier(
        high_cap=display.high_alert_cap,
        medium_cap=display.medium_alert_cap,
    )

    triage = classifier.classify_alerts(snapshot.alerts)
    state = classifier.board_state(snapshot.alerts, snapshot.alerts_status.loaded)

    return {
        "state": state.value,
        "total": triage.total,
        "high_total": len(triage.high),
        "medium_total": len(triage.medium),
        "high": [alert_card(a) for a in triage.displayed_high],
        "medium": [alert_card(a) for a in triage.displayed_medium],
        "status": _stream_view(snapshot.alerts_status),
    }


def get_logs_view(
    snapshot: Snapshot,
    log_filter: LogFilter = LogFilter.ALL,
    display: Optional[DisplayConfig] = None,
) -> Dict[str, Any]:
    """
    Get data for the log table.

    Args:
        snapshot: Latest snapshot
        log_filter: Selected level filter
        display: Display caps (default: from config)

    Returns:
        Dictionary with the capped, filtered rows, unfiltered host count
        and per-level counts
    """
    display = display or get_config().display
    rows = filter_logs(snapshot.logs, log_filter, limit=display.log_row_cap)
    by_level = TriageClassifier().partition_logs(snapshot.logs)

    return {
        "filter": log_filter.value,
        "rows": [log_row(entry) for entry in rows],
        "hosts": distinct_host_count(snapshot.logs),
        "total": len(snapshot.logs),
        "levels": {level: len(entries) for level, entries in by_level.items()},
        "status": _stream_view(snapshot.logs_status),
    }
