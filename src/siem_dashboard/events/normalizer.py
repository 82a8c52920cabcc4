"""
Normalizers for raw backend records.
"""

import logging
import re
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from .models import AlertEvent, LogEntry, LogLevel, NormalizedBatch

logger = logging.getLogger(__name__)

# fromisoformat on 3.10 only takes 3 or 6 fractional digits
_FRACTION_RE = re.compile(r"\.(\d+)")


class EventNormalizer:
    """
    Normalizes raw ``/logs`` and ``/alerts`` records into LogEntry/AlertEvent.

    A single malformed record never raises: missing fields are defaulted and
    records that are not key/value objects are dropped and counted.
    """

    def normalize_log(self, raw: Any) -> Optional[LogEntry]:
        """
        Normalize one raw log record.

        Log record structure:
        {
            "ts": "2025-01-15T10:30:00Z",
            "host": "web-01",
            "source": "/var/log/auth.log",
            "level": "security",
            "msg": "Accepted password for admin from 10.0.0.5",
        }

        Args:
            raw: Raw record decoded from the backend response

        Returns:
            Normalized LogEntry, or None if the record is unusable
        """
        if not isinstance(raw, Mapping):
            logger.debug(f"Dropping non-object log record: {raw!r}")
            return None

        try:
            level = _as_text(raw.get("level")) or LogLevel.INFO.value
            message = raw.get("msg")
            if message is None:
                message = raw.get("message")

            return LogEntry(
                timestamp=parse_timestamp(raw.get("ts")),
                host=_as_text(raw.get("host")),
                level=level,
                message=_as_text(message),
                source=_as_text(raw.get("source")),
            )
        except Exception as e:
            logger.error(f"Failed to normalize log record: {e}")
            return None

    def normalize_alert(self, raw: Any) -> Optional[AlertEvent]:
        """
        Normalize one raw alert record.

        Alert record structure:
        {
            "ts": "2025-01-15T10:30:00Z",
            "host": "web-01",
            "severity": "HIGH",
            "type": "SSH_BRUTEFORCE",
            "message": "SSH bruteforce from 10.0.0.9: 5 attempts",
        }

        The v2 alert shape (``alert_ts``, ``rule``, ``score`` and the
        triggering log nested under ``log``) is accepted as well.

        Args:
            raw: Raw record decoded from the backend response

        Returns:
            Normalized AlertEvent, or None if the record is unusable
        """
        if not isinstance(raw, Mapping):
            logger.debug(f"Dropping non-object alert record: {raw!r}")
            return None

        try:
            timestamp = raw.get("ts")
            if timestamp is None:
                timestamp = raw.get("alert_ts")

            alert_type = raw.get("type")
            if alert_type is None:
                alert_type = raw.get("rule")

            host = raw.get("host")
            nested_log = raw.get("log")
            if host is None and isinstance(nested_log, Mapping):
                host = nested_log.get("host")

            # No default: absent severity is neither HIGH nor MEDIUM
            severity = raw.get("severity")
            if not isinstance(severity, str):
                severity = None

            return AlertEvent(
                timestamp=parse_timestamp(timestamp),
                severity=severity,
                type=_as_text(alert_type),
                message=_as_text(raw.get("message")),
                host=_as_text(host),
                score=_as_score(raw.get("score")),
            )
        except Exception as e:
            logger.error(f"Failed to normalize alert record: {e}")
            return None

    def normalize_logs(self, records: Iterable[Any]) -> NormalizedBatch[LogEntry]:
        """Normalize a fetched log sequence, preserving arrival order."""
        items = []
        dropped = 0
        for raw in records:
            entry = self.normalize_log(raw)
            if entry is None:
                dropped += 1
            else:
                items.append(entry)

        if dropped:
            logger.warning(f"Dropped {dropped} malformed log record(s)")
        return NormalizedBatch(items=tuple(items), dropped=dropped)

    def normalize_alerts(self, records: Iterable[Any]) -> NormalizedBatch[AlertEvent]:
        """Normalize a fetched alert sequence, preserving arrival order."""
        items = []
        dropped = 0
        for raw in records:
            alert = self.normalize_alert(raw)
            if alert is None:
                dropped += 1
            else:
                items.append(alert)

        if dropped:
            logger.warning(f"Dropped {dropped} malformed alert record(s)")
        return NormalizedBatch(items=tuple(items), dropped=dropped)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a backend timestamp.

    Accepts RFC 3339 / ISO-8601 strings (a trailing ``Z`` included) and
    numeric epoch seconds. Anything else, and Go's zero time, is unknown.

    Args:
        value: Raw timestamp value

    Returns:
        Parsed datetime, or None if missing or unparseable
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        try:
            parsed = datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        text = _FRACTION_RE.sub(_microseconds, text, count=1)
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            logger.debug(f"Unparseable timestamp: {value!r}")
            return None
    else:
        return None

    # Go zero time (0001-01-01T00:00:00Z) means "never set"
    if parsed.year == 1:
        return None
    return parsed


def _microseconds(match: "re.Match[str]") -> str:
    """Pad or trim an RFC 3339 fraction (Go drops trailing zeros) to 6 digits."""
    return "." + match.group(1)[:6].ljust(6, "0")


def _as_text(value: Any) -> str:
    """Coerce a scalar field to text; missing and structured values become empty."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (bool, int, float)):
        return str(value)
    return ""


def _as_score(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)
