"""
Snapshot of the latest known logs and alerts.

A Snapshot is an immutable value. The polling coordinator publishes a new one
each time a stream slice or its status changes; readers holding an older
snapshot keep a consistent view.
"""

from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from siem_dashboard.events.models import AlertEvent, LogEntry


class Stream(str, Enum):
    """The two independently fetched backend streams."""

    LOGS = "logs"
    ALERTS = "alerts"


class StreamStatus(BaseModel):
    """Fetch status of one stream."""

    model_config = ConfigDict(frozen=True)

    loaded: bool = Field(False, description="At least one fetch has succeeded")
    failed: bool = Field(False, description="The most recent fetch failed")
    last_error: Optional[str] = None
    last_success: Optional[datetime] = None
    consecutive_failures: int = 0
    dropped: int = Field(0, description="Records dropped by the last normalization")

    @property
    def stale(self) -> bool:
        """Data is being shown but the latest refresh failed."""
        return self.loaded and self.failed


class Snapshot(BaseModel):
    """
    Latest logs and alerts with per-stream status.

    Each stream slice is replaced wholesale or not at all.
    """

    model_config = ConfigDict(frozen=True)

    version: int = 0
    logs: Tuple[LogEntry, ...] = ()
    alerts: Tuple[AlertEvent, ...] = ()
    logs_status: StreamStatus = Field(default_factory=StreamStatus)
    alerts_status: StreamStatus = Field(default_factory=StreamStatus)

    def status(self, stream: Stream) -> StreamStatus:
        if stream is Stream.LOGS:
            return self.logs_status
        return self.alerts_status

    @property
    def has_loaded(self) -> bool:
        """Whether any stream has ever loaded."""
        return self.logs_status.loaded or self.alerts_status.loaded

    def with_logs(self, logs: Tuple[LogEntry, ...], dropped: int, at: datetime) -> "Snapshot":
        """Return a copy with the log slice replaced."""
        return self.model_copy(update={
            "version": self.version + 1,
            "logs": tuple(logs),
            "logs_status": _succeeded(dropped, at),
        })

    def with_alerts(self, alerts: Tuple[AlertEvent, ...], dropped: int, at: datetime) -> "Snapshot":
        """Return a copy with the alert slice replaced."""
        return self.model_copy(update={
            "version": self.version + 1,
            "alerts": tuple(alerts),
            "alerts_status": _succeeded(dropped, at),
        })

    def with_failure(self, stream: Stream, error: str) -> "Snapshot":
        """Return a copy flagging a failed fetch; the stream's data is kept."""
        previous = self.status(stream)
        status = previous.model_copy(update={
            "failed": True,
            "last_error": error,
            "consecutive_failures": previous.consecutive_failures + 1,
        })
        key = "logs_status" if stream is Stream.LOGS else "alerts_status"
        return self.model_copy(update={"version": self.version + 1, key: status})


def _succeeded(dropped: int, at: datetime) -> StreamStatus:
    return StreamStatus(loaded=True, last_success=at, dropped=dropped)
