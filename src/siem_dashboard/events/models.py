"""
Canonical event models for the two backend streams.

LogEntry and AlertEvent are the normalized, immutable shapes every other
component works with. Neither carries a stable id: identity is the record's
position within the snapshot it came from.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Generic, Optional, Tuple, TypeVar

from pydantic import BaseModel, ConfigDict, Field


TIMESTAMP_PLACEHOLDER = "N/A"


class LogLevel(str, Enum):
    """Log levels the backend is known to emit."""

    SECURITY = "security"
    ERROR = "error"
    WARN = "warn"
    INFO = "info"


class AlertSeverity(str, Enum):
    """Alert severities that are triaged. Anything else is 'other'."""

    HIGH = "HIGH"
    MEDIUM = "MEDIUM"


class LogFilter(str, Enum):
    """Closed set of log view filters."""

    ALL = "all"
    SECURITY = "security"
    ERROR = "error"
    INFO = "info"

    def matches(self, entry: "LogEntry") -> bool:
        """Return True if the entry passes this filter."""
        return self is LogFilter.ALL or entry.level == self.value


def format_timestamp(timestamp: Optional[datetime]) -> str:
    """Render a timestamp as a wall-clock time, or the placeholder if unknown."""
    if timestamp is None:
        return TIMESTAMP_PLACEHOLDER
    if timestamp.tzinfo is not None:
        # Operator's local time
        timestamp = timestamp.astimezone()
    return timestamp.strftime("%H:%M:%S")


class LogEntry(BaseModel):
    """
    A normalized log line from the ``/logs`` stream.
    """

    model_config = ConfigDict(frozen=True)

    timestamp: Optional[datetime] = Field(
        None, description="When the line was logged; None if unknown"
    )
    host: str = Field("", description="Originating host, empty if absent")
    level: str = Field(
        LogLevel.INFO.value,
        description="Level tag (security, error, info, ...); kept as received",
    )
    message: str = Field("", description="Log message")
    source: str = Field("", description="Source file or collector on the host")

    def display_timestamp(self) -> str:
        return format_timestamp(self.timestamp)

    def display_level(self) -> str:
        return self.level.upper() or LogLevel.INFO.value.upper()


class AlertEvent(BaseModel):
    """
    A normalized alert from the ``/alerts`` stream.

    ``severity`` is compared exactly against ``HIGH``/``MEDIUM``; any other
    value, including None and differently-cased spellings, is not triaged.
    """

    model_config = ConfigDict(frozen=True)

    timestamp: Optional[datetime] = Field(
        None, description="When the alert was raised; None if unknown"
    )
    severity: Optional[str] = Field(None, description="Severity tag as received")
    type: str = Field("", description="Alert category (rule name)")
    message: str = Field("", description="Human-readable alert text")
    host: str = Field("", description="Host the alert refers to, empty if absent")
    score: Optional[float] = Field(None, description="Rule score, if provided")

    @property
    def is_high(self) -> bool:
        return self.severity == AlertSeverity.HIGH.value

    @property
    def is_medium(self) -> bool:
        return self.severity == AlertSeverity.MEDIUM.value

    def display_timestamp(self) -> str:
        return format_timestamp(self.timestamp)


T = TypeVar("T")


@dataclass(frozen=True)
class NormalizedBatch(Generic[T]):
    """Result of normalizing one fetched stream."""

    items: Tuple[T, ...] = ()
    dropped: int = 0

    def __len__(self) -> int:
        return len(self.items)
