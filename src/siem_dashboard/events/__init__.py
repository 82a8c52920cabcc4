"""
Events package: canonical log/alert models, normalization and backend access.
"""

from .models import (
    AlertEvent,
    AlertSeverity,
    LogEntry,
    LogFilter,
    LogLevel,
    NormalizedBatch,
)
from .normalizer import EventNormalizer, parse_timestamp
from .backend_client import BackendClient, unwrap_envelope

__all__ = [
    "AlertEvent",
    "AlertSeverity",
    "LogEntry",
    "LogFilter",
    "LogLevel",
    "NormalizedBatch",
    "EventNormalizer",
    "parse_timestamp",
    "BackendClient",
    "unwrap_envelope",
]
