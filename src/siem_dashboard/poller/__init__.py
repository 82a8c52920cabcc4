"""
Polling module: refresh timer, fetch lifecycle and the cached snapshot.
"""

from siem_dashboard.poller.snapshot import Snapshot, Stream, StreamStatus
from siem_dashboard.poller.coordinator import CoordinatorState, PollingCoordinator

__all__ = [
    "Snapshot",
    "Stream",
    "StreamStatus",
    "CoordinatorState",
    "PollingCoordinator",
]
