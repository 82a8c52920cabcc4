"""
Triage classification logic.
"""

import logging
from enum import Enum
from typing import Dict, List, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field

from siem_dashboard.events.models import AlertEvent, LogEntry

logger = logging.getLogger(__name__)


class BoardState(str, Enum):
    """What the alert board should say about the alert stream."""

    NO_DATA = "no_data"      # never loaded
    ALL_CLEAR = "all_clear"  # loaded, zero alerts
    ACTIVE = "active"


class AlertTriage(BaseModel):
    """
    Alerts partitioned by severity, with display caps applied.

    ``high``/``medium``/``other`` hold every alert in arrival order; the
    ``displayed_*`` fields hold the rendered prefixes.
    """

    model_config = ConfigDict(frozen=True)

    high: Tuple[AlertEvent, ...] = ()
    medium: Tuple[AlertEvent, ...] = ()
    other: Tuple[AlertEvent, ...] = ()
    displayed_high: Tuple[AlertEvent, ...] = ()
    displayed_medium: Tuple[AlertEvent, ...] = ()
    total: int = Field(0, description="All alerts, triaged or not")

    @property
    def is_all_clear(self) -> bool:
        return self.total == 0


class TriageClassifier:
    """
    Partitions alerts by severity and log entries by level.

    Severity matching is exact-string: ``"high"`` or ``"High"`` are 'other'.
    Ordering is never changed: the backend already sends most recent first,
    so "first N" means the first N received.
    """

    def __init__(self, high_cap: int = 5, medium_cap: int = 3):
        """
        Initialize the classifier.

        Args:
            high_cap: Maximum HIGH alerts to display
            medium_cap: Maximum MEDIUM alerts to display
        """
        self.high_cap = high_cap
        self.medium_cap = medium_cap

    def classify_alerts(self, alerts: Sequence[AlertEvent]) -> AlertTriage:
        """
        Partition alerts into HIGH, MEDIUM and other buckets.

        Args:
            alerts: Alerts in arrival order

        Returns:
            AlertTriage with full buckets, capped display prefixes and total
        """
        high: List[AlertEvent] = []
        medium: List[AlertEvent] = []
        other: List[AlertEvent] = []

        for alert in alerts:
            if alert.is_high:
                high.append(alert)
            elif alert.is_medium:
                medium.append(alert)
            else:
                other.append(alert)

        triage = AlertTriage(
            high=tuple(high),
            medium=tuple(medium),
            other=tuple(other),
            displayed_high=tuple(high[:self.high_cap]),
            displayed_medium=tuple(medium[:self.medium_cap]),
            total=len(alerts),
        )

        logger.debug(
            f"Triaged {triage.total} alert(s): {len(high)} HIGH, "
            f"{len(medium)} MEDIUM, {len(other)} other"
        )
        return triage

    def partition_logs(self, logs: Sequence[LogEntry]) -> Dict[str, List[LogEntry]]:
        """
        Group log entries by their level tag, preserving arrival order.

        Args:
            logs: Log entries in arrival order

        Returns:
            Mapping of level -> entries with that level
        """
        buckets: Dict[str, List[LogEntry]] = {}
        for entry in logs:
            buckets.setdefault(entry.level, []).append(entry)
        return buckets

    @staticmethod
    def board_state(alerts: Sequence[AlertEvent], has_loaded: bool) -> BoardState:
        """
        Tell "never polled" apart from "zero alerts currently".

        Args:
            alerts: Current alert sequence
            has_loaded: Whether the alert stream has ever loaded successfully

        Returns:
            The board state
        """
        if not has_loaded:
            return BoardState.NO_DATA
        if not alerts:
            return BoardState.ALL_CLEAR
        return BoardState.ACTIVE
