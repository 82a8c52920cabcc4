"""
Triage module: severity-based alert bucketing and log level partitioning.
"""

from siem_dashboard.triage.classifier import AlertTriage, BoardState, TriageClassifier

__all__ = [
    "AlertTriage",
    "BoardState",
    "TriageClassifier",
]
