"""
SIEM Dashboard - real-time security event triage client

This package polls a SIEM backend for recent logs and alerts, normalizes
them and derives bounded, prioritized views for an operator.

Main modules:
- core: configuration
- events: event models, normalization and the backend HTTP client
- triage: severity/level classification and display caps
- poller: polling coordinator and the cached snapshot
- ui: view projections and the JSON API
- cli: triagectl operational CLI
"""

__version__ = "0.1.0"
__author__ = "SIEM Dashboard Team"

__all__ = ["__version__", "__author__"]
