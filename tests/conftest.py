"""
Shared fixtures and fakes for the triage client tests.
"""

import asyncio
from typing import Any, Dict, List

import pytest

from siem_dashboard.core.config import reload_config


@pytest.fixture(autouse=True)
def fresh_config():
    """Make every test see configuration built from its own environment."""
    reload_config()
    yield
    reload_config()


class FakeBackend:
    """
    Scripted stand-in for BackendClient.

    Each stream has a script of responses: a list is returned as the raw
    records, an exception instance is raised. The last entry repeats once
    the script is exhausted. ``delays`` holds a per-stream list of seconds
    to wait before answering, consumed the same way.
    """

    def __init__(self, logs=None, alerts=None, log_delays=None, alert_delays=None):
        self.scripts: Dict[str, List[Any]] = {
            "logs": list(logs if logs is not None else [[]]),
            "alerts": list(alerts if alerts is not None else [[]]),
        }
        self.delays: Dict[str, List[float]] = {
            "logs": list(log_delays or [0.0]),
            "alerts": list(alert_delays or [0.0]),
        }
        self.calls = {"logs": 0, "alerts": 0}
        self.closed = False

    @staticmethod
    def _take(items: List[Any]) -> Any:
        if len(items) > 1:
            return items.pop(0)
        return items[0]

    async def _answer(self, stream: str):
        self.calls[stream] += 1
        delay = self._take(self.delays[stream])
        response = self._take(self.scripts[stream])
        if delay:
            await asyncio.sleep(delay)
        if isinstance(response, BaseException):
            raise response
        return response

    async def fetch_logs(self):
        return await self._answer("logs")

    async def fetch_alerts(self):
        return await self._answer("alerts")

    async def close(self):
        self.closed = True


def raw_log(host="web-01", level="info", msg="ok", ts="2025-01-15T10:30:00Z"):
    record = {"host": host, "level": level, "msg": msg}
    if ts is not None:
        record["ts"] = ts
    return record


def raw_alert(severity="HIGH", alert_type="SSH_BRUTEFORCE", host="web-01", message="attempts"):
    return {
        "ts": "2025-01-15T10:30:00Z",
        "host": host,
        "severity": severity,
        "type": alert_type,
        "message": message,
    }
