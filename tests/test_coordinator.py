"""
Tests for the polling coordinator lifecycle and per-stream refresh.

Run with: pytest tests/
"""

import asyncio

import pytest

from conftest import FakeBackend, raw_alert, raw_log
from siem_dashboard.core.config import BackendConfig, PollingConfig
from siem_dashboard.errors import BackendFetchError, CoordinatorStateError
from siem_dashboard.events.backend_client import BackendClient
from siem_dashboard.poller.coordinator import CoordinatorState, PollingCoordinator
from siem_dashboard.poller.snapshot import Stream


class TestPollOnce:
    """Single refreshes of both streams."""

    def test_both_streams_applied(self):
        backend = FakeBackend(
            logs=[[raw_log(host="a"), raw_log(host="b")]],
            alerts=[[raw_alert("HIGH")]],
        )
        coordinator = PollingCoordinator(client=backend)

        snapshot = asyncio.run(coordinator.poll_once())

        assert [e.host for e in snapshot.logs] == ["a", "b"]
        assert len(snapshot.alerts) == 1
        assert snapshot.version == 2
        assert coordinator.has_loaded
        assert coordinator.state is CoordinatorState.IDLE

    def test_empty_alerts_is_loaded_not_missing(self):
        coordinator = PollingCoordinator(client=FakeBackend(alerts=[[]]))

        assert not coordinator.has_loaded
        snapshot = asyncio.run(coordinator.poll_once())

        assert snapshot.alerts == ()
        assert snapshot.alerts_status.loaded

    def test_logs_failure_keeps_previous_logs(self):
        backend = FakeBackend(
            logs=[[raw_log(msg="tick 1")], BackendFetchError("logs", "unexpected status 500")],
            alerts=[[raw_alert("HIGH")], [raw_alert("MEDIUM"), raw_alert("LOW")]],
        )
        coordinator = PollingCoordinator(client=backend)

        async def scenario():
            await coordinator.poll_once()
            return await coordinator.poll_once()

        snapshot = asyncio.run(scenario())

        assert [e.message for e in snapshot.logs] == ["tick 1"]
        assert snapshot.logs_status.failed
        assert snapshot.logs_status.stale
        assert "500" in snapshot.logs_status.last_error
        assert [a.severity for a in snapshot.alerts] == ["MEDIUM", "LOW"]
        assert not snapshot.alerts_status.failed

    def test_failure_before_first_load(self):
        backend = FakeBackend(logs=[BackendFetchError("logs", "request failed")])
        coordinator = PollingCoordinator(client=backend)

        snapshot = asyncio.run(coordinator.poll_once())

        assert snapshot.logs == ()
        assert not snapshot.logs_status.loaded
        assert snapshot.logs_status.failed
        assert snapshot.alerts_status.loaded

    def test_recovery_clears_failure(self):
        backend = FakeBackend(
            logs=[BackendFetchError("logs", "down"), BackendFetchError("logs", "down"), [raw_log()]],
        )
        coordinator = PollingCoordinator(client=backend)

        async def scenario():
            await coordinator.poll_once()
            failing = await coordinator.poll_once()
            assert failing.logs_status.consecutive_failures == 2
            return await coordinator.poll_once()

        snapshot = asyncio.run(scenario())

        assert not snapshot.logs_status.failed
        assert snapshot.logs_status.consecutive_failures == 0
        assert len(snapshot.logs) == 1

    def test_unexpected_client_error_is_contained(self):
        backend = FakeBackend(alerts=[RuntimeError("bug in client")])
        coordinator = PollingCoordinator(client=backend)

        snapshot = asyncio.run(coordinator.poll_once())

        assert snapshot.alerts_status.failed
        assert "bug in client" in snapshot.alerts_status.last_error
        assert snapshot.logs_status.loaded

    def test_request_timeout(self):
        backend = FakeBackend(log_delays=[1.0])
        coordinator = PollingCoordinator(client=backend, interval_seconds=5.0, request_timeout=0.05)

        snapshot = asyncio.run(coordinator.poll_once())

        assert snapshot.logs_status.failed
        assert "timed out" in snapshot.logs_status.last_error
        assert snapshot.alerts_status.loaded

    def test_malformed_records_are_counted(self):
        backend = FakeBackend(logs=[[raw_log(), "junk", 7]])
        coordinator = PollingCoordinator(client=backend)

        snapshot = asyncio.run(coordinator.poll_once())

        assert len(snapshot.logs) == 1
        assert snapshot.logs_status.dropped == 2

    def test_last_completion_wins(self):
        backend = FakeBackend(
            logs=[[raw_log(msg="slow")], [raw_log(msg="fast")]],
            log_delays=[0.1, 0.0],
        )
        coordinator = PollingCoordinator(client=backend, request_timeout=1.0)

        async def scenario():
            slow = asyncio.create_task(coordinator._refresh_stream(Stream.LOGS))
            await asyncio.sleep(0)
            fast = asyncio.create_task(coordinator._refresh_stream(Stream.LOGS))
            await asyncio.gather(slow, fast)

        asyncio.run(scenario())

        assert [e.message for e in coordinator.snapshot.logs] == ["slow"]


class TestLifecycle:
    """Timer start/stop behaviour."""

    def test_start_fetches_immediately(self):
        backend = FakeBackend()
        coordinator = PollingCoordinator(client=backend, interval_seconds=10.0)

        async def scenario():
            await coordinator.start()
            await asyncio.sleep(0.05)
            assert coordinator.state is CoordinatorState.POLLING
            await coordinator.stop()

        asyncio.run(scenario())

        assert backend.calls == {"logs": 1, "alerts": 1}
        assert coordinator.tick_count == 1

    def test_ticks_repeat_on_interval(self):
        backend = FakeBackend()
        coordinator = PollingCoordinator(client=backend, interval_seconds=0.02)

        async def scenario():
            async with coordinator:
                await asyncio.sleep(0.15)

        asyncio.run(scenario())

        assert backend.calls["logs"] >= 3
        assert backend.calls["logs"] == backend.calls["alerts"]

    def test_no_fetch_after_stop(self):
        backend = FakeBackend()
        coordinator = PollingCoordinator(client=backend, interval_seconds=0.02)

        async def scenario():
            await coordinator.start()
            await asyncio.sleep(0.07)
            await coordinator.stop()
            calls_at_stop = dict(backend.calls)
            await asyncio.sleep(0.2)
            return calls_at_stop

        calls_at_stop = asyncio.run(scenario())

        assert backend.calls == calls_at_stop
        assert coordinator.state is CoordinatorState.STOPPED

    def test_inflight_result_discarded_after_stop(self):
        backend = FakeBackend(logs=[[raw_log()]], log_delays=[0.2])
        coordinator = PollingCoordinator(client=backend, interval_seconds=10.0, request_timeout=1.0)

        async def scenario():
            await coordinator.start()
            await asyncio.sleep(0.05)
            await coordinator.stop()
            await asyncio.sleep(0.3)

        asyncio.run(scenario())

        assert coordinator.snapshot.logs == ()
        assert not coordinator.snapshot.logs_status.failed

    def test_stop_is_idempotent(self):
        coordinator = PollingCoordinator(client=FakeBackend(), interval_seconds=0.02)

        async def scenario():
            await coordinator.start()
            await coordinator.stop()
            await coordinator.stop()

        asyncio.run(scenario())

        assert coordinator.state is CoordinatorState.STOPPED

    def test_stop_from_idle(self):
        coordinator = PollingCoordinator(client=FakeBackend())

        asyncio.run(coordinator.stop())

        assert coordinator.state is CoordinatorState.STOPPED

    def test_snapshot_retained_after_stop(self):
        backend = FakeBackend(logs=[[raw_log(msg="kept")]])
        coordinator = PollingCoordinator(client=backend)

        async def scenario():
            await coordinator.poll_once()
            await coordinator.stop()

        asyncio.run(scenario())

        assert [e.message for e in coordinator.snapshot.logs] == ["kept"]

    def test_restart_after_stop_is_rejected(self):
        coordinator = PollingCoordinator(client=FakeBackend())

        async def scenario():
            await coordinator.stop()
            with pytest.raises(CoordinatorStateError):
                await coordinator.start()
            with pytest.raises(CoordinatorStateError):
                await coordinator.poll_once()

        asyncio.run(scenario())

    def test_second_start_is_noop(self):
        backend = FakeBackend()
        coordinator = PollingCoordinator(client=backend, interval_seconds=10.0)

        async def scenario():
            await coordinator.start()
            await coordinator.start()
            await asyncio.sleep(0.05)
            await coordinator.stop()

        asyncio.run(scenario())

        assert backend.calls["logs"] == 1

    def test_polling_survives_failing_ticks(self):
        backend = FakeBackend(logs=[BackendFetchError("logs", "down")])
        coordinator = PollingCoordinator(client=backend, interval_seconds=0.02)

        async def scenario():
            async with coordinator:
                await asyncio.sleep(0.12)
                assert coordinator.state is CoordinatorState.POLLING

        asyncio.run(scenario())

        assert backend.calls["logs"] >= 3
        assert coordinator.snapshot.logs_status.consecutive_failures >= 3
        assert coordinator.snapshot.alerts_status.loaded

    def test_supersede_cancels_pending_fetch(self):
        backend = FakeBackend(logs=[[raw_log()]], log_delays=[0.5])
        coordinator = PollingCoordinator(
            client=backend,
            interval_seconds=0.02,
            request_timeout=2.0,
            supersede_inflight=True,
        )

        async def scenario():
            async with coordinator:
                await asyncio.sleep(0.2)

        asyncio.run(scenario())

        assert backend.calls["logs"] >= 3
        assert not coordinator.snapshot.logs_status.loaded
        assert not coordinator.snapshot.logs_status.failed
        assert coordinator.snapshot.alerts_status.loaded

    def test_invalid_interval(self):
        with pytest.raises(ValueError):
            PollingCoordinator(client=FakeBackend(), interval_seconds=0)


class TestFromConfig:
    """Building a coordinator from configuration."""

    def test_owns_its_client(self):
        polling = PollingConfig(interval_seconds=3.0, supersede_inflight=True)
        backend = BackendConfig(url="http://siem.local:8080/", alerts_path="/alerts/v2")

        coordinator = PollingCoordinator.from_config(polling, backend)

        assert isinstance(coordinator.client, BackendClient)
        assert coordinator.client.base_url == "http://siem.local:8080"
        assert coordinator.client.alerts_path == "/alerts/v2"
        assert coordinator.interval_seconds == 3.0
        assert coordinator.request_timeout == 3.0
        assert coordinator.supersede_inflight

        asyncio.run(coordinator.stop())
        assert coordinator.client.client.is_closed
