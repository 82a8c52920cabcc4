"""
Polling coordinator for the logs and alerts streams.

Owns the refresh timer and the cached Snapshot. Every tick starts one fetch
per stream; the fetches are independent tasks, so a slow or failing stream
never holds back the other one. Results are applied in completion order.
"""

import asyncio
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Set

from siem_dashboard.core.config import BackendConfig, PollingConfig
from siem_dashboard.errors import BackendFetchError, CoordinatorStateError
from siem_dashboard.events.backend_client import BackendClient
from siem_dashboard.events.normalizer import EventNormalizer

from .snapshot import Snapshot, Stream

logger = logging.getLogger(__name__)


class CoordinatorState(str, Enum):
    """Lifecycle states of the polling coordinator."""

    IDLE = "idle"
    POLLING = "polling"
    STOPPED = "stopped"


class PollingCoordinator:
    """
    Periodically refreshes the logs and alerts snapshot.

    Usage:
        coordinator = PollingCoordinator(client=BackendClient())

        async with coordinator:
            ...
            snapshot = coordinator.snapshot

    The snapshot is only written here, on the event loop thread. Other
    components read ``coordinator.snapshot``, which is an immutable value.
    """

    def __init__(
        self,
        client: BackendClient,
        normalizer: Optional[EventNormalizer] = None,
        interval_seconds: float = 2.0,
        request_timeout: Optional[float] = None,
        supersede_inflight: bool = False,
        owns_client: bool = False,
    ):
        """
        Initialize the coordinator.

        Args:
            client: Backend client providing fetch_logs()/fetch_alerts()
            normalizer: Record normalizer (default: EventNormalizer())
            interval_seconds: Delay between ticks
            request_timeout: Per-fetch timeout (default: one interval)
            supersede_inflight: Cancel a stream's pending fetch when a new
                tick starts the next one
            owns_client: Close the client when the coordinator stops
        """
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")

        self.client = client
        self.normalizer = normalizer or EventNormalizer()
        self.interval_seconds = interval_seconds
        self.request_timeout = request_timeout or interval_seconds
        self.supersede_inflight = supersede_inflight
        self._owns_client = owns_client

        self._snapshot = Snapshot()
        self._state = CoordinatorState.IDLE
        self._timer: Optional[asyncio.Task] = None
        self._inflight: Dict[Stream, Set[asyncio.Task]] = {
            Stream.LOGS: set(),
            Stream.ALERTS: set(),
        }
        self._ticks = 0

    @classmethod
    def from_config(
        cls,
        polling: PollingConfig,
        backend: BackendConfig,
        **client_kwargs: Any,
    ) -> "PollingCoordinator":
        """
        Build a coordinator and its own BackendClient from config sections.

        Args:
            polling: Polling configuration
            backend: Backend connection configuration
            **client_kwargs: Extra arguments for BackendClient.from_config

        Returns:
            Configured coordinator that closes its client on stop
        """
        client = BackendClient.from_config(
            backend, timeout=polling.effective_timeout, **client_kwargs
        )
        return cls(
            client=client,
            interval_seconds=polling.interval_seconds,
            request_timeout=polling.effective_timeout,
            supersede_inflight=polling.supersede_inflight,
            owns_client=True,
        )

    @property
    def snapshot(self) -> Snapshot:
        """Latest published snapshot."""
        return self._snapshot

    @property
    def state(self) -> CoordinatorState:
        return self._state

    @property
    def has_loaded(self) -> bool:
        """Whether any stream has loaded at least once."""
        return self._snapshot.has_loaded

    @property
    def tick_count(self) -> int:
        return self._ticks

    async def start(self) -> None:
        """
        Start polling: fetch both streams now, then every interval.

        Raises:
            CoordinatorStateError: If the coordinator was already stopped
        """
        if self._state is CoordinatorState.POLLING:
            logger.warning("Polling coordinator already running")
            return
        if self._state is CoordinatorState.STOPPED:
            raise CoordinatorStateError("Polling coordinator cannot be restarted after stop")

        self._state = CoordinatorState.POLLING
        self._timer = asyncio.create_task(self._timer_loop())
        logger.info(
            f"Polling coordinator started (interval: {self.interval_seconds}s, "
            f"request timeout: {self.request_timeout}s)"
        )

    async def stop(self) -> None:
        """
        Stop polling. Idempotent.

        Cancels the timer and every in-flight fetch; once this returns no tick
        runs and no fetch result is applied. The last snapshot stays readable.
        """
        if self._state is CoordinatorState.STOPPED:
            return

        self._state = CoordinatorState.STOPPED

        tasks: List[asyncio.Task] = []
        if self._timer:
            tasks.append(self._timer)
        for pending in self._inflight.values():
            tasks.extend(pending)

        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        self._timer = None
        for pending in self._inflight.values():
            pending.clear()

        if self._owns_client:
            await self.client.close()

        logger.info(f"Polling coordinator stopped after {self._ticks} tick(s)")

    async def poll_once(self) -> Snapshot:
        """
        Refresh both streams once and wait for both to finish.

        Returns:
            The snapshot after both fetches were applied

        Raises:
            CoordinatorStateError: If the coordinator was stopped
        """
        if self._state is CoordinatorState.STOPPED:
            raise CoordinatorStateError("Polling coordinator is stopped")

        await asyncio.gather(
            self._refresh_stream(Stream.LOGS),
            self._refresh_stream(Stream.ALERTS),
        )
        return self._snapshot

    async def _timer_loop(self) -> None:
        """Tick immediately, then every interval, until stopped."""
        while self._state is CoordinatorState.POLLING:
            try:
                self._tick()
            except Exception as e:
                logger.error(f"Error in polling tick: {e}", exc_info=True)

            await asyncio.sleep(self.interval_seconds)

    def _tick(self) -> None:
        """Start one fetch task per stream without waiting for them."""
        self._ticks += 1
        logger.debug(f"Polling tick {self._ticks}")

        for stream in Stream:
            pending = self._inflight[stream]
            if self.supersede_inflight and pending:
                logger.debug(f"Superseding {len(pending)} pending {stream.value} fetch(es)")
                for task in list(pending):
                    task.cancel()

            task = asyncio.create_task(self._refresh_stream(stream))
            pending.add(task)
            task.add_done_callback(pending.discard)

    async def _refresh_stream(self, stream: Stream) -> bool:
        """
        Fetch and apply one stream.

        Never raises (except on cancellation): failures are recorded on the
        stream's status and the previous data is kept.

        Returns:
            True if the stream was replaced
        """
        fetch = self.client.fetch_logs if stream is Stream.LOGS else self.client.fetch_alerts

        try:
            records = await asyncio.wait_for(fetch(), timeout=self.request_timeout)
        except asyncio.TimeoutError:
            self._record_failure(stream, f"request timed out after {self.request_timeout}s")
            return False
        except BackendFetchError as e:
            self._record_failure(stream, str(e))
            return False
        except Exception as e:
            logger.error(f"Unexpected error fetching {stream.value}: {e}", exc_info=True)
            self._record_failure(stream, f"unexpected error: {e}")
            return False

        return self._apply(stream, records)

    def _apply(self, stream: Stream, records: List[Any]) -> bool:
        if self._state is CoordinatorState.STOPPED:
            logger.debug(f"Discarding {stream.value} result received after stop")
            return False

        now = datetime.now(timezone.utc)
        if stream is Stream.LOGS:
            batch = self.normalizer.normalize_logs(records)
            self._snapshot = self._snapshot.with_logs(batch.items, batch.dropped, now)
        else:
            batch = self.normalizer.normalize_alerts(records)
            self._snapshot = self._snapshot.with_alerts(batch.items, batch.dropped, now)

        logger.debug(
            f"Applied {len(batch)} {stream.value} record(s) "
            f"(snapshot v{self._snapshot.version})"
        )
        return True

    def _record_failure(self, stream: Stream, error: str) -> None:
        if self._state is CoordinatorState.STOPPED:
            return

        self._snapshot = self._snapshot.with_failure(stream, error)
        failures = self._snapshot.status(stream).consecutive_failures
        logger.warning(
            f"Failed to refresh {stream.value} ({failures} consecutive): {error}; "
            f"keeping previous data"
        )

    async def __aenter__(self):
        """Context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        await self.stop()
