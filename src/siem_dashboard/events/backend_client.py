"""
HTTP client for the SIEM backend's read endpoints.

The backend exposes two polled, read-only endpoints:

    GET /logs    -> {"logs": [{ts, host, level, msg}, ...]}
    GET /alerts  -> {"alerts": [{ts, host, severity, type, message}, ...]}

This client only fetches and unwraps the envelopes. Normalization of the
individual records happens in EventNormalizer.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from siem_dashboard.core.config import BackendConfig, get_config
from siem_dashboard.errors import BackendFetchError


logger = logging.getLogger(__name__)


class BackendClient:
    """
    Async client for the ``/logs`` and ``/alerts`` endpoints.

    Usage:
        async with BackendClient(base_url="http://localhost:8080") as client:
            raw_logs = await client.fetch_logs()
            raw_alerts = await client.fetch_alerts()
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: float = 2.0,
        logs_path: Optional[str] = None,
        alerts_path: Optional[str] = None,
        health_path: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize backend client.

        Args:
            base_url: Base URL of the backend (default: from config)
            timeout: HTTP request timeout in seconds
            logs_path: Path of the logs endpoint (default: from config)
            alerts_path: Path of the alerts endpoint (default: from config)
            health_path: Path of the health endpoint (default: from config)
            transport: Optional httpx transport (used to stub the backend)
        """
        if not (base_url and logs_path and alerts_path and health_path):
            backend = get_config().backend
            base_url = base_url or backend.url
            logs_path = logs_path or backend.logs_path
            alerts_path = alerts_path or backend.alerts_path
            health_path = health_path or backend.health_path

        self.base_url = base_url.rstrip("/")
        self.logs_path = logs_path
        self.alerts_path = alerts_path
        self.health_path = health_path
        self.timeout = timeout

        # Create async HTTP client (will be reused)
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=transport,
        )

    @classmethod
    def from_config(
        cls,
        config: BackendConfig,
        timeout: float = 2.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "BackendClient":
        """Build a client from a BackendConfig section."""
        return cls(
            base_url=config.url,
            timeout=timeout,
            logs_path=config.logs_path,
            alerts_path=config.alerts_path,
            health_path=config.health_path,
            transport=transport,
        )

    async def fetch_logs(self) -> List[Any]:
        """
        Fetch the raw log records.

        Returns:
            Raw records in backend order (empty if the envelope has none)

        Raises:
            BackendFetchError: On transport, HTTP status or decoding failure
        """
        return await self._fetch_stream("logs", self.logs_path)

    async def fetch_alerts(self) -> List[Any]:
        """
        Fetch the raw alert records.

        Returns:
            Raw records in backend order (empty if the envelope has none)

        Raises:
            BackendFetchError: On transport, HTTP status or decoding failure
        """
        return await self._fetch_stream("alerts", self.alerts_path)

    async def _fetch_stream(self, stream: str, path: str) -> List[Any]:
        try:
            response = await self.client.get(path)
        except httpx.TimeoutException as e:
            raise BackendFetchError(stream, f"request timed out: {e}") from e
        except httpx.HTTPError as e:
            raise BackendFetchError(stream, f"request failed: {e}") from e

        if response.status_code != 200:
            raise BackendFetchError(
                stream,
                f"unexpected status {response.status_code}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise BackendFetchError(stream, f"invalid JSON body: {e}") from e

        records = unwrap_envelope(stream, payload)
        logger.debug(f"Fetched {len(records)} {stream} record(s) from {self.base_url}{path}")
        return records

    async def health(self) -> Dict[str, Any]:
        """
        Query the backend health endpoint.

        Returns:
            Decoded health document (e.g. {"status": "healthy", ...})

        Raises:
            BackendFetchError: If the endpoint is unreachable or unhealthy
        """
        try:
            response = await self.client.get(self.health_path)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise BackendFetchError(
                "health", f"unexpected status {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise BackendFetchError("health", f"request failed: {e}") from e
        except ValueError as e:
            raise BackendFetchError("health", f"invalid JSON body: {e}") from e

        if not isinstance(data, dict):
            raise BackendFetchError("health", "response is not a JSON object")
        return data

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self):
        """Context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        await self.close()


def unwrap_envelope(stream: str, payload: Any) -> List[Any]:
    """
    Extract the record list from a ``{"<stream>": [...]}`` envelope.

    An absent or null field is an empty stream; anything else that is not a
    list is a decoding failure.

    Raises:
        BackendFetchError: If the payload is not a usable envelope
    """
    if not isinstance(payload, dict):
        raise BackendFetchError(stream, "response is not a JSON object")

    records = payload.get(stream)
    if records is None:
        return []
    if not isinstance(records, list):
        raise BackendFetchError(
            stream, f"field '{stream}' is {type(records).__name__}, expected list"
        )
    return records
