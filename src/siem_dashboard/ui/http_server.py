"""
JSON API for the triage dashboard.

Publishes the triage views computed from the polling coordinator's latest
snapshot. The coordinator is started and stopped with the app.
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware

from siem_dashboard import __version__
from siem_dashboard.core.config import DisplayConfig, get_config
from siem_dashboard.events.models import LogFilter
from siem_dashboard.poller.coordinator import PollingCoordinator
from siem_dashboard.ui import views

logger = logging.getLogger(__name__)


def create_app(
    coordinator: Optional[PollingCoordinator] = None,
    display: Optional[DisplayConfig] = None,
    autostart: bool = True,
) -> FastAPI:
    """
    Create the API application.

    Args:
        coordinator: Polling coordinator to serve (default: built from config)
        display: Display caps (default: from config)
        autostart: Start polling when the app starts

    Returns:
        Configured FastAPI app
    """
    config = get_config()
    if coordinator is None:
        coordinator = PollingCoordinator.from_config(config.polling, config.backend)
    display = display or config.display

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if autostart:
            await coordinator.start()
        try:
            yield
        finally:
            await coordinator.stop()

    app = FastAPI(
        title="SIEM Dashboard API",
        description="Triaged view of the latest SIEM logs and alerts",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.coordinator = coordinator
    app.state.display = display

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    @app.get("/")
    async def root():
        """Root endpoint with API information."""
        return {
            "name": "SIEM Dashboard API",
            "version": __version__,
            "endpoints": {
                "summary": "/api/summary",
                "alerts": "/api/alerts",
                "logs": "/api/logs",
                "docs": "/docs",
            },
        }

    @app.get("/health")
    async def health_check(request: Request):
        """Health check endpoint."""
        coord: PollingCoordinator = request.app.state.coordinator
        return {
            "status": "healthy",
            "polling": coord.state.value,
            "loaded": coord.has_loaded,
        }

    @app.get("/api/summary")
    async def summary(request: Request):
        """Header counts: distinct hosts, logs and alerts."""
        return views.get_summary_view(request.app.state.coordinator.snapshot)

    @app.get("/api/alerts")
    async def alert_board(request: Request):
        """Triaged alert board with HIGH/MEDIUM display caps applied."""
        return views.get_alert_board_view(
            request.app.state.coordinator.snapshot,
            display=request.app.state.display,
        )

    @app.get("/api/logs")
    async def logs(
        request: Request,
        filter: LogFilter = Query(LogFilter.ALL, description="Level filter"),
    ):
        """Filtered log rows, capped after filtering."""
        return views.get_logs_view(
            request.app.state.coordinator.snapshot,
            log_filter=filter,
            display=request.app.state.display,
        )

    return app


def main():
    """Main entry point for the API server."""
    config = get_config()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    host = os.getenv("API_HOST", "0.0.0.0")
    port = int(os.getenv("API_PORT", "8000"))

    logger.info("=" * 60)
    logger.info("SIEM Dashboard - API Server")
    logger.info("=" * 60)
    logger.info(f"Backend: {config.backend.url}")
    logger.info(f"Poll interval: {config.polling.interval_seconds}s")
    logger.info(f"Listening on http://{host}:{port}")
    logger.info("=" * 60)

    uvicorn.run(create_app(), host=host, port=port)


if __name__ == "__main__":
    main()
