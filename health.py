"""HTTP entry point for the Hundo Leago backend.

Wires the state store, snapshot archive, event bus and weekly scheduler into
one FastAPI app.  Run with ``python health.py`` or
``uvicorn --factory health:create_app``.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

import league_events
from api_events import WebSocketHub
from api_events import router as events_router
from api_league import router as league_router
from api_snapshots import router as snapshots_router
from discord_notifier import install_discord_notifier
from league.league_store import LeagueStore
from league_config import LeagueSettings
from league_events import EventBus
from logging_config import setup_logging
from snapshots.snapshot_store import SnapshotStore
from weekly_scheduler import WeeklyScheduler

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[LeagueSettings] = None,
    *,
    start_scheduler: Optional[bool] = None,
    bus: Optional[EventBus] = None,
) -> FastAPI:
    settings = settings or LeagueSettings.from_env()
    bus = bus or league_events.bus
    if start_scheduler is None:
        start_scheduler = settings.scheduler_enabled

    store = LeagueStore(settings.state_path)
    snapshots = SnapshotStore(settings.snapshot_dir)
    # Make sure snapshot folder exists
    snapshots.snapshot_dir.mkdir(parents=True, exist_ok=True)

    scheduler = WeeklyScheduler(
        store,
        snapshots,
        tz=settings.timezone,
        bus=bus,
        tick_seconds=settings.tick_seconds,
        weekday=settings.job_weekday,
        start_hour=settings.job_hour,
        window_minutes=settings.job_window_minutes,
    )

    hub = WebSocketHub()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Subscribers live exactly as long as the app is serving
        bus.subscribe(hub)
        notifier = install_discord_notifier(bus, settings.discord_webhook_url)
        app.state.notifier = notifier
        if start_scheduler:
            scheduler.start()
        try:
            yield
        finally:
            if start_scheduler:
                scheduler.stop()
            bus.unsubscribe(hub)
            if notifier is not None:
                bus.unsubscribe(notifier)
            app.state.notifier = None

    app = FastAPI(title="Hundo Leago backend", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store
    app.state.snapshots = snapshots
    app.state.bus = bus
    app.state.hub = hub
    app.state.notifier = None
    app.state.scheduler = scheduler

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(HTTPException)
    async def _http_error(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"ok": False, "error": exc.detail})

    @app.get("/", response_class=PlainTextResponse)
    def health():
        """Simple root route – useful to see if backend is alive."""
        return "Hundo Leago backend is running."

    app.include_router(league_router)
    app.include_router(snapshots_router)
    app.include_router(events_router)

    return app


def run_server(app: FastAPI, port: int):
    config = uvicorn.Config(app, host="0.0.0.0", port=port)
    server = uvicorn.Server(config)
    return server.serve()


def main() -> None:
    settings = LeagueSettings.from_env()
    setup_logging(settings.log_level)
    app = create_app(settings)
    logger.info("Hundo Leago backend listening on port %s", settings.port)
    asyncio.run(run_server(app, settings.port))


if __name__ == "__main__":
    main()
