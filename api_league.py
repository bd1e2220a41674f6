from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import JSONResponse

from league.league_store import LeagueStore
from league_events import REASON_SAVE_LEAGUE, EventBus, publish_league_updated

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/league", tags=["league"])


def get_store(request: Request) -> LeagueStore:
    return request.app.state.store


def get_bus(request: Request) -> EventBus:
    return request.app.state.bus


@router.get("")
def get_league(store: LeagueStore = Depends(get_store)):
    """Frontend uses this to LOAD the league on startup."""
    return store.load_state().to_document()


@router.post("")
def save_league(
    payload: Any = Body(default=None),
    store: LeagueStore = Depends(get_store),
    bus: EventBus = Depends(get_bus),
):
    """Frontend uses this to SAVE league changes (buyouts, trades, bids, etc.).

    The scheduler markers are never taken from the request body.
    """

    try:
        store.save_from_client(payload if isinstance(payload, dict) else {})
    except Exception as exc:
        logger.exception("Error writing league state: %s", exc)
        return JSONResponse(status_code=500, content={"ok": False, "error": "Failed to save state"})

    publish_league_updated(REASON_SAVE_LEAGUE, target=bus)
    return {"ok": True}
