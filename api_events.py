"""Websocket fan-out of league change notifications.

Clients connect to ``/ws`` and receive every ``league:updated`` event as
``{"event": "league:updated", "reason": ..., ...}``.  Events are published
from worker threads (HTTP handlers, the scheduler), so sends are scheduled
onto each socket's own event loop.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any, Dict, Tuple

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

logger = logging.getLogger(__name__)

router = APIRouter(tags=["events"])


class WebSocketHub:
    def __init__(self) -> None:
        # Keyed by id(): WebSocket objects are not hashable
        self._clients: Dict[int, Tuple[WebSocket, asyncio.AbstractEventLoop]] = {}
        self._lock = threading.Lock()

    def register(self, websocket: WebSocket, loop: asyncio.AbstractEventLoop) -> None:
        with self._lock:
            self._clients[id(websocket)] = (websocket, loop)

    def unregister(self, websocket: WebSocket) -> None:
        with self._lock:
            self._clients.pop(id(websocket), None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._clients)

    def __call__(self, event: str, payload: Dict[str, Any]) -> None:
        message = {"event": event, **payload}
        with self._lock:
            clients = list(self._clients.values())

        for websocket, loop in clients:
            self._schedule_send(websocket, loop, message)

    def _schedule_send(self, websocket: WebSocket, loop: asyncio.AbstractEventLoop, message: dict) -> None:
        if loop.is_closed():
            self.unregister(websocket)
            return

        fut = asyncio.run_coroutine_threadsafe(websocket.send_json(message), loop)

        def _done(f):
            try:
                f.result()
            except Exception as exc:
                logger.debug("Dropping websocket client after failed send: %s", exc)
                self.unregister(websocket)

        fut.add_done_callback(_done)


@router.websocket("/ws")
async def league_events_socket(websocket: WebSocket):
    hub: WebSocketHub = websocket.app.state.hub

    await websocket.accept()
    hub.register(websocket, asyncio.get_running_loop())
    logger.debug("Websocket client connected (%d total)", len(hub))
    try:
        while True:
            # Client messages are ignored; this just keeps the socket open
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        hub.unregister(websocket)
