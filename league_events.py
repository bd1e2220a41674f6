"""In-process publish/subscribe for league change notifications.

Publishers (the HTTP save/restore endpoints, the weekly scheduler) call
``bus.publish(LEAGUE_UPDATED, {"reason": ...})``; subscribers (the websocket
fan-out, the Discord announcer) register callables.  Delivery is
fire-and-forget: a failing subscriber is logged and never breaks the
publisher.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

LEAGUE_UPDATED = "league:updated"

# Reasons carried in the LEAGUE_UPDATED payload
REASON_SAVE_LEAGUE = "saveLeague"
REASON_SNAPSHOT_CREATED = "snapshotCreated"
REASON_SNAPSHOT_RESTORED = "snapshotRestored"
REASON_AUTO_WEEKLY_SNAPSHOT = "autoWeeklySnapshot"
REASON_AUTO_AUCTION_ROLLOVER = "autoAuctionRollover"

Subscriber = Callable[[str, Dict[str, Any]], None]


class EventBus:
    def __init__(self) -> None:
        self._subscribers: List[Subscriber] = []
        self._lock = threading.Lock()

    def subscribe(self, fn: Subscriber) -> Subscriber:
        with self._lock:
            if fn not in self._subscribers:
                self._subscribers.append(fn)
        return fn

    def unsubscribe(self, fn: Subscriber) -> None:
        with self._lock:
            if fn in self._subscribers:
                self._subscribers.remove(fn)

    def __contains__(self, fn: object) -> bool:
        with self._lock:
            return fn in self._subscribers

    def publish(self, event: str, payload: Optional[Dict[str, Any]] = None) -> None:
        payload = dict(payload or {})
        with self._lock:
            subscribers = list(self._subscribers)

        for fn in subscribers:
            try:
                fn(event, payload)
            except Exception:
                logger.exception("⚠️ Subscriber %r failed for %s", fn, event)


bus = EventBus()


def publish_league_updated(reason: str, target: Optional[EventBus] = None, **extra: Any) -> None:
    (target or bus).publish(LEAGUE_UPDATED, {"reason": reason, **extra})
