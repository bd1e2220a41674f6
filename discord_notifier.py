"""Announce weekly auction results in Discord.

Subscribes to the league event bus and, after an auction rollover that
signed at least one player, posts a summary through a channel webhook
(``DISCORD_WEBHOOK_URL``).  Posting is best-effort and happens on a
background thread: failures are logged and never reach the scheduler.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, List, Optional

import discord
import requests

from league_events import LEAGUE_UPDATED, REASON_AUTO_AUCTION_ROLLOVER, EventBus

logger = logging.getLogger(__name__)

DISCORD_MESSAGE_MAX = 2000
# (connect, read) seconds for every webhook request
WEBHOOK_TIMEOUT = (5, 15)


class _TimeoutSession(requests.Session):
    """requests.Session that applies a default timeout to every request.

    ``discord.SyncWebhook`` does not pass one, so a stalled endpoint would
    otherwise hang the posting thread forever.
    """

    def __init__(self, timeout=WEBHOOK_TIMEOUT) -> None:
        super().__init__()
        self.timeout = timeout

    def request(self, method, url, **kwargs):
        kwargs.setdefault("timeout", self.timeout)
        return super().request(method, url, **kwargs)


def format_auction_results(signings: List[Dict[str, Any]]) -> str:
    lines: List[str] = ["🏆 **Weekly Auction Results**", ""]

    for s in signings:
        lines.append(f"🧢 Player: {s.get('player', '?')} ({s.get('position', 'F')})")
        lines.append(f"🏷️ Team: {s.get('team', '?')}")
        lines.append(f"💰 Salary: ${s.get('amount', 0)}")
        lines.append("──────────────────────")

    msg = "\n".join(lines).rstrip()
    if len(msg) > DISCORD_MESSAGE_MAX:
        msg = msg[: DISCORD_MESSAGE_MAX - 1] + "…"
    return msg


class DiscordAuctionNotifier:
    def __init__(
        self,
        webhook_url: str,
        *,
        webhook_factory: Optional[Callable[[str], Any]] = None,
    ) -> None:
        self.webhook_url = webhook_url
        self._webhook_factory = webhook_factory or self._default_webhook
        self._webhook = None
        self._workers: List[threading.Thread] = []
        # Posts go out one at a time, in publish order
        self._post_lock = threading.Lock()

    @staticmethod
    def _default_webhook(url: str) -> discord.SyncWebhook:
        return discord.SyncWebhook.from_url(url, session=_TimeoutSession())

    def _get_webhook(self):
        if self._webhook is None:
            self._webhook = self._webhook_factory(self.webhook_url)
        return self._webhook

    def __call__(self, event: str, payload: Dict[str, Any]) -> None:
        if event != LEAGUE_UPDATED or payload.get("reason") != REASON_AUTO_AUCTION_ROLLOVER:
            return

        signings = payload.get("signings") or []
        if not signings:
            return

        self._post_async(format_auction_results(signings), len(signings))

    def _post_async(self, content: str, count: int) -> None:
        """Send *content* from a daemon thread so the publisher never waits on Discord."""

        def _worker():
            with self._post_lock:
                self._post(content, count)

        t = threading.Thread(target=_worker, daemon=True, name="discord-post")
        self._workers = [w for w in self._workers if w.is_alive()] + [t]
        t.start()

    def _post(self, content: str, count: int) -> None:
        try:
            self._get_webhook().send(content=content)
            logger.info("✅ Posted %d signing(s) to Discord", count)
        except (discord.DiscordException, requests.RequestException, ValueError) as exc:
            logger.warning("⚠️ Failed to post auction results to Discord: %s", exc)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Join in-flight posts; True when none are left running."""
        for t in list(self._workers):
            t.join(timeout)
        return not any(t.is_alive() for t in self._workers)


def install_discord_notifier(bus: EventBus, webhook_url: Optional[str]) -> Optional[DiscordAuctionNotifier]:
    """Subscribe a notifier when a webhook is configured."""

    if not webhook_url:
        return None
    notifier = DiscordAuctionNotifier(webhook_url)
    bus.subscribe(notifier)
    logger.info("Discord auction announcements enabled")
    return notifier
