"""Weekly background jobs: the Sunday snapshot and the auction rollover.

Each job is eligible during its weekly window (default Sunday 4:00-4:10pm
league time).  The scheduler ticks once at start-up and then every
``tick_seconds``; a job runs at most once per window because the id of the
last window it completed is persisted in the league document itself, not
held in memory.  A tick that finds the marker already equal to the current
window id does no writes at all.

A failed run is logged and leaves both the document and the marker as they
were, so the next tick inside the same window retries it.
"""

from __future__ import annotations

import enum
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from auction_manager import AuctionResult, resolve_auctions
from data_lock import DATA_LOCK
from league.league_models import LeagueState
from league.league_store import LeagueStore
from league_events import (
    REASON_AUTO_AUCTION_ROLLOVER,
    REASON_AUTO_WEEKLY_SNAPSHOT,
    EventBus,
    publish_league_updated,
)
from snapshots.snapshot_store import SnapshotStore
from weekly_window import (
    DEFAULT_START_HOUR,
    DEFAULT_WINDOW_MINUTES,
    PT,
    SUNDAY,
    TimeZoneLike,
    is_in_weekly_window,
    should_run,
    window_id,
)

logger = logging.getLogger(__name__)

WEEKLY_SNAPSHOT_PREFIX = "auto-weekly"
AUCTION_ROLLOVER_PREFIX = "auto-auction"


class JobOutcome(str, enum.Enum):
    """What a single tick did for one job."""

    NOT_DUE = "not_due"
    ALREADY_RAN = "already_ran"
    RAN = "ran"
    FAILED = "failed"


@dataclass
class JobRun:
    state: LeagueState
    publish: bool = True
    detail: Dict[str, Any] = field(default_factory=dict)


JobFn = Callable[[LeagueState, str, datetime], JobRun]


@dataclass(frozen=True)
class WeeklyJob:
    name: str
    prefix: str
    marker_field: str
    reason: str
    run: JobFn
    weekday: int = SUNDAY
    start_hour: int = DEFAULT_START_HOUR
    window_minutes: int = DEFAULT_WINDOW_MINUTES


def to_epoch_ms(now: datetime) -> int:
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return int(now.timestamp() * 1000)


class WeeklyScheduler:
    def __init__(
        self,
        store: LeagueStore,
        snapshots: SnapshotStore,
        *,
        tz: TimeZoneLike = PT,
        bus: Optional[EventBus] = None,
        tick_seconds: float = 60,
        weekday: int = SUNDAY,
        start_hour: int = DEFAULT_START_HOUR,
        window_minutes: int = DEFAULT_WINDOW_MINUTES,
        jobs: Optional[List[WeeklyJob]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.store = store
        self.snapshots = snapshots
        self.tz = tz
        self.bus = bus
        self.tick_seconds = tick_seconds
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        # Snapshot first so the Sunday archive holds the pre-rollover league
        self.jobs = jobs if jobs is not None else [
            WeeklyJob(
                name="weekly_snapshot",
                prefix=WEEKLY_SNAPSHOT_PREFIX,
                marker_field="last_auto_weekly_snapshot_id",
                reason=REASON_AUTO_WEEKLY_SNAPSHOT,
                run=self._run_weekly_snapshot,
                weekday=weekday,
                start_hour=start_hour,
                window_minutes=window_minutes,
            ),
            WeeklyJob(
                name="auction_rollover",
                prefix=AUCTION_ROLLOVER_PREFIX,
                marker_field="last_auto_auction_rollover_id",
                reason=REASON_AUTO_AUCTION_ROLLOVER,
                run=self._run_auction_rollover,
                weekday=weekday,
                start_hour=start_hour,
                window_minutes=window_minutes,
            ),
        ]

        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def tick(self, now: Optional[datetime] = None) -> Dict[str, JobOutcome]:
        now = now or self.clock()
        return {job.name: self.run_job(job, now) for job in self.jobs}

    def run_job(self, job: WeeklyJob, now: datetime) -> JobOutcome:
        if not is_in_weekly_window(now, self.tz, job.weekday, job.start_hour, job.window_minutes):
            return JobOutcome.NOT_DUE

        current_window = window_id(job.prefix, now, self.tz)

        try:
            with DATA_LOCK:
                state = self.store.load_state(strict=True)
                if not should_run(getattr(state, job.marker_field), current_window):
                    return JobOutcome.ALREADY_RAN

                logger.info("▶️ Running %s for %s", job.name, current_window)
                run = job.run(state, current_window, now)
                next_state = run.state.model_copy(update={job.marker_field: current_window})
                self.store.save_state(next_state)
        except Exception:
            logger.exception("❌ %s failed for %s; will retry next tick", job.name, current_window)
            return JobOutcome.FAILED

        logger.info("✅ %s completed for %s", job.name, current_window)
        if run.publish:
            publish_league_updated(job.reason, target=self.bus, windowId=current_window, **run.detail)
        return JobOutcome.RAN

    # ------------------------------------------------------------------
    # Jobs
    # ------------------------------------------------------------------

    def _run_weekly_snapshot(self, state: LeagueState, current_window: str, now: datetime) -> JobRun:
        snapshot_id = self.snapshots.create_snapshot(state, current_window, if_exists="keep")
        return JobRun(state=state, detail={"snapshotId": snapshot_id})

    def _run_auction_rollover(self, state: LeagueState, current_window: str, now: datetime) -> JobRun:
        result = resolve_auctions(state, to_epoch_ms(now))
        return JobRun(
            state=result.apply_to(state),
            # Nothing pending: advance the marker quietly
            publish=result.changed,
            detail=_rollover_detail(result),
        )

    def resolve_now(self, now: Optional[datetime] = None) -> AuctionResult:
        """Resolve pending auctions immediately, outside any weekly window.

        Used by the manual rollover script; scheduler markers are untouched.
        """

        now = now or self.clock()
        with DATA_LOCK:
            state = self.store.load_state(strict=True)
            result = resolve_auctions(state, to_epoch_ms(now))
            if result.changed:
                self.store.save_state(result.apply_to(state))

        if result.changed:
            publish_league_updated(
                REASON_AUTO_AUCTION_ROLLOVER, target=self.bus, manual=True, **_rollover_detail(result)
            )
        return result

    # ------------------------------------------------------------------
    # Background thread
    # ------------------------------------------------------------------

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, daemon=True, name="weekly-scheduler")
        self._thread.start()
        logger.info("Weekly scheduler started (tick every %ss)", self.tick_seconds)

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        self._stop.set()
        if self._thread:
            self._thread.join(timeout)
            self._thread = None
        logger.info("Weekly scheduler stopped")

    def _loop(self) -> None:
        # Immediate check at start-up, then every tick_seconds
        while not self._stop.is_set():
            try:
                self.tick()
            except Exception:
                logger.exception("⚠️ Scheduler tick failed")
            self._stop.wait(self.tick_seconds)


def _rollover_detail(result: AuctionResult) -> Dict[str, Any]:
    return {
        "signings": [e.model_dump(by_alias=True, mode="json") for e in result.new_log_entries],
    }


__all__ = [
    "AUCTION_ROLLOVER_PREFIX",
    "JobOutcome",
    "JobRun",
    "WEEKLY_SNAPSHOT_PREFIX",
    "WeeklyJob",
    "WeeklyScheduler",
    "to_epoch_ms",
]
