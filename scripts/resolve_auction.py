#!/usr/bin/env python3
"""Resolve pending free-agent auctions from the command line.

Usage (from repo root):

    python scripts/resolve_auction.py          # resolve everything now
    python scripts/resolve_auction.py --tick   # run one scheduler tick

``--tick`` behaves exactly like the background scheduler: it only fires
inside the weekly window and respects the persisted markers.  The default
mode resolves immediately and leaves the markers alone.
"""

from __future__ import annotations

import argparse

from league.league_store import LeagueStore
from league_config import LeagueSettings
from logging_config import setup_logging
from snapshots.snapshot_store import SnapshotStore
from weekly_scheduler import WeeklyScheduler


def build_scheduler(settings: LeagueSettings) -> WeeklyScheduler:
    return WeeklyScheduler(
        LeagueStore(settings.state_path),
        SnapshotStore(settings.snapshot_dir),
        tz=settings.timezone,
        weekday=settings.job_weekday,
        start_hour=settings.job_hour,
        window_minutes=settings.job_window_minutes,
    )


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Resolve Hundo Leago free-agent auctions")
    parser.add_argument("--tick", action="store_true", help="run one scheduler tick instead")
    args = parser.parse_args(argv)

    settings = LeagueSettings.from_env()
    setup_logging(settings.log_level)
    scheduler = build_scheduler(settings)

    if args.tick:
        for job, outcome in scheduler.tick().items():
            print(f"{job}: {outcome.value}")
        return 0

    result = scheduler.resolve_now()
    if not result.changed:
        print("ℹ️  No pending bids; nothing to resolve")
        return 0

    print(f"✅ Resolved auctions, {len(result.new_log_entries)} signing(s):")
    for entry in result.new_log_entries:
        print(f"  {entry.player} ({entry.position}): {entry.team} for ${entry.amount}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
