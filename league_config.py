"""Runtime configuration for the league backend.

Values come from the environment (optionally a ``.env`` file).  Anything
missing or unparseable falls back to the defaults below.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r; using %s", name, raw, default)
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class LeagueSettings:
    state_path: str = "data/league-state.json"
    snapshot_dir: str = "data/snapshots"
    timezone: str = "America/Los_Angeles"
    # Both weekly jobs share one window: Sunday 4:00-4:10pm league time
    job_weekday: int = 6
    job_hour: int = 16
    job_window_minutes: int = 10
    tick_seconds: int = 60
    scheduler_enabled: bool = True
    log_level: str = "INFO"
    port: int = 4000
    discord_webhook_url: Optional[str] = None

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "LeagueSettings":
        if dotenv:
            load_dotenv()

        defaults = cls()
        return cls(
            state_path=os.getenv("LEAGUE_STATE_PATH", defaults.state_path),
            snapshot_dir=os.getenv("LEAGUE_SNAPSHOT_DIR", defaults.snapshot_dir),
            timezone=os.getenv("LEAGUE_TIMEZONE", defaults.timezone),
            job_weekday=_env_int("AUTO_JOB_WEEKDAY", defaults.job_weekday),
            job_hour=_env_int("AUTO_JOB_HOUR", defaults.job_hour),
            job_window_minutes=_env_int("AUTO_JOB_WINDOW_MINUTES", defaults.job_window_minutes),
            tick_seconds=_env_int("SCHEDULER_TICK_SECONDS", defaults.tick_seconds),
            scheduler_enabled=_env_bool("SCHEDULER_ENABLED", defaults.scheduler_enabled),
            log_level=os.getenv("LOG_LEVEL", defaults.log_level),
            port=_env_int("PORT", defaults.port),
            discord_webhook_url=os.getenv("DISCORD_WEBHOOK_URL") or None,
        )
