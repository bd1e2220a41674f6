"""
League document models and the on-disk state store
"""

from .league_models import (
    Bid,
    LeagueState,
    LogEntry,
    RosterEntry,
    Team,
    empty_state,
)
from .league_store import LeagueStore, LeagueStoreError

__all__ = [
    "Bid",
    "LeagueState",
    "LeagueStore",
    "LeagueStoreError",
    "LogEntry",
    "RosterEntry",
    "Team",
    "empty_state",
]
