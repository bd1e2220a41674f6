"""Auction settlement for the Hundo Leago free-agent auction.

This module centralizes the rules for resolving free-agent bids, so the
weekly scheduler and the manual rollover script share a single source of
truth.

Resolution works on an in-memory copy of the league state and returns a new
state; it never touches the store.  The rules:

- Bids are grouped into auctions by ``auctionKey`` when present, otherwise
  by the lowercased, trimmed player name.
- Highest amount wins; an amount tie goes to the earliest timestamp.
- Every bid in a resolved auction leaves the pool, winners and losers alike.
- The winner is signed at the bid amount with a 14-day buyout lock and the
  signing is logged as ``faSigned``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List

from league.league_models import (
    FA_SIGNED,
    Bid,
    LeagueState,
    LogEntry,
    Number,
    RosterEntry,
    Team,
    roster_sort_key,
)

logger = logging.getLogger(__name__)

# New signings cannot be bought out for two weeks
BUYOUT_LOCK_MS = 14 * 24 * 60 * 60 * 1000


@dataclass
class AuctionResult:
    next_teams: List[Team]
    next_free_agents: List[Bid]
    next_league_log: List[LogEntry]
    new_log_entries: List[LogEntry] = field(default_factory=list)
    changed: bool = False

    def apply_to(self, state: LeagueState) -> LeagueState:
        """Return a copy of *state* carrying this result."""
        if not self.changed:
            return state
        return state.model_copy(
            update={
                "teams": self.next_teams,
                "free_agents": self.next_free_agents,
                "league_log": self.next_league_log,
            }
        )


# ----------------------------------------------------------------------
# Public API
# ----------------------------------------------------------------------

def resolve_auctions(state: LeagueState, now_ms: Number) -> AuctionResult:
    """Resolve every pending auction in *state* as of *now_ms* (epoch ms)."""

    pending = [b for b in state.free_agents if not b.resolved]
    if not pending:
        return AuctionResult(
            next_teams=state.teams,
            next_free_agents=state.free_agents,
            next_league_log=state.league_log,
        )

    teams = [t.model_copy(deep=True) for t in state.teams]
    teams_by_name: Dict[str, Team] = {}
    for team in teams:
        # First team wins if names collide
        teams_by_name.setdefault(team.name, team)

    resolved_ids = set()
    touched: Dict[str, Team] = {}
    new_entries: List[LogEntry] = []

    for key, bids in group_bids(pending).items():
        resolved_ids.update(b.id for b in bids)
        winner = pick_winner(bids)

        team = teams_by_name.get(winner.team)
        if team is None:
            logger.debug("Auction %r won by unknown team %r; dropping", key, winner.team)
            continue

        team.roster.append(
            RosterEntry(
                name=winner.player.strip(),
                salary=winner.amount,
                position=winner.position,
                buyout_locked_until=now_ms + BUYOUT_LOCK_MS,
            )
        )
        touched[team.name] = team

        new_entries.append(
            LogEntry(
                type=FA_SIGNED,
                id=f"fa-{now_ms}-{winner.id}",
                team=team.name,
                player=winner.player.strip(),
                amount=winner.amount,
                position=winner.position,
                timestamp=now_ms,
            )
        )

    for team in touched.values():
        team.roster = sort_roster(team.roster)

    next_free_agents = [b for b in state.free_agents if b.id not in resolved_ids]

    if new_entries:
        logger.info(
            "Resolved %d auction(s): %s",
            len(new_entries),
            ", ".join(f"{e.player} → {e.team} (${e.amount})" for e in new_entries),
        )

    return AuctionResult(
        next_teams=teams,
        next_free_agents=next_free_agents,
        next_league_log=new_entries + list(state.league_log),
        new_log_entries=new_entries,
        changed=True,
    )


# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------

def group_bids(bids: List[Bid]) -> Dict[str, List[Bid]]:
    """Group bids into auctions, keeping first-seen order."""

    by_key: Dict[str, List[Bid]] = {}
    for b in bids:
        by_key.setdefault(b.grouping_key(), []).append(b)
    return by_key


def pick_winner(bids: List[Bid]) -> Bid:
    """Highest amount wins; ties go to the first submitted bid.

    ``sorted`` is stable, so bids equal on both amount and timestamp keep
    their pool order.
    """

    return sorted(bids, key=lambda b: (-b.amount, b.timestamp))[0]


def sort_roster(roster: List[RosterEntry]) -> List[RosterEntry]:
    return sorted(roster, key=roster_sort_key)


__all__ = [
    "AuctionResult",
    "BUYOUT_LOCK_MS",
    "group_bids",
    "pick_winner",
    "resolve_auctions",
    "sort_roster",
]
