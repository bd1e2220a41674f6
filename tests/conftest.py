"""Shared fixtures for the league backend test suite."""

import json
from datetime import datetime

import pytest

from league.league_store import LeagueStore
from league_events import EventBus
from snapshots.snapshot_store import SnapshotStore
from weekly_window import PT


# ------------------------------------------------------------------
# Builders
# ------------------------------------------------------------------

def make_bid(bid_id, player, team, amount, timestamp=0, **extra):
    bid = {
        "id": bid_id,
        "player": player,
        "team": team,
        "amount": amount,
        "position": extra.pop("position", "F"),
        "timestamp": timestamp,
        "resolved": extra.pop("resolved", False),
    }
    bid.update(extra)
    return bid


def make_state_doc(teams=None, bids=None, log=None, **extra):
    doc = {
        "teams": teams if teams is not None else [
            {"name": "TeamA", "roster": [], "buyouts": []},
            {"name": "TeamB", "roster": [], "buyouts": []},
        ],
        "freeAgents": bids or [],
        "leagueLog": log or [],
        "tradeProposals": [],
        "tradeBlock": [],
        "settings": {"frozen": False},
        "nextAuctionDeadline": None,
    }
    doc.update(extra)
    return doc


def write_doc(store, doc):
    store.path.parent.mkdir(parents=True, exist_ok=True)
    store.path.write_text(json.dumps(doc), encoding="utf-8")


# Sunday 2026-10-18 is inside Pacific daylight time
SUNDAY_IN_WINDOW = datetime(2026, 10, 18, 16, 3, tzinfo=PT)


# ------------------------------------------------------------------
# Fixtures
# ------------------------------------------------------------------

@pytest.fixture
def store(tmp_path):
    return LeagueStore(tmp_path / "data" / "league-state.json")


@pytest.fixture
def snapshot_store(tmp_path):
    return SnapshotStore(tmp_path / "data" / "snapshots")


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def events(bus):
    """Every (event, payload) published on *bus*."""
    received = []
    bus.subscribe(lambda event, payload: received.append((event, payload)))
    return received
