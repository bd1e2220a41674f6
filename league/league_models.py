"""Pydantic models for the league document.

The whole league lives in one JSON document (``data/league-state.json``)
whose keys are camelCase because the web client reads it directly.  Every
record is coerced once, here, when the document is validated: malformed
numbers become ``0``, missing strings become ``""`` and unknown keys are
carried through untouched so the client can keep fields we do not model.
Record ids keep the JSON type the client sent.  League log entries other
than ``faSigned`` are left as the client wrote them.
"""

from __future__ import annotations

import logging
import math
import uuid
from typing import Any, Dict, List, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SerializerFunctionWrapHandler,
    ValidationInfo,
    field_validator,
    model_serializer,
)
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)

Number = Union[int, float]
RecordId = Union[int, str]

POSITIONS = ("F", "D")
DEFAULT_POSITION = "F"
FA_SIGNED = "faSigned"


# ---------------------------------------------------------------------------
# Coercion helpers
# ---------------------------------------------------------------------------

def coerce_number(value: Any) -> Number:
    """Best-effort numeric coercion; anything unusable becomes 0."""

    if isinstance(value, bool) or value is None:
        return 0

    if isinstance(value, (int, float)):
        num = value
    elif isinstance(value, str):
        try:
            num = float(value.strip())
        except ValueError:
            return 0
    else:
        return 0

    if isinstance(num, float):
        if math.isnan(num) or math.isinf(num):
            return 0
        if num.is_integer():
            return int(num)
    return num


def coerce_str(value: Any) -> str:
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    return ""


def coerce_position(value: Any) -> str:
    pos = coerce_str(value).strip().upper()
    return pos if pos in POSITIONS else DEFAULT_POSITION


def _coerce_records(value: Any, label: str) -> List[dict]:
    """Keep only dict records; drop anything else with a warning."""

    if not isinstance(value, list):
        if value is not None:
            logger.warning("Expected a list for %s, got %s; using []", label, type(value).__name__)
        return []

    records = []
    for item in value:
        if isinstance(item, BaseModel):
            records.append(item)
        elif isinstance(item, dict):
            records.append(item)
        else:
            logger.warning("Dropping malformed %s record: %r", label, item)
    return records


def _new_bid_id() -> str:
    return uuid.uuid4().hex


def coerce_id(value: Any) -> Optional[RecordId]:
    """Keep client ids in the type they were sent in.

    Integers stay integers (integral floats become ints) and non-blank
    strings are kept as sent.  Anything else yields ``None``.
    """

    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return int(value)
        return str(value)
    if isinstance(value, str):
        return value if value.strip() else None
    return None


class LeagueModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

class RosterEntry(LeagueModel):
    name: str = ""
    salary: Number = 0
    position: str = DEFAULT_POSITION
    buyout_locked_until: Number = 0

    @field_validator("name", mode="before")
    @classmethod
    def _name(cls, v: Any) -> str:
        return coerce_str(v)

    @field_validator("salary", "buyout_locked_until", mode="before")
    @classmethod
    def _numbers(cls, v: Any) -> Number:
        return coerce_number(v)

    @field_validator("position", mode="before")
    @classmethod
    def _position(cls, v: Any) -> str:
        return coerce_position(v)


class Team(LeagueModel):
    name: str = ""
    roster: List[RosterEntry] = Field(default_factory=list)
    buyouts: List[Any] = Field(default_factory=list)

    @field_validator("name", mode="before")
    @classmethod
    def _name(cls, v: Any) -> str:
        return coerce_str(v)

    @field_validator("roster", mode="before")
    @classmethod
    def _roster(cls, v: Any) -> List[dict]:
        return _coerce_records(v, "roster entry")

    @field_validator("buyouts", mode="before")
    @classmethod
    def _buyouts(cls, v: Any) -> List[Any]:
        return v if isinstance(v, list) else []


class Bid(LeagueModel):
    id: RecordId = Field(default_factory=_new_bid_id)
    player: str = ""
    team: str = ""
    amount: Number = 0
    position: str = DEFAULT_POSITION
    timestamp: Number = 0
    resolved: bool = False
    auction_key: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def _id(cls, v: Any) -> RecordId:
        bid_id = coerce_id(v)
        return _new_bid_id() if bid_id is None else bid_id

    @field_validator("player", "team", mode="before")
    @classmethod
    def _strings(cls, v: Any) -> str:
        return coerce_str(v)

    @field_validator("amount", "timestamp", mode="before")
    @classmethod
    def _numbers(cls, v: Any) -> Number:
        return coerce_number(v)

    @field_validator("position", mode="before")
    @classmethod
    def _position(cls, v: Any) -> str:
        return coerce_position(v)

    @field_validator("resolved", mode="before")
    @classmethod
    def _resolved(cls, v: Any) -> bool:
        if isinstance(v, str):
            return v.strip().lower() in {"true", "1", "yes"}
        return bool(v)

    @field_validator("auction_key", mode="before")
    @classmethod
    def _auction_key(cls, v: Any) -> Optional[str]:
        key = coerce_str(v).strip()
        return key or None

    def grouping_key(self) -> str:
        """Auction this bid belongs to: explicit key, else normalized player name."""
        if self.auction_key:
            return self.auction_key
        return self.player.strip().lower()


class LogEntry(LeagueModel):
    """One league log record, newest first in ``LeagueState.league_log``.

    Only ``faSigned`` entries are written by this backend, and only those are
    normalized.  Every other entry belongs to the client: its values pass
    through as sent and fields it does not carry stay absent on dump.
    """

    type: str = ""
    id: RecordId = ""
    team: Any = ""
    player: Any = ""
    amount: Any = 0
    position: Any = DEFAULT_POSITION
    timestamp: Any = 0

    @field_validator("type", mode="before")
    @classmethod
    def _type(cls, v: Any) -> str:
        return coerce_str(v)

    @field_validator("id", mode="before")
    @classmethod
    def _id(cls, v: Any) -> RecordId:
        entry_id = coerce_id(v)
        return "" if entry_id is None else entry_id

    @field_validator("team", "player", mode="before")
    @classmethod
    def _strings(cls, v: Any, info: ValidationInfo) -> Any:
        return coerce_str(v) if _is_signing(info) else v

    @field_validator("amount", "timestamp", mode="before")
    @classmethod
    def _numbers(cls, v: Any, info: ValidationInfo) -> Any:
        return coerce_number(v) if _is_signing(info) else v

    @field_validator("position", mode="before")
    @classmethod
    def _position(cls, v: Any, info: ValidationInfo) -> Any:
        return coerce_position(v) if _is_signing(info) else v

    @model_serializer(mode="wrap")
    def _dump(self, handler: SerializerFunctionWrapHandler) -> Dict[str, Any]:
        data = handler(self)
        if self.type != FA_SIGNED:
            for name in _CLIENT_OPTIONAL_FIELDS:
                if name not in self.model_fields_set:
                    data.pop(name, None)
        return data


_CLIENT_OPTIONAL_FIELDS = ("id", "team", "player", "amount", "position", "timestamp")


def _is_signing(info: ValidationInfo) -> bool:
    return info.data.get("type") == FA_SIGNED


# ---------------------------------------------------------------------------
# Root document
# ---------------------------------------------------------------------------

MARKER_FIELDS = ("last_auto_weekly_snapshot_id", "last_auto_auction_rollover_id")


class LeagueState(LeagueModel):
    teams: List[Team] = Field(default_factory=list)
    free_agents: List[Bid] = Field(default_factory=list)
    league_log: List[LogEntry] = Field(default_factory=list)
    trade_proposals: List[Any] = Field(default_factory=list)
    trade_block: List[Any] = Field(default_factory=list)
    settings: Dict[str, Any] = Field(default_factory=lambda: {"frozen": False})
    next_auction_deadline: Optional[Any] = None
    last_auto_weekly_snapshot_id: Optional[str] = None
    last_auto_auction_rollover_id: Optional[str] = None

    @field_validator("teams", mode="before")
    @classmethod
    def _teams(cls, v: Any) -> List[dict]:
        return _coerce_records(v, "team")

    @field_validator("free_agents", mode="before")
    @classmethod
    def _free_agents(cls, v: Any) -> List[dict]:
        return _coerce_records(v, "bid")

    @field_validator("league_log", mode="before")
    @classmethod
    def _league_log(cls, v: Any) -> List[dict]:
        return _coerce_records(v, "log entry")

    @field_validator("trade_proposals", "trade_block", mode="before")
    @classmethod
    def _opaque_lists(cls, v: Any) -> List[Any]:
        return v if isinstance(v, list) else []

    @field_validator("settings", mode="before")
    @classmethod
    def _settings(cls, v: Any) -> Dict[str, Any]:
        settings = dict(v) if isinstance(v, dict) else {}
        settings["frozen"] = bool(settings.get("frozen", False))
        return settings

    @field_validator(*MARKER_FIELDS, mode="before")
    @classmethod
    def _markers(cls, v: Any) -> Optional[str]:
        return coerce_str(v) or None

    def to_document(self) -> Dict[str, Any]:
        """JSON-ready camelCase dict, the on-disk and on-wire shape."""
        return self.model_dump(by_alias=True, mode="json")

    def find_team(self, name: str) -> Optional[Team]:
        for team in self.teams:
            if team.name == name:
                return team
        return None


def empty_state() -> LeagueState:
    return LeagueState()


def roster_sort_key(entry: RosterEntry):
    """F before D, then salary descending, then name ascending."""
    return (POSITIONS.index(entry.position) if entry.position in POSITIONS else 0, -entry.salary, entry.name)


__all__ = [
    "Bid",
    "FA_SIGNED",
    "LeagueState",
    "LogEntry",
    "MARKER_FIELDS",
    "RosterEntry",
    "Team",
    "coerce_id",
    "coerce_number",
    "coerce_str",
    "empty_state",
    "roster_sort_key",
]
