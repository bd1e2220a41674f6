from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic.alias_generators import to_camel

from data_lock import DATA_LOCK
from league.league_models import MARKER_FIELDS, LeagueState, empty_state

logger = logging.getLogger(__name__)

DEFAULT_STATE_PATH = "data/league-state.json"


class LeagueStoreError(Exception):
    pass


def write_json_atomic(path: Path, data: Any) -> None:
    """Write JSON to *path* so readers see either the old or the new file.

    The payload goes to a temp file in the same directory which then
    replaces the target; a crash mid-write leaves the previous document.
    """

    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
            f.write("\n")
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except OSError:
            pass
        raise


class LeagueStore:
    """Owns the canonical on-disk league document.

    ``load_state`` / ``save_state`` are whole-document reads and writes.
    Callers doing a read → mutate → write cycle must hold ``DATA_LOCK``;
    the compound helpers below take it themselves.
    """

    def __init__(self, path: str | Path = DEFAULT_STATE_PATH) -> None:
        self.path = Path(path)

    # ------------------------------------------------------------------
    # Whole-document IO
    # ------------------------------------------------------------------

    def load_state(self, strict: bool = False) -> LeagueState:
        """Load the league document.

        A missing file yields the empty state.  An unreadable one does too,
        unless *strict* is set, in which case ``LeagueStoreError`` is raised
        so a writer does not replace the damaged file with an empty league.
        """

        if not self.path.exists():
            logger.warning("%s not found, using empty state", self.path)
            return empty_state()

        try:
            with self.path.open("r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            if strict:
                raise LeagueStoreError(f"Failed to read {self.path}: {exc}") from exc
            logger.error("Failed to read %s: %s", self.path, exc)
            return empty_state()

        if not isinstance(raw, dict):
            if strict:
                raise LeagueStoreError(f"{self.path} does not hold a JSON object")
            logger.error("%s does not hold a JSON object, using empty state", self.path)
            return empty_state()

        return LeagueState.model_validate(raw)

    def save_state(self, state: LeagueState) -> None:
        write_json_atomic(self.path, state.to_document())

    # ------------------------------------------------------------------
    # Compound operations (take DATA_LOCK)
    # ------------------------------------------------------------------

    def save_from_client(self, payload: Optional[Dict[str, Any]]) -> LeagueState:
        """Persist a client-submitted document.

        Scheduler progress markers always come from the prior persisted
        state; whatever the client sent for them is ignored.  If the live file
        cannot be read its markers are unknown, so ``LeagueStoreError`` is
        raised and nothing is written.
        """

        body = dict(payload) if isinstance(payload, dict) else {}
        for field in MARKER_FIELDS:
            body.pop(field, None)
            body.pop(to_camel(field), None)

        with DATA_LOCK:
            prior = self.load_state(strict=True)
            state = LeagueState.model_validate(body)
            state = _with_markers_from(state, prior)
            self.save_state(state)

        logger.info(
            "Saved league (%d teams, %d open bids)", len(state.teams), len(state.free_agents)
        )
        return state

    def restore_from_snapshot(self, snapshot_state: LeagueState) -> LeagueState:
        """Replace the live document with *snapshot_state*, keeping live markers.

        A restore must not make an already-fired weekly window eligible again,
        so an unreadable live file raises ``LeagueStoreError`` here too.
        """

        with DATA_LOCK:
            prior = self.load_state(strict=True)
            state = _with_markers_from(snapshot_state, prior)
            self.save_state(state)
        return state


def _with_markers_from(state: LeagueState, source: LeagueState) -> LeagueState:
    return state.model_copy(update={field: getattr(source, field) for field in MARKER_FIELDS})


__all__ = ["DEFAULT_STATE_PATH", "LeagueStore", "LeagueStoreError", "write_json_atomic"]
