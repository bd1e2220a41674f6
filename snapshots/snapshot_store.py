from __future__ import annotations

import json
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

from league.league_models import LeagueState
from league.league_store import write_json_atomic

logger = logging.getLogger(__name__)

DEFAULT_SNAPSHOT_DIR = "data/snapshots"
LABEL_MAX = 40

_SNAPSHOT_ID_RE = re.compile(r"^[A-Za-z0-9_\-]+$")
_LABEL_STRIP_RE = re.compile(r"[^a-z0-9\-_ ]+")


class SnapshotError(Exception):
    pass


class SnapshotNotFoundError(SnapshotError):
    pass


class SnapshotExistsError(SnapshotError):
    pass


class InvalidSnapshotIdError(SnapshotError):
    pass


def sanitize_label(label: Optional[str]) -> str:
    """Lowercase, keep ``[a-z0-9-_ ]``, spaces → hyphens, max 40 chars."""

    raw = str(label or "").strip().lower()
    raw = _LABEL_STRIP_RE.sub("", raw)
    return raw.replace(" ", "-")[:LABEL_MAX]


def generate_snapshot_id(label: Optional[str] = None, now: Optional[datetime] = None) -> str:
    """Sortable UTC stamp plus an optional sanitized label, e.g. ``20261019-153012-pre-trade``."""

    now = now or datetime.now(timezone.utc)
    stamp = now.astimezone(timezone.utc).strftime("%Y%m%d-%H%M%S")
    clean = sanitize_label(label)
    return f"{stamp}-{clean}" if clean else stamp


class SnapshotStore:
    """Point-in-time copies of the league document, one JSON file per id."""

    def __init__(self, snapshot_dir: str | Path = DEFAULT_SNAPSHOT_DIR) -> None:
        self.snapshot_dir = Path(snapshot_dir)

    def _path_for(self, snapshot_id: str) -> Path:
        if not snapshot_id or not _SNAPSHOT_ID_RE.match(snapshot_id):
            raise InvalidSnapshotIdError(f"Invalid snapshot id: {snapshot_id!r}")
        return self.snapshot_dir / f"{snapshot_id}.json"

    def exists(self, snapshot_id: str) -> bool:
        return self._path_for(snapshot_id).exists()

    def write_snapshot(self, snapshot_id: str, state: LeagueState) -> str:
        write_json_atomic(self._path_for(snapshot_id), state.to_document())
        return snapshot_id

    def read_snapshot(self, snapshot_id: str) -> LeagueState:
        path = self._path_for(snapshot_id)
        if not path.exists():
            raise SnapshotNotFoundError(f"Snapshot not found: {snapshot_id}")

        with path.open("r", encoding="utf-8") as f:
            raw = json.load(f)
        if not isinstance(raw, dict):
            raise SnapshotError(f"Snapshot {snapshot_id} is not a league document")
        return LeagueState.model_validate(raw)

    def create_snapshot(
        self,
        state: LeagueState,
        explicit_id: Optional[str] = None,
        *,
        label: Optional[str] = None,
        if_exists: str = "error",
        now: Optional[datetime] = None,
    ) -> str:
        """Write *state* under *explicit_id* (auto path) or a generated id.

        Snapshots are immutable.  On an id collision ``if_exists="error"``
        raises ``SnapshotExistsError``; ``if_exists="keep"`` leaves the
        existing file alone and returns its id.
        """

        snapshot_id = explicit_id or generate_snapshot_id(label, now=now)

        if self.exists(snapshot_id):
            if if_exists == "keep":
                logger.info("Snapshot %s already exists; keeping it", snapshot_id)
                return snapshot_id
            raise SnapshotExistsError(f"Snapshot already exists: {snapshot_id}")

        self.write_snapshot(snapshot_id, state)
        logger.info("📸 Wrote snapshot %s", snapshot_id)
        return snapshot_id

    def list_snapshots(self) -> List[Dict[str, object]]:
        """``[{"id", "createdAt"}]`` newest first; createdAt is mtime in ms."""

        if not self.snapshot_dir.exists():
            return []

        snapshots = []
        for path in self.snapshot_dir.glob("*.json"):
            try:
                created_at = int(path.stat().st_mtime * 1000)
            except OSError as exc:
                logger.warning("Skipping unreadable snapshot %s: %s", path, exc)
                continue
            snapshots.append({"id": path.stem, "createdAt": created_at})

        return sorted(snapshots, key=lambda s: (s["createdAt"], s["id"]), reverse=True)


__all__ = [
    "DEFAULT_SNAPSHOT_DIR",
    "InvalidSnapshotIdError",
    "SnapshotError",
    "SnapshotExistsError",
    "SnapshotNotFoundError",
    "SnapshotStore",
    "generate_snapshot_id",
    "sanitize_label",
]
