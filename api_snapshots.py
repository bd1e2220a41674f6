from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from api_league import get_bus, get_store
from league.league_store import LeagueStore, LeagueStoreError
from league_events import (
    REASON_SNAPSHOT_CREATED,
    REASON_SNAPSHOT_RESTORED,
    EventBus,
    publish_league_updated,
)
from snapshots.snapshot_store import (
    InvalidSnapshotIdError,
    SnapshotError,
    SnapshotExistsError,
    SnapshotNotFoundError,
    SnapshotStore,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/snapshots", tags=["snapshots"])


def get_snapshots(request: Request) -> SnapshotStore:
    return request.app.state.snapshots


class SnapshotCreatePayload(BaseModel):
    name: Optional[str] = Field(default=None, max_length=200)


class SnapshotRestorePayload(BaseModel):
    id: Optional[str] = None


@router.get("")
def list_snapshots(snapshots: SnapshotStore = Depends(get_snapshots)):
    try:
        return {"snapshots": snapshots.list_snapshots()}
    except OSError as exc:
        logger.error("Error listing snapshots: %s", exc)
        return JSONResponse(
            status_code=500,
            content={"snapshots": [], "error": "Failed to load snapshots"},
        )


@router.post("")
def create_snapshot(
    payload: Optional[SnapshotCreatePayload] = None,
    store: LeagueStore = Depends(get_store),
    snapshots: SnapshotStore = Depends(get_snapshots),
    bus: EventBus = Depends(get_bus),
):
    name = payload.name if payload else None

    try:
        snapshot_id = snapshots.create_snapshot(store.load_state(strict=True), label=name)
    except SnapshotExistsError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except (LeagueStoreError, OSError) as exc:
        logger.error("Error creating snapshot: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to create snapshot")

    publish_league_updated(REASON_SNAPSHOT_CREATED, target=bus, snapshotId=snapshot_id)
    return {"ok": True, "id": snapshot_id}


@router.post("/restore")
def restore_snapshot(
    payload: Optional[SnapshotRestorePayload] = None,
    store: LeagueStore = Depends(get_store),
    snapshots: SnapshotStore = Depends(get_snapshots),
    bus: EventBus = Depends(get_bus),
):
    """Overwrite the live league with a snapshot's content (markers excepted)."""

    snapshot_id = (payload.id if payload else None) or ""
    snapshot_id = snapshot_id.strip()
    if not snapshot_id:
        raise HTTPException(status_code=400, detail="Missing snapshot id in body")

    try:
        state = snapshots.read_snapshot(snapshot_id)
    except InvalidSnapshotIdError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except SnapshotNotFoundError:
        raise HTTPException(status_code=404, detail="Snapshot not found")
    except (SnapshotError, ValueError, OSError) as exc:
        logger.error("Error reading snapshot %s: %s", snapshot_id, exc)
        raise HTTPException(status_code=500, detail="Failed to restore snapshot")

    try:
        store.restore_from_snapshot(state)
    except (LeagueStoreError, OSError) as exc:
        logger.error("Error restoring snapshot %s: %s", snapshot_id, exc)
        raise HTTPException(status_code=500, detail="Failed to restore snapshot")

    logger.info("Restored snapshot %s", snapshot_id)
    publish_league_updated(REASON_SNAPSHOT_RESTORED, target=bus, snapshotId=snapshot_id)
    return {"ok": True}
