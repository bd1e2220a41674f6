"""
Immutable point-in-time copies of the league document
"""

from .snapshot_store import (
    InvalidSnapshotIdError,
    SnapshotError,
    SnapshotExistsError,
    SnapshotNotFoundError,
    SnapshotStore,
    generate_snapshot_id,
    sanitize_label,
)

__all__ = [
    "InvalidSnapshotIdError",
    "SnapshotError",
    "SnapshotExistsError",
    "SnapshotNotFoundError",
    "SnapshotStore",
    "generate_snapshot_id",
    "sanitize_label",
]
