"""Snapshot storage backends."""

from .base import SnapshotStore, decode_snapshot, encode_snapshot
from .memory import InMemorySnapshotStore
from .redis import RedisSnapshotStore

__all__ = [
    "SnapshotStore",
    "decode_snapshot",
    "encode_snapshot",
    "InMemorySnapshotStore",
    "RedisSnapshotStore",
]
