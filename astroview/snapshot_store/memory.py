"""In-memory snapshot slot, intended for development and tests."""

import threading
from typing import Optional

from astroview.models import ViewingConditions
from astroview.snapshot_store.base import Coordinates, SnapshotStore, decode_snapshot, encode_snapshot
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="snapshot_store/in_memory")


class InMemorySnapshotStore(SnapshotStore):
    """Thread-safe slot that keeps the encoded payload, like a durable backend would."""

    def __init__(self) -> None:
        logger.debug("Initializing InMemorySnapshotStore")
        self._payload: Optional[bytes] = None
        self._coordinates: Optional[Coordinates] = None
        self._lock = threading.Lock()

    def save(self, conditions: ViewingConditions) -> None:
        payload = encode_snapshot(conditions)
        with self._lock:
            self._payload = payload
            self._coordinates = (conditions.location.latitude, conditions.location.longitude)

    def load(self) -> Optional[ViewingConditions]:
        with self._lock:
            payload = self._payload
        if payload is None:
            return None
        return decode_snapshot(payload)

    def load_coordinates(self) -> Optional[Coordinates]:
        with self._lock:
            return self._coordinates

    def clear(self) -> None:
        with self._lock:
            self._payload = None
            self._coordinates = None
