"""Redis-backed snapshot slot."""

from typing import Optional

from astroview.errors import CacheCorruption
from astroview.models import ViewingConditions
from astroview.snapshot_store.base import Coordinates, SnapshotStore, decode_snapshot, encode_snapshot
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="snapshot_store/redis")


class RedisSnapshotStore(SnapshotStore):
    """
    Keeps the latest snapshot under three keys sharing ``prefix``.

    ``<prefix>snapshot`` holds the JSON blob; ``<prefix>latitude`` and
    ``<prefix>longitude`` hold the source coordinates as plain scalars so
    identity checks can skip decoding the blob. All three are written with
    one MSET and never expire; the next save overwrites them.
    """

    def __init__(self, client, prefix: str = "astroview:") -> None:
        """Initialize with a Redis client and key prefix."""
        logger.debug("Initializing RedisSnapshotStore")
        self.client = client
        self.prefix = prefix

    @property
    def snapshot_key(self) -> str:
        return f"{self.prefix}snapshot"

    @property
    def latitude_key(self) -> str:
        return f"{self.prefix}latitude"

    @property
    def longitude_key(self) -> str:
        return f"{self.prefix}longitude"

    def save(self, conditions: ViewingConditions) -> None:
        """Overwrite the slot; write errors propagate to the caller."""
        payload = encode_snapshot(conditions)
        self.client.mset(
            {
                self.snapshot_key: payload,
                self.latitude_key: repr(conditions.location.latitude),
                self.longitude_key: repr(conditions.location.longitude),
            }
        )

    def load(self) -> Optional[ViewingConditions]:
        """Return the stored snapshot, or None when the slot is empty or unreachable."""
        try:
            raw = self.client.get(self.snapshot_key)
        except Exception as exc:  # pragma: no cover - connection errors
            logger.error("Failed to read snapshot from Redis: %s", exc)
            return None
        if not raw:
            return None
        return decode_snapshot(raw)

    def load_coordinates(self) -> Optional[Coordinates]:
        """Return stored coordinates, or None when missing."""
        try:
            lat_raw, lon_raw = self.client.mget([self.latitude_key, self.longitude_key])
        except Exception as exc:  # pragma: no cover - connection errors
            logger.error("Failed to read snapshot coordinates from Redis: %s", exc)
            return None
        if lat_raw is None or lon_raw is None:
            return None
        try:
            return float(lat_raw), float(lon_raw)
        except (TypeError, ValueError) as exc:
            raise CacheCorruption(f"Stored coordinates are not numeric: {exc}") from exc

    def clear(self) -> None:
        """Delete all keys of the slot."""
        try:
            self.client.delete(self.snapshot_key, self.latitude_key, self.longitude_key)
        except Exception as exc:  # pragma: no cover - connection errors
            logger.error("Failed to clear snapshot from Redis: %s", exc)
