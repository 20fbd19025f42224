"""Staleness-aware cache owning the single "last known" viewing-conditions snapshot."""
from __future__ import annotations

import datetime as dt
import threading
from enum import Enum
from typing import Any, Callable, Optional

import redis

from astroview.config import Settings, settings as default_settings
from astroview.conditions_service import build_snapshot
from astroview.errors import CacheCorruption
from astroview.models import COORDINATE_MATCH_DECIMALS, Location, ViewingConditions
from astroview.providers import ProviderSet, build_providers
from astroview.snapshot_store import InMemorySnapshotStore, RedisSnapshotStore, SnapshotStore
from utils.logging_utils import get_tagged_logger, mask_url_secrets

logger = get_tagged_logger(__name__, tag="cache_manager")

DEFAULT_STALENESS_THRESHOLD_SECONDS = 21600


class CacheState(str, Enum):
    """Freshness of the in-memory slot."""
    EMPTY = "empty"
    FRESH = "fresh"
    STALE = "stale"


def build_snapshot_store(settings: Settings | None = None) -> SnapshotStore:
    """Pick the durable slot: Redis when configured and reachable, else in-memory."""
    settings = settings or default_settings
    if settings.cache_redis_url:
        masked = mask_url_secrets(settings.cache_redis_url)
        try:
            client = redis.Redis.from_url(settings.cache_redis_url)
            client.ping()
            logger.info("Using RedisSnapshotStore", extra={"redis_url": masked})
            return RedisSnapshotStore(client, prefix=settings.cache_key_prefix)
        except redis.RedisError as exc:
            logger.warning("Falling back to InMemorySnapshotStore (Redis unavailable)",
                           extra={"redis_url": masked, "error": str(exc)})
    return InMemorySnapshotStore()


def _utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class ConditionsCacheManager:
    """
    Owns one cache slot: the in-memory snapshot plus its persisted mirror.

    Callers should go through ``load_conditions_if_needed``. It restores the
    persisted snapshot, refreshes at most once when the slot is empty, stale
    or holds another location, and otherwise returns the cached value without
    touching any provider.

    A failed refresh leaves the previous snapshot in place and re-raises; the
    error is also kept in ``last_error`` so readers can show the last good
    value alongside an error indicator. Slot reads and writes are serialized
    by one lock; provider calls run outside it. Concurrent refreshes for the
    same location are the caller's to avoid.
    """

    def __init__(
        self,
        store: SnapshotStore,
        providers: ProviderSet | None = None,
        *,
        day_horizon: int = 3,
        staleness_threshold_seconds: int = DEFAULT_STALENESS_THRESHOLD_SECONDS,
        display_stale_seconds: int = 1800,
        clock: Callable[[], dt.datetime] = _utc_now,
    ) -> None:
        self.store = store
        self.providers = providers
        self.day_horizon = day_horizon
        self.staleness_threshold = dt.timedelta(seconds=staleness_threshold_seconds)
        self.display_stale_after = dt.timedelta(seconds=display_stale_seconds)
        self.clock = clock
        self._snapshot: Optional[ViewingConditions] = None
        self._last_error: Optional[Exception] = None
        self._lock = threading.RLock()

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "ConditionsCacheManager":
        """Wire a manager with the configured store and providers."""
        settings = settings or default_settings
        return cls(
            build_snapshot_store(settings),
            build_providers(settings),
            day_horizon=settings.forecast_days,
            staleness_threshold_seconds=settings.staleness_threshold_seconds,
            display_stale_seconds=settings.display_stale_seconds,
        )

    @property
    def snapshot(self) -> Optional[ViewingConditions]:
        with self._lock:
            return self._snapshot

    @property
    def last_error(self) -> Optional[Exception]:
        with self._lock:
            return self._last_error

    def state(self) -> CacheState:
        """EMPTY with no snapshot, FRESH while age < threshold, STALE after."""
        with self._lock:
            snapshot = self._snapshot
        if snapshot is None:
            return CacheState.EMPTY
        if snapshot.age(self.clock()) < self.staleness_threshold:
            return CacheState.FRESH
        return CacheState.STALE

    def is_stale_for_display(self) -> bool:
        """True when readers should show an "outdated data" hint (shorter than the refetch threshold)."""
        snapshot = self.snapshot
        if snapshot is None:
            return True
        return snapshot.age(self.clock()) > self.display_stale_after

    def _coordinates_match(self, location: Location) -> bool:
        """Compare persisted scalar coordinates with ``location``; unknown counts as a match."""
        try:
            coordinates = self.store.load_coordinates()
        except CacheCorruption as exc:
            logger.warning("Ignoring unreadable cached coordinates", extra={"error": str(exc)})
            return True
        if coordinates is None:
            return True
        latitude, longitude = coordinates
        return (
            round(latitude, COORDINATE_MATCH_DECIMALS) == round(location.latitude, COORDINATE_MATCH_DECIMALS)
            and round(longitude, COORDINATE_MATCH_DECIMALS) == round(location.longitude, COORDINATE_MATCH_DECIMALS)
        )

    def ensure_loaded(self, location: Location | Any) -> CacheState:
        """
        Restore the persisted snapshot into memory if the slot is empty.

        A persisted snapshot for different coordinates is left undecoded since
        it would be refetched anyway. Unreadable payloads count as EMPTY.
        """
        location = Location.snapshot_of(location)
        with self._lock:
            if self._snapshot is None and self._coordinates_match(location):
                try:
                    restored = self.store.load()
                except CacheCorruption as exc:
                    logger.warning("Discarding corrupt cached snapshot", extra={"error": str(exc)})
                    restored = None
                if restored is not None:
                    logger.debug("Restored cached snapshot", extra={"location": restored.location.name})
                    self._snapshot = restored
        return self.state()

    def _fresh_for(self, snapshot: Optional[ViewingConditions], location: Location) -> bool:
        """True when ``snapshot`` is younger than the threshold and describes ``location``."""
        if snapshot is None or snapshot.age(self.clock()) >= self.staleness_threshold:
            return False
        return snapshot.location.same_place(location)

    def needs_refresh(self, location: Location | Any) -> bool:
        """True when the slot is empty, stale, or holds a different location."""
        return not self._fresh_for(self.snapshot, Location.snapshot_of(location))

    def refresh(self, location: Location | Any) -> ViewingConditions:
        """
        Build a new snapshot unconditionally.

        On success the snapshot replaces the slot and is persisted, which
        restarts the freshness clock. On failure the slot is untouched, the
        error is kept in ``last_error`` and re-raised.
        """
        location = Location.snapshot_of(location)
        try:
            conditions = build_snapshot(
                location,
                self.day_horizon,
                providers=self.providers,
                now=self.clock(),
            )
        except Exception as exc:
            with self._lock:
                self._last_error = exc
            logger.warning("Refresh failed; keeping previous snapshot",
                           extra={"location": location.name, "error": str(exc)})
            raise

        with self._lock:
            self._snapshot = conditions
            self._last_error = None
            try:
                self.store.save(conditions)
            except Exception as exc:
                logger.error("Failed to persist snapshot: %s", exc)
        return conditions

    def load_conditions_if_needed(self, location: Location | Any) -> ViewingConditions:
        """Return a snapshot valid for ``location``, refreshing at most once."""
        location = Location.snapshot_of(location)
        self.ensure_loaded(location)
        # Decide on one read of the slot and return that same value.
        snapshot = self.snapshot
        if self._fresh_for(snapshot, location):
            logger.debug("Serving cached snapshot", extra={"location": location.name})
            return snapshot
        logger.info("Cache miss; refreshing", extra={"location": location.name, "state": self.state().value})
        return self.refresh(location)

    def clear(self) -> None:
        """Drop the in-memory snapshot and the persisted copy."""
        with self._lock:
            self._snapshot = None
            self._last_error = None
            self.store.clear()

    def close(self) -> None:
        """Release the in-memory slot; the persisted copy survives for the next process."""
        with self._lock:
            self._snapshot = None
            self._last_error = None
