"""Shared protocol and JSON codec for snapshot storage backends."""

from typing import Optional, Protocol, Tuple

from pydantic import ValidationError

from astroview.errors import CacheCorruption
from astroview.models import ViewingConditions

Coordinates = Tuple[float, float]


def encode_snapshot(conditions: ViewingConditions) -> bytes:
    """Serialize a full snapshot, location included, to UTF-8 JSON."""
    return conditions.model_dump_json().encode("utf-8")


def decode_snapshot(raw: bytes | str) -> ViewingConditions:
    """Deserialize a snapshot, raising CacheCorruption on any unreadable payload."""
    try:
        return ViewingConditions.model_validate_json(raw)
    except (ValidationError, ValueError, UnicodeDecodeError) as exc:
        raise CacheCorruption(f"Stored snapshot could not be decoded: {exc}") from exc


class SnapshotStore(Protocol):
    """A single durable slot holding the most recent snapshot."""

    def save(self, conditions: ViewingConditions) -> None:
        """Overwrite the slot with ``conditions`` and its coordinates."""

    def load(self) -> Optional[ViewingConditions]:
        """Return the stored snapshot, None when empty; CacheCorruption if unreadable."""

    def load_coordinates(self) -> Optional[Coordinates]:
        """Return the stored (latitude, longitude) without decoding the snapshot."""

    def clear(self) -> None:
        """Empty the slot."""
