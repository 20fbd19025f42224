"""Error taxonomy for provider calls and the snapshot cache.

Weather failures propagate to the caller; astronomy and satellite failures are
absorbed by the orchestrator; cache corruption is logged and treated as an
empty cache.
"""

from __future__ import annotations


class AstroViewError(Exception):
    """Base class for errors raised by the viewing-conditions service."""

    def __init__(self, message: str, *, provider: str | None = None) -> None:
        super().__init__(message)
        self.provider = provider


class ProviderFailure(AstroViewError):
    """A data provider could not produce a result."""


class NetworkFailure(ProviderFailure):
    """Transport-level failure: unreachable host, timeout, non-2xx status."""


class DecodeFailure(ProviderFailure):
    """The provider answered, but the payload did not match the expected schema."""


class CacheCorruption(AstroViewError):
    """A persisted snapshot could not be decoded."""
