"""HTTP API exposing viewing-conditions snapshots read-only."""

import datetime as dt
import hmac
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from pydantic import BaseModel

from astroview.cache_manager import CacheState, ConditionsCacheManager
from astroview.config import settings
from astroview.day_window import DaySelection, current_hour_sample, fog_score_for_day, select_day
from astroview.errors import ProviderFailure
from astroview.models import FogScore, HourlyForecast, Location, MoonInfo, SunEvents, ViewingConditions
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="api")


def require_api_key(x_api_key: str | None = Header(default=None)):
    """Validate X-API-Key against the static api_key setting, if one is configured."""
    if not settings.api_key:
        logger.debug("No API key configured; allowing all requests")
        return
    if not x_api_key:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing API key")
    if not hmac.compare_digest(str(x_api_key), str(settings.api_key)):
        logger.debug("Invalid API key provided")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")


_manager: Optional[ConditionsCacheManager] = None


def get_cache_manager() -> ConditionsCacheManager:
    """Return the process-wide cache manager, creating it on first use."""
    global _manager
    if _manager is None:
        _manager = ConditionsCacheManager.from_settings(settings)
    return _manager


def shutdown_cache_manager() -> None:
    """Tear down the process-wide cache manager (application shutdown)."""
    global _manager
    if _manager is not None:
        _manager.close()
        _manager = None


router = APIRouter(dependencies=[Depends(require_api_key)])


class DayView(BaseModel):
    """One calendar day of a snapshot, as selected by ``day_offset``."""
    day_offset: int
    title: str
    hourly: list[HourlyForecast]
    current_hour: HourlyForecast | None = None
    fog_score: FogScore | None = None
    sun_events: SunEvents | None = None
    moon_info: MoonInfo | None = None
    astronomical_night_minutes: float | None = None


class ConditionsResponse(BaseModel):
    """Snapshot plus cache metadata. ``error`` is set when serving a last good value."""
    state: CacheState
    stale_for_display: bool
    error: str | None = None
    conditions: ViewingConditions
    day: DayView


def _day_title(day_offset: int, now: dt.datetime) -> str:
    if day_offset < len(DaySelection):
        return DaySelection(day_offset).title(now)
    day = now + dt.timedelta(days=day_offset)
    return f"{day:%b} {day.day}"


def _build_day_view(conditions: ViewingConditions, day_offset: int, now: dt.datetime) -> DayView:
    """Slice the snapshot down to the requested day."""
    tz = settings.timezone
    hours = conditions.hourly_forecasts
    current = current_hour_sample(hours, day_offset, now=now, tz=tz)
    sun_events = conditions.sun_events_for(day_offset)
    night = sun_events.astronomical_night_duration() if sun_events else None
    return DayView(
        day_offset=day_offset,
        title=_day_title(day_offset, now),
        hourly=select_day(hours, day_offset, now=now, tz=tz),
        current_hour=current,
        fog_score=fog_score_for_day(hours, day_offset, now=now, tz=tz),
        sun_events=sun_events,
        moon_info=conditions.moon_info_for(day_offset),
        astronomical_night_minutes=night.total_seconds() / 60 if night is not None else None,
    )


def _respond(
    manager: ConditionsCacheManager,
    conditions: ViewingConditions,
    day_offset: int,
    error: str | None = None,
) -> ConditionsResponse:
    now = manager.clock()
    return ConditionsResponse(
        state=manager.state(),
        stale_for_display=manager.is_stale_for_display(),
        error=error,
        conditions=conditions,
        day=_build_day_view(conditions, day_offset, now),
    )


def _last_good_or_502(manager: ConditionsCacheManager, location: Location, exc: ProviderFailure,
                      day_offset: int) -> ConditionsResponse:
    """Serve the previous snapshot for the same place with an error, or fail with 502."""
    previous = manager.snapshot
    if previous is None or not previous.location.same_place(location):
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Weather data unavailable: {exc}")
    logger.info("Serving last good snapshot after failed refresh", extra={"location": location.name})
    return _respond(manager, previous, day_offset, error=str(exc))


def _location(name: str, latitude: float, longitude: float, elevation: float | None) -> Location:
    return Location(name=name, latitude=latitude, longitude=longitude, elevation=elevation)


@router.get("/conditions", response_model=ConditionsResponse)
def get_conditions(
    name: str = Query(..., min_length=1),
    latitude: float = Query(..., ge=-90.0, le=90.0),
    longitude: float = Query(..., ge=-180.0, le=180.0),
    elevation: float | None = Query(default=None),
    day_offset: int = Query(default=0, ge=0),
    manager: ConditionsCacheManager = Depends(get_cache_manager),
):
    """Return conditions for a location, refetching only when the cache is not valid for it."""
    location = _location(name, latitude, longitude, elevation)
    try:
        conditions = manager.load_conditions_if_needed(location)
    except ProviderFailure as exc:
        return _last_good_or_502(manager, location, exc, day_offset)
    return _respond(manager, conditions, day_offset)


@router.post("/conditions/refresh", response_model=ConditionsResponse)
def refresh_conditions(
    name: str = Query(..., min_length=1),
    latitude: float = Query(..., ge=-90.0, le=90.0),
    longitude: float = Query(..., ge=-180.0, le=180.0),
    elevation: float | None = Query(default=None),
    day_offset: int = Query(default=0, ge=0),
    manager: ConditionsCacheManager = Depends(get_cache_manager),
):
    """Force a refetch regardless of cache freshness."""
    location = _location(name, latitude, longitude, elevation)
    try:
        conditions = manager.refresh(location)
    except ProviderFailure as exc:
        return _last_good_or_502(manager, location, exc, day_offset)
    return _respond(manager, conditions, day_offset)


@router.delete("/conditions/cache", status_code=status.HTTP_204_NO_CONTENT)
def clear_conditions_cache(manager: ConditionsCacheManager = Depends(get_cache_manager)):
    """Drop the cached snapshot, in memory and persisted."""
    manager.clear()
