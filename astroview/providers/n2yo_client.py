"""Visible ISS passes from the N2YO REST API."""
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import List

import requests

from astroview.config import settings
from astroview.errors import DecodeFailure, NetworkFailure
from astroview.models import SatellitePass
from utils.logging_utils import get_tagged_logger, mask_url_secrets

logger = get_tagged_logger(__name__, tag="providers/n2yo")

session = requests.Session()

N2YO_BASE_URL = "https://api.n2yo.com/rest/v1/satellite"
ISS_NORAD_ID = 25544
PROVIDER_NAME = "n2yo"


def parse_visual_passes(data: dict) -> List[SatellitePass]:
    """Convert a ``visualpasses`` response body into SatellitePass objects."""
    try:
        if "error" in data:
            raise DecodeFailure(f"N2YO error: {data['error']}", provider=PROVIDER_NAME)
        passes = data.get("passes") or []
        out = [
            SatellitePass(
                rise_time=dt.datetime.fromtimestamp(int(p["startUTC"]), tz=dt.timezone.utc),
                duration_seconds=float(p["duration"]),
                max_elevation=float(p["maxEl"]),
            )
            for p in passes
        ]
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise DecodeFailure(f"Unexpected N2YO payload: {exc}", provider=PROVIDER_NAME) from exc
    return sorted(out, key=lambda p: p.rise_time)


def fetch_visual_passes(
    latitude: float,
    longitude: float,
    elevation: float,
    days: int,
    min_visibility: int,
    *,
    api_key: str,
    norad_id: int = ISS_NORAD_ID,
) -> List[SatellitePass]:
    """Fetch optically visible passes of ``norad_id`` for the next ``days`` days.

    N2YO caps ``days`` at 10; ``min_visibility`` is the minimum number of
    seconds the object must be visible for a pass to be reported.
    """
    url = (
        f"{N2YO_BASE_URL}/visualpasses/{norad_id}/{latitude}/{longitude}/"
        f"{int(elevation)}/{min(days, 10)}/{min_visibility}/"
    )
    try:
        resp = session.get(url, params={"apiKey": api_key}, timeout=settings.http_timeout_seconds)
        resp.raise_for_status()
    except requests.RequestException as exc:
        raise NetworkFailure(f"N2YO request failed: {exc}", provider=PROVIDER_NAME) from exc
    logger.debug("N2YO response received", extra={"url": mask_url_secrets(getattr(resp, "url", None) or url)})

    try:
        data = resp.json()
    except ValueError as exc:
        raise DecodeFailure("N2YO returned a non-JSON body", provider=PROVIDER_NAME) from exc
    return parse_visual_passes(data)


@dataclass
class N2YOSatellitePassProvider:
    """SatellitePassProvider holding the N2YO credential."""

    api_key: str
    norad_id: int = ISS_NORAD_ID

    def fetch_passes(
        self,
        latitude: float,
        longitude: float,
        elevation: float,
        day_count: int,
        min_visibility: int,
    ) -> List[SatellitePass]:
        """Delegate to fetch_visual_passes with the stored credential."""
        return fetch_visual_passes(
            latitude,
            longitude,
            elevation,
            day_count,
            min_visibility,
            api_key=self.api_key,
            norad_id=self.norad_id,
        )

    def __repr__(self) -> str:
        return f"N2YOSatellitePassProvider(api_key='***', norad_id={self.norad_id})"
