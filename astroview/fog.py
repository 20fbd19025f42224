"""Fog risk scoring for a single hourly weather sample."""
from __future__ import annotations

from typing import List, Sequence

from astroview.models import FogFactor, FogScore, HourlyForecast

HUMIDITY_THRESHOLD_PERCENT = 95
TEMP_DEW_GAP_THRESHOLD_C = 2.0
VISIBILITY_THRESHOLD_M = 1000.0
LOW_CLOUD_THRESHOLD_PERCENT = 80

FACTOR_WEIGHTS = {
    FogFactor.HIGH_HUMIDITY: 30,
    FogFactor.LOW_TEMP_DEW_GAP: 30,
    FogFactor.LOW_VISIBILITY: 25,
    FogFactor.HIGH_LOW_CLOUD: 15,
}


def fog_factors(hour: HourlyForecast) -> List[FogFactor]:
    """Return the fog factors present in ``hour``.

    Optional fields that are missing count as no evidence, never as worst case.
    """
    factors: List[FogFactor] = []
    if hour.humidity > HUMIDITY_THRESHOLD_PERCENT:
        factors.append(FogFactor.HIGH_HUMIDITY)
    if hour.dew_point is not None and (hour.temperature - hour.dew_point) < TEMP_DEW_GAP_THRESHOLD_C:
        factors.append(FogFactor.LOW_TEMP_DEW_GAP)
    if hour.visibility is not None and hour.visibility < VISIBILITY_THRESHOLD_M:
        factors.append(FogFactor.LOW_VISIBILITY)
    if hour.low_cloud_cover is not None and hour.low_cloud_cover > LOW_CLOUD_THRESHOLD_PERCENT:
        factors.append(FogFactor.HIGH_LOW_CLOUD)
    return factors


def score_fog(hour: HourlyForecast) -> FogScore:
    """Score fog risk for one hour as a weighted sum of its factors."""
    factors = fog_factors(hour)
    percentage = sum(FACTOR_WEIGHTS[f] for f in factors)
    return FogScore(percentage=percentage, factors=tuple(factors))


def score_current(hours: Sequence[HourlyForecast]) -> FogScore:
    """Score the nearest-term sample of a series; an empty series scores zero."""
    if not hours:
        return FogScore(percentage=0)
    return score_fog(hours[0])
