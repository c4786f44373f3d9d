"""
Weather lookups for the alert job.

ZIP → lat/lon via Nominatim (cached in Redis for 30 days), forecast periods and
active alerts from the National Weather Service, and recent precipitation
history from Open-Meteo.

NWS periods are returned as-is (°F, "10 to 15 mph" wind strings);
garden_logbook.services.thresholds normalises them.
"""
import json
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Optional

import httpx

from garden_logbook.core.config import settings

logger = logging.getLogger(__name__)

GEOCODE_CACHE_TTL_SECONDS = 30 * 24 * 60 * 60  # 30 days
MM_PER_INCH = 25.4
DRY_DAY_INCHES = 0.01
FLOOD_EVENTS = ("Flood Warning", "Flood Advisory", "Flash Flood Warning")


class WeatherServiceError(Exception):
    pass


def _headers() -> dict:
    # Both Nominatim and NWS reject requests without an identifying User-Agent
    return {"User-Agent": settings.NOMINATIM_USER_AGENT, "Accept": "application/json"}


def _geocode_cache_key(zip_code: str) -> str:
    return f"geocode:{zip_code}"


async def geocode_zip(zip_code: str, redis: Any, client: Optional[httpx.AsyncClient] = None) -> dict:
    """Return {"lat", "lon"} for a US ZIP code. Raises WeatherServiceError if not found."""
    key = _geocode_cache_key(zip_code)
    cached = await redis.get(key)
    if cached is not None:
        logger.debug("geocode cache hit: %s", key)
        raw_str = cached.decode("utf-8") if isinstance(cached, bytes) else cached
        return json.loads(raw_str)

    logger.debug("geocode cache miss: %s, querying Nominatim", key)
    params = {"postalcode": zip_code, "country": "us", "format": "json", "limit": 1}
    async with _client(client) as c:
        resp = await c.get(f"{settings.NOMINATIM_BASE_URL}/search", params=params, headers=_headers())
    if resp.status_code == 429:
        raise WeatherServiceError("Nominatim rate limit exceeded")
    resp.raise_for_status()
    results = resp.json()
    if not results:
        raise WeatherServiceError(f"No location found for ZIP {zip_code}")

    result = {"lat": round(float(results[0]["lat"]), 4), "lon": round(float(results[0]["lon"]), 4)}
    await redis.setex(key, GEOCODE_CACHE_TTL_SECONDS, json.dumps(result))
    return result


async def get_forecast_periods(lat: float, lon: float, client: Optional[httpx.AsyncClient] = None) -> list[dict]:
    """NWS /points lookup followed by the gridpoint forecast. Returns the periods list."""
    async with _client(client) as c:
        resp = await c.get(f"{settings.NWS_BASE_URL}/points/{lat},{lon}", headers=_headers())
        resp.raise_for_status()
        forecast_url = (resp.json().get("properties") or {}).get("forecast")
        if not forecast_url:
            raise WeatherServiceError(f"No NWS forecast for {lat},{lon}")

        resp = await c.get(forecast_url, headers=_headers())
        resp.raise_for_status()
        return (resp.json().get("properties") or {}).get("periods") or []


async def get_active_alerts(lat: float, lon: float, client: Optional[httpx.AsyncClient] = None) -> list[dict]:
    async with _client(client) as c:
        resp = await c.get(
            f"{settings.NWS_BASE_URL}/alerts/active", params={"point": f"{lat},{lon}"}, headers=_headers()
        )
        resp.raise_for_status()
        return resp.json().get("features") or []


def has_flood_alert(features: list[dict]) -> bool:
    for feature in features:
        event = (feature.get("properties") or {}).get("event") or ""
        if any(name in event for name in FLOOD_EVENTS):
            return True
    return False


async def get_precipitation_history(
    lat: float, lon: float, now: Optional[datetime] = None, client: Optional[httpx.AsyncClient] = None
) -> dict:
    """
    Return {"days_without_rain", "observed_24h"} from the past week of Open-Meteo data.

    observed_24h is inches over the 24 hourly values up to ``now``, or the last
    daily total when hourly data is missing.
    """
    params = {
        "latitude": lat,
        "longitude": lon,
        "daily": "precipitation_sum",
        "hourly": "precipitation",
        "past_days": 7,
        "forecast_days": 1,
        "timezone": "GMT",
    }
    async with _client(client) as c:
        resp = await c.get(f"{settings.OPEN_METEO_BASE_URL}/forecast", params=params)
        resp.raise_for_status()
        raw = resp.json()
    return summarize_precipitation(raw, now or datetime.now(timezone.utc))


def summarize_precipitation(raw: dict, now: datetime) -> dict:
    daily = raw.get("daily") or {}
    daily_mm = [v or 0.0 for v in daily.get("precipitation_sum") or []]
    daily_dates = daily.get("time") or []
    today = now.date().isoformat()
    # Only whole days that have already happened
    if daily_dates and len(daily_dates) == len(daily_mm):
        daily_mm = [mm for d, mm in zip(daily_dates, daily_mm) if d < today]
    daily_in = [round(mm / MM_PER_INCH, 2) for mm in daily_mm]

    days_without_rain = 0
    for inches in reversed(daily_in):
        if inches >= DRY_DAY_INCHES:
            break
        days_without_rain += 1

    hourly = raw.get("hourly") or {}
    hourly_mm = hourly.get("precipitation")
    observed = None
    if hourly_mm:
        times = hourly.get("time") or []
        cutoff = now.strftime("%Y-%m-%dT%H:%M")
        if times and len(times) == len(hourly_mm):
            hourly_mm = [mm for t, mm in zip(times, hourly_mm) if t <= cutoff]
        observed = round(sum(mm or 0.0 for mm in hourly_mm[-24:]) / MM_PER_INCH, 2)
    elif daily_in:
        observed = daily_in[-1]

    return {"days_without_rain": days_without_rain, "observed_24h": observed}


@asynccontextmanager
async def _client(client: Optional[httpx.AsyncClient]) -> AsyncIterator[httpx.AsyncClient]:
    """Use the caller's AsyncClient if given, otherwise open a short-lived one."""
    if client is not None:
        yield client
        return
    async with httpx.AsyncClient(timeout=15.0) as owned:
        yield owned
