"""
Threshold comparison for sensor readings and plant weather sensitivities.

Two families of checks live here:

* Sensor ranges (zones and Govee devices): ``check_range`` is inclusive at both
  bounds, and a missing value or bound never alerts.
* Plant sensitivities against NWS forecast periods:

      {"heat": {"enabled": true, "threshold": 90},
       "frost": {"enabled": true},
       "wind": {"enabled": true, "threshold": 20},
       "drought": {"enabled": true, "threshold": 5},
       "flood": {"enabled": true},
       "heavyRain": {"enabled": true, "threshold": 1, "unit": "in"}}

  Temperatures are °F (NWS), wind is mph and precipitation is inches unless the
  heavyRain unit says "mm".
"""
from datetime import datetime
from typing import Optional

ALERT_TYPES = ("heat", "frost", "wind", "drought", "flood", "heavyRain", "humidityHigh", "humidityLow")
WEATHER_ALERT_TYPES = ("heat", "frost", "drought", "wind", "flood", "heavyRain")

FROST_TEMP_F = 32
DRY_PERIOD_INCHES = 0.01
MM_PER_INCH = 25.4


# ── Sensor ranges ─────────────────────────────────────────────────────────────


def check_range(value: Optional[float], minimum: Optional[float], maximum: Optional[float]) -> Optional[str]:
    """Return "high", "low" or None. Inclusive at both bounds."""
    if value is None:
        return None
    if maximum is not None and value >= maximum:
        return "high"
    if minimum is not None and value <= minimum:
        return "low"
    return None


def meets_threshold(value: Optional[float], threshold: Optional[float]) -> bool:
    if value is None or threshold is None:
        return False
    return value >= threshold


def classify_sensor_breach(
    metric: str, value: Optional[float], minimum: Optional[float], maximum: Optional[float]
) -> Optional[dict]:
    """
    Map a temperature/humidity breach onto an alert type.

    Returns {"type", "value", "bound", "limit"} or None when within range.
    """
    side = check_range(value, minimum, maximum)
    if side is None:
        return None
    if metric == "temperature":
        alert_type = "heat" if side == "high" else "frost"
    elif metric == "humidity":
        alert_type = "humidityHigh" if side == "high" else "humidityLow"
    else:
        raise ValueError(f"Unknown sensor metric: {metric}")
    return {
        "type": alert_type,
        "value": value,
        "bound": "max" if side == "high" else "min",
        "limit": maximum if side == "high" else minimum,
    }


# ── Plant sensitivities ───────────────────────────────────────────────────────


def _enabled(sensitivities: Optional[dict], alert_type: str) -> Optional[dict]:
    if not sensitivities:
        return None
    entry = sensitivities.get(alert_type)
    if isinstance(entry, dict) and entry.get("enabled"):
        return entry
    return None


def heavy_rain_unit(sensitivities: Optional[dict]) -> str:
    entry = (sensitivities or {}).get("heavyRain") or {}
    return "mm" if entry.get("unit") == "mm" else "in"


def parse_wind_speed(value) -> int:
    """'10 to 15 mph' -> 10. Unparseable input -> 0."""
    if isinstance(value, (int, float)):
        return int(value)
    if not value:
        return 0
    try:
        return int(str(value).split(" ")[0])
    except ValueError:
        return 0


def period_precipitation(period: dict) -> tuple[float, float]:
    """Return (inches, millimetres) of forecast precipitation for an NWS period."""
    qp = period.get("quantitativePrecipitation") or {}
    if isinstance(qp.get("in"), (int, float)):
        inches = float(qp["in"])
        return inches, round(inches * MM_PER_INCH, 2)
    if isinstance(qp.get("mm"), (int, float)):
        mm = float(qp["mm"])
        return round(mm / MM_PER_INCH, 2), mm
    return 0.0, 0.0


def period_weather(period: dict, days_without_rain: int, flood_alert_active: bool) -> dict:
    """Normalise an NWS forecast period into the weather dict the evaluators use."""
    inches, _ = period_precipitation(period)
    temperature = period.get("temperature")
    return {
        "temperature": temperature,
        "humidity": (period.get("relativeHumidity") or {}).get("value") or 0,
        "wind_speed": parse_wind_speed(period.get("windSpeed")),
        "precipitation": inches,
        "conditions": period.get("shortForecast"),
        "has_frost_alert": temperature is not None and temperature <= FROST_TEMP_F,
        "has_flood_alert": flood_alert_active,
        "days_without_rain": days_without_rain,
    }


def evaluate_current(
    sensitivities: Optional[dict], weather: dict, observed_precip_24h: Optional[float]
) -> dict[str, dict]:
    """
    Compare the current period against a plant's sensitivities.

    ``observed_precip_24h`` is in inches. Returns {alert_type: {"weather", "severity"}}.
    """
    alerts: dict[str, dict] = {}

    heat = _enabled(sensitivities, "heat")
    if heat and meets_threshold(weather.get("temperature"), heat.get("threshold")):
        alerts["heat"] = {"weather": weather, "severity": weather["temperature"]}

    if _enabled(sensitivities, "frost") and weather.get("has_frost_alert"):
        alerts["frost"] = {"weather": weather, "severity": 1}

    wind = _enabled(sensitivities, "wind")
    if wind and meets_threshold(weather.get("wind_speed"), wind.get("threshold")):
        alerts["wind"] = {"weather": weather, "severity": weather["wind_speed"]}

    drought = _enabled(sensitivities, "drought")
    if drought:
        threshold = drought.get("threshold")
        if threshold is None:
            threshold = drought.get("days")
        if meets_threshold(weather.get("days_without_rain"), threshold):
            alerts["drought"] = {"weather": weather, "severity": weather["days_without_rain"]}

    if _enabled(sensitivities, "flood") and weather.get("has_flood_alert"):
        alerts["flood"] = {"weather": weather, "severity": 1}

    heavy_rain = _enabled(sensitivities, "heavyRain")
    if heavy_rain and observed_precip_24h is not None:
        observed = observed_precip_24h
        if heavy_rain_unit(sensitivities) == "mm":
            observed = round(observed_precip_24h * MM_PER_INCH, 2)
        if meets_threshold(observed, heavy_rain.get("threshold")):
            alerts["heavyRain"] = {"weather": {**weather, "precipitation": observed}, "severity": observed}

    return alerts


def evaluate_forecast(
    sensitivities: Optional[dict], periods: list[dict], days_without_rain: int
) -> dict[str, list[dict]]:
    """
    Compare future NWS periods (everything passed in) against sensitivities.

    Flood is never forecast. Drought keeps counting from ``days_without_rain``
    through consecutive dry periods and stops at the first wet one. The result is
    reduced to one entry per calendar day per type, keeping the most severe.
    """
    forecast: dict[str, list[dict]] = {}
    unit = heavy_rain_unit(sensitivities)
    drought_counter = days_without_rain
    drought_broken = False

    def add(alert_type: str, period: dict, weather: dict, severity: float) -> None:
        forecast.setdefault(alert_type, []).append({
            "period": {
                "name": period.get("name"),
                "startTime": period.get("startTime"),
                "probabilityOfPrecipitation": (period.get("probabilityOfPrecipitation") or {}).get("value"),
            },
            "weather": weather,
            "severity": severity,
        })

    for period in periods:
        inches, mm = period_precipitation(period)
        weather = period_weather(period, days_without_rain, False)
        weather["precipitation_in"] = inches
        weather["precipitation_mm"] = mm

        if _enabled(sensitivities, "drought"):
            if not drought_broken and inches < DRY_PERIOD_INCHES and mm < DRY_PERIOD_INCHES * MM_PER_INCH:
                drought_counter += 1
                add("drought", period, {**weather, "days_without_rain": drought_counter}, drought_counter)
            else:
                drought_broken = True

        heat = _enabled(sensitivities, "heat")
        if heat and meets_threshold(weather["temperature"], heat.get("threshold")):
            add("heat", period, weather, weather["temperature"])

        if _enabled(sensitivities, "frost") and weather["has_frost_alert"]:
            add("frost", period, weather, 1)

        wind = _enabled(sensitivities, "wind")
        if wind and meets_threshold(weather["wind_speed"], wind.get("threshold")):
            add("wind", period, weather, weather["wind_speed"])

        heavy_rain = _enabled(sensitivities, "heavyRain")
        if heavy_rain:
            amount = mm if unit == "mm" else inches
            if meets_threshold(amount, heavy_rain.get("threshold")):
                add("heavyRain", period, {**weather, "precipitation": amount}, amount)

    return {alert_type: dedupe_by_day(entries) for alert_type, entries in forecast.items()}


def _period_day(entry: dict) -> str:
    start = entry["period"].get("startTime") or ""
    try:
        return datetime.fromisoformat(start).date().isoformat()
    except ValueError:
        return start[:10]


def dedupe_by_day(entries: list[dict]) -> list[dict]:
    """Keep the most severe entry per calendar day, in first-seen day order."""
    by_day: dict[str, dict] = {}
    for entry in entries:
        day = _period_day(entry)
        if day not in by_day or entry["severity"] > by_day[day]["severity"]:
            by_day[day] = entry
    return list(by_day.values())


def forecast_period_count(preference: Optional[str], total: int) -> int:
    """How many NWS periods (including the current one) a notification window covers."""
    if preference == "24h":
        return min(2, total)
    if preference == "3d":
        return min(6, total)
    if preference in ("week", "all"):
        return total
    return min(1, total)
