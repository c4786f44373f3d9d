"""Plain-text bodies for weather alert notifications and WEATHER_ALERT logs."""
from typing import Optional

from garden_logbook.services.thresholds import WEATHER_ALERT_TYPES

ALERT_LABELS = {
    "heat": "Heat",
    "frost": "Frost",
    "drought": "Drought",
    "wind": "Wind",
    "flood": "Flood",
    "heavyRain": "Heavy rain",
    "humidityHigh": "High humidity",
    "humidityLow": "Low humidity",
}


def format_precipitation(value: Optional[float], unit: str = "in") -> str:
    if value is None:
        return "None"
    if unit == "mm":
        return f"{value:.1f} mm"
    return f"{value} in"


def _describe(alert_type: str, weather: dict, severity, unit: str) -> str:
    if alert_type in ("heat", "frost"):
        return f"{weather.get('temperature')}°F"
    if alert_type == "wind":
        return f"{weather.get('wind_speed')} mph"
    if alert_type in ("heavyRain", "flood"):
        return f"{format_precipitation(weather.get('precipitation'), unit)} precipitation"
    if alert_type == "drought":
        return f"{weather.get('days_without_rain')} days without rain"
    return str(severity)


def _heading(kind: str, garden_name: str, zipcode: str, plant_name: str, room_name: str, zone_name: str) -> str:
    return f"{kind} weather conditions in {garden_name} ({zipcode}) may affect {plant_name} in {room_name}, {zone_name}:"


def build_current_message(
    current_alerts: dict[str, dict],
    *,
    garden_name: str,
    zipcode: str,
    plant_name: str,
    room_name: str,
    zone_name: str,
    unit: str = "in",
) -> Optional[str]:
    """Return the grouped message, or None when nothing triggered."""
    if not current_alerts:
        return None
    lines = [_heading("Current", garden_name, zipcode, plant_name, room_name, zone_name), ""]
    for alert_type in WEATHER_ALERT_TYPES:
        alert = current_alerts.get(alert_type)
        detail = _describe(alert_type, alert["weather"], alert["severity"], unit) if alert else "None"
        lines.append(f"• {ALERT_LABELS[alert_type]}: {detail}")
    lines += ["", "Please take necessary precautions to protect your plant."]
    return "\n".join(lines)


def build_forecast_message(
    forecasted_alerts: dict[str, list[dict]],
    *,
    garden_name: str,
    zipcode: str,
    plant_name: str,
    room_name: str,
    zone_name: str,
    unit: str = "in",
) -> Optional[str]:
    if not forecasted_alerts:
        return None
    lines = [_heading("Forecasted", garden_name, zipcode, plant_name, room_name, zone_name), ""]
    for alert_type in WEATHER_ALERT_TYPES:
        if alert_type == "flood":
            continue
        entries = forecasted_alerts.get(alert_type) or []
        if not entries:
            lines.append(f"• {ALERT_LABELS[alert_type]}: None")
            continue
        lines.append(f"• {ALERT_LABELS[alert_type]}:")
        if alert_type == "drought" and all(not e["weather"].get("precipitation_mm") for e in entries):
            lines.append(f"    No rain expected for the next {len(entries)} periods.")
            continue
        for entry in entries:
            period = entry["period"]
            detail = _describe(alert_type, entry["weather"], entry["severity"], unit)
            lines.append(f"    - {period.get('name')} ({period.get('startTime')}): {detail}")
    lines += ["", "Please prepare in advance to protect your plant."]
    return "\n".join(lines)
