import pytest

from garden_logbook.services.alert_messages import build_current_message, build_forecast_message
from garden_logbook.services.thresholds import (
    check_range,
    classify_sensor_breach,
    dedupe_by_day,
    evaluate_current,
    evaluate_forecast,
    forecast_period_count,
    parse_wind_speed,
    period_weather,
)

LOCATION = {
    "garden_name": "Backyard",
    "zipcode": "60601",
    "plant_name": "Tomato",
    "room_name": "Outside",
    "zone_name": "Bed 1",
}


def _period(name: str, start: str, temperature: int, wind: str = "5 mph", rain_in: float | None = None) -> dict:
    period = {
        "name": name,
        "startTime": start,
        "temperature": temperature,
        "windSpeed": wind,
        "shortForecast": "Sunny",
        "relativeHumidity": {"value": 40},
    }
    if rain_in is not None:
        period["quantitativePrecipitation"] = {"in": rain_in}
    return period


# ── Sensor ranges ────────────────────────────────────────────────────────────


def test_check_range_is_inclusive():
    assert check_range(30, None, 30) == "high"
    assert check_range(29.9, None, 30) is None
    assert check_range(10, 10, None) == "low"
    assert check_range(15, 10, 30) is None


def test_missing_value_or_bound_never_alerts():
    assert check_range(None, 10, 30) is None
    assert check_range(100, None, None) is None


def test_classify_sensor_breach():
    assert classify_sensor_breach("temperature", 31, 18, 30) == {
        "type": "heat", "value": 31, "bound": "max", "limit": 30,
    }
    assert classify_sensor_breach("temperature", 2, 5, None)["type"] == "frost"
    assert classify_sensor_breach("humidity", 85, 40, 80)["type"] == "humidityHigh"
    assert classify_sensor_breach("humidity", 35, 40, 80)["type"] == "humidityLow"
    assert classify_sensor_breach("humidity", 60, 40, 80) is None
    with pytest.raises(ValueError):
        classify_sensor_breach("co2", 2000, None, 1500)


# ── Weather sensitivities ────────────────────────────────────────────────────


def test_parse_wind_speed():
    assert parse_wind_speed("10 to 15 mph") == 10
    assert parse_wind_speed("20 mph") == 20
    assert parse_wind_speed(12.7) == 12
    assert parse_wind_speed("calm") == 0
    assert parse_wind_speed(None) == 0


def test_period_weather_marks_frost_at_freezing():
    weather = period_weather(_period("Tonight", "2024-01-10T18:00:00-06:00", 32), 0, False)
    assert weather["has_frost_alert"] is True
    assert weather["humidity"] == 40
    assert period_weather(_period("Tonight", "2024-01-10T18:00:00-06:00", 33), 0, False)["has_frost_alert"] is False


def test_evaluate_current():
    sensitivities = {
        "heat": {"enabled": True, "threshold": 90},
        "wind": {"enabled": True, "threshold": 20},
        "drought": {"enabled": True, "threshold": 5},
        "flood": {"enabled": False},
        "heavyRain": {"enabled": True, "threshold": 25, "unit": "mm"},
    }
    weather = period_weather(_period("Today", "2024-07-01T06:00:00-05:00", 90, "25 mph"), 6, True)
    alerts = evaluate_current(sensitivities, weather, observed_precip_24h=1.0)
    assert set(alerts) == {"heat", "wind", "drought", "heavyRain"}
    assert alerts["heat"]["severity"] == 90
    assert alerts["heavyRain"]["severity"] == 25.4


def test_disabled_or_missing_sensitivities_never_alert():
    weather = period_weather(_period("Today", "2024-07-01T06:00:00-05:00", 105), 30, True)
    assert evaluate_current(None, weather, 5) == {}
    assert evaluate_current({"heat": {"enabled": False, "threshold": 80}}, weather, 5) == {}


def test_evaluate_forecast_keeps_worst_per_day():
    sensitivities = {"heat": {"enabled": True, "threshold": 85}, "drought": {"enabled": True, "threshold": 3}}
    periods = [
        _period("Today", "2024-07-02T06:00:00-05:00", 88),
        _period("Tonight", "2024-07-02T18:00:00-05:00", 86),
        _period("Wednesday", "2024-07-03T06:00:00-05:00", 95, rain_in=0.5),
        _period("Thursday", "2024-07-04T06:00:00-05:00", 91),
    ]
    forecast = evaluate_forecast(sensitivities, periods, days_without_rain=2)

    assert [e["period"]["name"] for e in forecast["heat"]] == ["Today", "Wednesday", "Thursday"]
    # Drought stops counting at the first wet period
    assert [e["severity"] for e in forecast["drought"]] == [4]


def test_flood_is_never_forecast():
    periods = [_period("Today", "2024-07-02T06:00:00-05:00", 70, rain_in=3)]
    assert "flood" not in evaluate_forecast({"flood": {"enabled": True}}, periods, 0)


def test_dedupe_by_day():
    entries = [
        {"period": {"startTime": "2024-07-02T06:00:00-05:00"}, "severity": 20},
        {"period": {"startTime": "2024-07-02T18:00:00-05:00"}, "severity": 30},
        {"period": {"startTime": "2024-07-03T06:00:00-05:00"}, "severity": 10},
    ]
    assert [e["severity"] for e in dedupe_by_day(entries)] == [30, 10]


@pytest.mark.parametrize("preference,expected", [("24h", 2), ("3d", 6), ("week", 14), ("all", 14), (None, 1)])
def test_forecast_period_count(preference, expected):
    assert forecast_period_count(preference, 14) == expected


# ── Messages ─────────────────────────────────────────────────────────────────


def test_current_message_lists_every_type():
    weather = period_weather(_period("Today", "2024-07-01T06:00:00-05:00", 97), 0, False)
    message = build_current_message({"heat": {"weather": weather, "severity": 97}}, **LOCATION)
    assert message.startswith("Current weather conditions in Backyard (60601) may affect Tomato in Outside, Bed 1:")
    assert "• Heat: 97°F" in message
    assert "• Frost: None" in message
    assert build_current_message({}, **LOCATION) is None


def test_forecast_message_summarises_dry_spell():
    periods = [
        _period("Today", "2024-07-02T06:00:00-05:00", 80),
        _period("Tonight", "2024-07-02T18:00:00-05:00", 70),
    ]
    forecast = evaluate_forecast({"drought": {"enabled": True}}, periods, 0)
    message = build_forecast_message(forecast, **LOCATION)
    assert "No rain expected for the next 1 periods." in message
    assert "Flood" not in message
