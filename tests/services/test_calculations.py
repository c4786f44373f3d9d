import math
from datetime import date

import pytest

from garden_logbook.services.maintenance import add_months, calculate_next_due_date
from garden_logbook.services.units import (
    UnitConversionError,
    convert,
    convert_length,
    convert_temperature,
    convert_volume,
    format_measurement,
)
from garden_logbook.services.vpd import (
    calculate_vpd,
    calculate_vpd_from_fahrenheit,
    format_vpd,
    get_vpd_range,
    get_vpd_status,
)


# ── VPD ──────────────────────────────────────────────────────────────────────


def test_vpd_known_value():
    assert calculate_vpd(25, 60) == pytest.approx(1.267, abs=1e-3)


def test_vpd_falls_as_humidity_rises():
    values = [calculate_vpd(24, rh) for rh in (30, 50, 70, 90)]
    assert values == sorted(values, reverse=True)
    assert calculate_vpd(24, 100) == 0


def test_vpd_rises_with_temperature():
    values = [calculate_vpd(t, 55) for t in (15, 20, 25, 30)]
    assert values == sorted(values)


def test_vpd_missing_input_is_nan():
    assert math.isnan(calculate_vpd(None, 50))
    assert math.isnan(calculate_vpd(20, None))
    assert math.isnan(calculate_vpd_from_fahrenheit(None, 50))
    assert format_vpd(float("nan")) == "N/A"


def test_vpd_from_fahrenheit_matches_celsius():
    assert calculate_vpd_from_fahrenheit(77, 60) == pytest.approx(calculate_vpd(25, 60))


def test_vpd_status_bands():
    assert get_vpd_range("SEEDLING") == (0.4, 0.8)
    assert get_vpd_range("harvest") == (0.8, 1.2)
    assert get_vpd_status(0.8)["status"] == "optimal"
    assert get_vpd_status(1.2)["status"] == "optimal"
    assert get_vpd_status(0.5)["status"] == "low"
    assert get_vpd_status(1.5)["status"] == "high"
    assert get_vpd_status(1.81)["status"] == "critical"
    invalid = get_vpd_status(float("nan"), "flowering")
    assert invalid["status"] == "critical"
    assert invalid["message"] == "Invalid data"
    assert invalid["range"] == {"min": 1.0, "max": 1.6}


# ── Units ────────────────────────────────────────────────────────────────────


def test_temperature_conversion():
    assert convert_temperature(0, "C", "F") == 32
    assert convert_temperature(212, "F", "C") == pytest.approx(100)
    assert convert_temperature(-40, "C", "F") == pytest.approx(-40)
    assert convert_temperature(18.5, "C", "C") == 18.5


@pytest.mark.parametrize("value", [-40.0, -12.5, 0.0, 21.3, 37.0, 100.0])
@pytest.mark.parametrize("a,b", [("C", "F"), ("F", "C")])
def test_temperature_round_trip(value, a, b):
    assert convert_temperature(convert_temperature(value, a, b), b, a) == pytest.approx(value)


@pytest.mark.parametrize("a,b", [("L", "gal"), ("cups", "fl oz"), ("mL", "L")])
def test_volume_round_trip(a, b):
    assert convert_volume(convert_volume(3.7, a, b), b, a) == pytest.approx(3.7)


def test_length_conversion():
    assert convert_length(1, "ft", "in") == pytest.approx(12)
    assert convert(25.4, "mm", "in") == pytest.approx(1)
    assert convert_length(1, "m", "cm") == pytest.approx(100)


@pytest.mark.parametrize(
    "a,b", [("cm", "in"), ("in", "cm"), ("m", "ft"), ("ft", "mm"), ("mm", "cm"), ("in", "m")]
)
@pytest.mark.parametrize("value", [0.5, 12.0, 250.0])
def test_length_round_trip(value, a, b):
    assert convert_length(convert_length(value, a, b), b, a) == pytest.approx(value)


def test_unknown_units_raise():
    with pytest.raises(UnitConversionError):
        convert(1, "gal", "ft")
    with pytest.raises(UnitConversionError):
        convert_volume(1, "barrel", "L")
    with pytest.raises(UnitConversionError):
        convert_temperature(1, "K", "C")


def test_format_measurement():
    assert format_measurement(21.456, "C") == "21.46 °C"
    assert format_measurement(None, "L") == "N/A"


# ── Maintenance dates ────────────────────────────────────────────────────────


def test_add_months_clamps_to_month_end():
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2023, 1, 31), 1) == date(2023, 2, 28)
    assert add_months(date(2024, 11, 15), 3) == date(2025, 2, 15)
    assert add_months(date(2024, 2, 29), 12) == date(2025, 2, 28)


@pytest.mark.parametrize(
    "frequency,expected",
    [
        ("Daily", date(2024, 3, 11)),
        ("Weekly", date(2024, 3, 17)),
        ("Monthly", date(2024, 4, 10)),
        ("Every 3 Months", date(2024, 6, 10)),
        ("Every 6 Months", date(2024, 9, 10)),
        ("Annually", date(2025, 3, 10)),
        ("Fortnightly", date(2024, 4, 10)),
        (None, date(2024, 4, 10)),
    ],
)
def test_next_due_date(frequency, expected):
    assert calculate_next_due_date(date(2024, 3, 10), frequency) == expected
