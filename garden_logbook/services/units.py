"""
Unit conversion for temperature, volume and length.

Volume converts through millilitres and length through centimetres, so any
pair of supported units round-trips within float precision.
"""
from typing import Optional

TEMPERATURE_UNITS = ("C", "F")

# millilitres per unit
VOLUME_UNITS: dict[str, float] = {
    "mL": 1.0,
    "L": 1000.0,
    "fl oz": 29.5735,
    "cups": 236.588,
    "gal": 3785.41,
}

# centimetres per unit
LENGTH_UNITS: dict[str, float] = {
    "mm": 0.1,
    "cm": 1.0,
    "m": 100.0,
    "in": 2.54,
    "ft": 30.48,
}

UNIT_LABELS: dict[str, str] = {
    "C": "°C",
    "F": "°F",
    "mL": "mL",
    "L": "L",
    "fl oz": "fl oz",
    "cups": "cups",
    "gal": "gal",
    "mm": "mm",
    "cm": "cm",
    "m": "m",
    "in": "in",
    "ft": "ft",
    "%": "%",
    "kPa": "kPa",
}


class UnitConversionError(ValueError):
    pass


def celsius_to_fahrenheit(value: float) -> float:
    return value * 9 / 5 + 32


def fahrenheit_to_celsius(value: float) -> float:
    return (value - 32) * 5 / 9


def convert_temperature(value: float, from_unit: str, to_unit: str) -> float:
    if from_unit not in TEMPERATURE_UNITS or to_unit not in TEMPERATURE_UNITS:
        raise UnitConversionError(f"Unknown temperature unit: {from_unit} -> {to_unit}")
    if from_unit == to_unit:
        return value
    if from_unit == "C":
        return celsius_to_fahrenheit(value)
    return fahrenheit_to_celsius(value)


def convert_volume(value: float, from_unit: str, to_unit: str) -> float:
    try:
        return value * VOLUME_UNITS[from_unit] / VOLUME_UNITS[to_unit]
    except KeyError as exc:
        raise UnitConversionError(f"Unknown volume unit: {exc.args[0]}") from exc


def convert_length(value: float, from_unit: str, to_unit: str) -> float:
    try:
        return value * LENGTH_UNITS[from_unit] / LENGTH_UNITS[to_unit]
    except KeyError as exc:
        raise UnitConversionError(f"Unknown length unit: {exc.args[0]}") from exc


def convert(value: float, from_unit: str, to_unit: str) -> float:
    """Dispatch to the converter whose unit table holds both units."""
    if from_unit in TEMPERATURE_UNITS and to_unit in TEMPERATURE_UNITS:
        return convert_temperature(value, from_unit, to_unit)
    if from_unit in VOLUME_UNITS and to_unit in VOLUME_UNITS:
        return convert_volume(value, from_unit, to_unit)
    if from_unit in LENGTH_UNITS and to_unit in LENGTH_UNITS:
        return convert_length(value, from_unit, to_unit)
    raise UnitConversionError(f"Cannot convert {from_unit} to {to_unit}")


def format_measurement(value: Optional[float], unit: str) -> str:
    if value is None:
        return "N/A"
    label = UNIT_LABELS.get(unit, unit)
    return f"{round(value, 2)} {label}"
