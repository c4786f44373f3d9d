"""
Vapour pressure deficit helpers.

svp(T) = 0.6112 * exp(17.67 T / (T + 243.5))   (kPa, T in °C)
vpd    = svp(T) * (1 - RH / 100)

Missing input yields INVALID_VPD (NaN) rather than raising, so sensor rows with
a dropped reading can still be stored and classified.
"""
import math
from typing import Optional

INVALID_VPD = float("nan")

# Optimal VPD band (kPa) by growth stage
VPD_RANGES: dict[str, tuple[float, float]] = {
    "seedling": (0.4, 0.8),
    "vegetative": (0.8, 1.2),
    "flowering": (1.0, 1.6),
}
DEFAULT_VPD_RANGE = (0.8, 1.2)

_STATUS_MESSAGES = {
    "optimal": "VPD is within the optimal range",
    "low": "VPD is too low, consider lowering humidity or raising temperature",
    "high": "VPD is high, consider raising humidity or lowering temperature",
    "critical": "VPD is critically high, plants may be stressed",
}


def saturation_vapour_pressure(temp_c: float) -> float:
    return 0.6112 * math.exp((17.67 * temp_c) / (temp_c + 243.5))


def calculate_vpd(temp_c: Optional[float], humidity: Optional[float]) -> float:
    if temp_c is None or humidity is None:
        return INVALID_VPD
    return saturation_vapour_pressure(temp_c) * (1 - humidity / 100)


def calculate_vpd_from_fahrenheit(temp_f: Optional[float], humidity: Optional[float]) -> float:
    if temp_f is None:
        return INVALID_VPD
    return calculate_vpd((temp_f - 32) * 5 / 9, humidity)


def get_vpd_range(stage: Optional[str] = None) -> tuple[float, float]:
    if not stage:
        return DEFAULT_VPD_RANGE
    return VPD_RANGES.get(stage.lower(), DEFAULT_VPD_RANGE)


def get_vpd_status(vpd: float, stage: Optional[str] = None) -> dict:
    """
    Classify a VPD value against the band for ``stage``.

    Returns {"status", "message", "range": {"min", "max"}} where status is one of
    optimal / low / high / critical. Anything above 1.5x the band maximum is
    critical; a NaN reading is critical with message "Invalid data".
    """
    minimum, maximum = get_vpd_range(stage)
    band = {"min": minimum, "max": maximum}

    if vpd is None or math.isnan(vpd):
        return {"status": "critical", "message": "Invalid data", "range": band}

    if minimum <= vpd <= maximum:
        status = "optimal"
    elif vpd < minimum:
        status = "low"
    elif vpd > maximum * 1.5:
        status = "critical"
    else:
        status = "high"
    return {"status": status, "message": _STATUS_MESSAGES[status], "range": band}


def format_vpd(vpd: Optional[float]) -> str:
    if vpd is None or math.isnan(vpd):
        return "N/A"
    return f"{vpd:.2f} kPa"
