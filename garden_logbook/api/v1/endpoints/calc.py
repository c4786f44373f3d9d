import math

from fastapi import APIRouter, HTTPException

from garden_logbook.schemas.calc import ConvertRequest, ConvertResponse, VpdRequest, VpdResponse
from garden_logbook.services.units import UnitConversionError, convert, format_measurement
from garden_logbook.services.vpd import calculate_vpd, calculate_vpd_from_fahrenheit, format_vpd, get_vpd_status

router = APIRouter(prefix="/calc", tags=["calc"])


@router.post("/vpd", response_model=VpdResponse)
async def vpd(data: VpdRequest):
    if data.unit == "F":
        value = calculate_vpd_from_fahrenheit(data.temperature, data.humidity)
    else:
        value = calculate_vpd(data.temperature, data.humidity)
    status = get_vpd_status(value, data.stage)
    return VpdResponse(
        vpd=None if math.isnan(value) else round(value, 3),
        formatted=format_vpd(value),
        **status,
    )


@router.post("/convert", response_model=ConvertResponse)
async def convert_units(data: ConvertRequest):
    try:
        value = convert(data.value, data.from_unit, data.to_unit)
    except UnitConversionError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return ConvertResponse(value=value, unit=data.to_unit, formatted=format_measurement(value, data.to_unit))
