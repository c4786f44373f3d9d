"""
HTTP triggers for the batch jobs, for schedulers that call URLs instead of
running the ARQ worker. Pass ``?secret=`` when CRON_SECRET is configured.
"""
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from garden_logbook.core.deps import get_db, get_redis, verify_cron_secret
from garden_logbook.tasks.maintenance import check_maintenance_notifications
from garden_logbook.tasks.sensor_data import fetch_and_store_sensor_data
from garden_logbook.tasks.weather_alerts import process_weather_alerts

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cron", tags=["cron"], dependencies=[Depends(verify_cron_secret)])


@router.api_route("/weather-alerts", methods=["GET", "POST"])
async def run_weather_alerts(db: AsyncSession = Depends(get_db), redis=Depends(get_redis)):
    try:
        summary = await process_weather_alerts(db, redis)
    except Exception:
        logger.exception("cron: weather alerts failed")
        return JSONResponse(status_code=500, content={"detail": "Failed to process weather alerts"})
    return {"success": True, **summary}


@router.api_route("/maintenance-notifications", methods=["GET", "POST"])
async def run_maintenance_notifications(db: AsyncSession = Depends(get_db)):
    try:
        summary = await check_maintenance_notifications(db)
    except Exception:
        logger.exception("cron: maintenance notifications failed")
        return JSONResponse(status_code=500, content={"detail": "Failed to check maintenance notifications"})
    return {"success": True, **summary}


@router.api_route("/sensor-data", methods=["GET", "POST"])
async def run_sensor_data(db: AsyncSession = Depends(get_db)):
    try:
        results = await fetch_and_store_sensor_data(db)
    except Exception:
        logger.exception("cron: sensor data fetch failed")
        return JSONResponse(status_code=500, content={"detail": "Failed to fetch sensor data"})
    return {"success": True, "results": results}
