"""
ARQ worker: background task definitions.
Run with: python -m garden_logbook.worker
"""
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable

from arq import cron
from arq.connections import RedisSettings

from garden_logbook.core.config import settings
from garden_logbook.db.session import AsyncSessionLocal
from garden_logbook.models.logs import PipelineRun
from garden_logbook.tasks.maintenance import check_maintenance_notifications
from garden_logbook.tasks.sensor_data import fetch_and_store_sensor_data
from garden_logbook.tasks.weather_alerts import process_weather_alerts

logger = logging.getLogger(__name__)


async def _run_pipeline(name: str, job: Callable[..., Awaitable], count: Callable[[object], int]) -> object:
    """Run ``job(db)`` inside a PipelineRun record; re-raise after recording a failure."""
    logger.info("%s: starting", name)
    started_at = datetime.now(timezone.utc)

    async with AsyncSessionLocal() as db:
        pipeline = PipelineRun(pipeline_name=name, status="running", started_at=started_at)
        db.add(pipeline)
        await db.commit()
        await db.refresh(pipeline)
        pipeline_id = pipeline.id

        try:
            result = await job(db)
        except Exception as exc:
            logger.exception("%s: unexpected error", name)
            await db.rollback()
            pipeline = await db.get(PipelineRun, pipeline_id)
            finished_at = datetime.now(timezone.utc)
            pipeline.status = "failed"
            pipeline.finished_at = finished_at
            pipeline.duration_ms = int((finished_at - started_at).total_seconds() * 1000)
            pipeline.error_message = str(exc)
            await db.commit()
            raise

        pipeline = await db.get(PipelineRun, pipeline_id)
        finished_at = datetime.now(timezone.utc)
        pipeline.status = "success"
        pipeline.finished_at = finished_at
        pipeline.duration_ms = int((finished_at - started_at).total_seconds() * 1000)
        pipeline.records_processed = count(result)
        await db.commit()

    logger.info("%s: complete", name)
    return result


# ── Job functions ─────────────────────────────────────────────────────────────


async def weather_alerts(ctx: dict) -> dict:
    """NWS + Open-Meteo checks against plant sensitivities. Runs hourly."""
    return await _run_pipeline(
        "weather_alerts",
        lambda db: process_weather_alerts(db, ctx["redis"]),
        lambda summary: summary["plants_checked"],
    )


async def maintenance_notifications(ctx: dict) -> dict:
    """Daily reminders for maintenance tasks coming due. Runs at 08:00 UTC."""
    return await _run_pipeline(
        "maintenance_notifications",
        check_maintenance_notifications,
        lambda summary: summary["notifications"],
    )


async def sensor_data(ctx: dict) -> dict:
    """Poll Govee devices and store readings. Runs every 15 minutes."""
    return await _run_pipeline(
        "sensor_data",
        fetch_and_store_sensor_data,
        lambda results: sum(1 for r in results.values() if "error" not in r),
    )


# ── Worker settings ───────────────────────────────────────────────────────────


class WorkerSettings:
    redis_settings = RedisSettings.from_dsn(settings.REDIS_URL)
    functions = [weather_alerts, maintenance_notifications, sensor_data]
    cron_jobs = [
        cron(weather_alerts, minute=0),  # Hourly
        cron(maintenance_notifications, hour=8, minute=0),  # Daily 8am UTC
        cron(sensor_data, minute={0, 15, 30, 45}),
    ]
    on_startup = None
    on_shutdown = None


if __name__ == "__main__":
    from arq import run_worker

    logging.basicConfig(level=settings.LOG_LEVEL)
    run_worker(WorkerSettings)
