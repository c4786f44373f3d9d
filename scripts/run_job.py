#!/usr/bin/env python3
"""
Manually trigger one of the scheduled jobs.

Usage (inside the API container):
    python scripts/run_job.py weather_alerts
    python scripts/run_job.py maintenance_notifications
    python scripts/run_job.py sensor_data
"""
import asyncio
import logging
import sys

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s: %(message)s",
    stream=sys.stdout,
)

import redis.asyncio as aioredis

from garden_logbook.core.config import settings
from garden_logbook.worker import maintenance_notifications, sensor_data, weather_alerts

JOBS = {
    "weather_alerts": weather_alerts,
    "maintenance_notifications": maintenance_notifications,
    "sensor_data": sensor_data,
}


async def main(name: str) -> None:
    redis = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
    try:
        print(f"Starting {name}...\n")
        result = await JOBS[name](ctx={"redis": redis})
        print(f"\n{name} finished: {result}")
    finally:
        await redis.aclose()


if __name__ == "__main__":
    if len(sys.argv) != 2 or sys.argv[1] not in JOBS:
        print(f"usage: {sys.argv[0]} {{{','.join(JOBS)}}}")
        sys.exit(2)
    asyncio.run(main(sys.argv[1]))
