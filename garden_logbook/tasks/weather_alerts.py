"""
Weather alert job.

For every plant with sensitivities in a garden with a ZIP code:

1. geocode the ZIP (Redis-cached) and fetch NWS forecast periods, NWS active
   alerts and Open-Meteo precipitation history;
2. evaluate the current period and, depending on the owner's
   weather_notification_period, the upcoming periods;
3. write a WEATHER_ALERT log for current alerts and notify every garden user,
   skipping plants already notified inside WEATHER_ALERT_LOOKBACK_HOURS;
4. record a summary on each garden's weather_status.

Plants in zones whose weather_alert_source is SENSORS are skipped. A failure on
one plant is logged and reported in the summary; the loop carries on.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import httpx
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from garden_logbook.core.config import settings
from garden_logbook.models.garden import Garden, Room, Zone
from garden_logbook.models.logs import Log
from garden_logbook.models.plant import Plant
from garden_logbook.models.user import User
from garden_logbook.services import weather as weather_service
from garden_logbook.services.alert_messages import (
    build_current_message,
    build_forecast_message,
    format_precipitation,
)
from garden_logbook.services.notifications import (
    create_notifications,
    get_garden_user_ids,
    has_recent_notification,
)
from garden_logbook.services.thresholds import (
    evaluate_current,
    evaluate_forecast,
    forecast_period_count,
    heavy_rain_unit,
    period_weather,
)

logger = logging.getLogger(__name__)


async def process_weather_alerts(
    db: AsyncSession,
    redis: Any,
    now: Optional[datetime] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> dict:
    now = now or datetime.now(timezone.utc)
    since = now - timedelta(hours=settings.WEATHER_ALERT_LOOKBACK_HOURS)
    summary = {"plants_checked": 0, "alerts": 0, "notifications": 0, "errors": []}
    garden_status: dict[int, dict] = {}

    result = await db.execute(
        select(Plant.id)
        .join(Garden, Plant.garden_id == Garden.id)
        .join(Zone, Plant.zone_id == Zone.id)
        .where(Garden.zipcode.isnot(None), Zone.weather_alert_source != "SENSORS")
        .order_by(Plant.id)
    )
    plant_ids = list(result.scalars().all())
    logger.info("weather_alerts: %d candidate plants", len(plant_ids))

    for plant_id in plant_ids:
        # Re-queried per plant; a rollback expires everything loaded earlier
        row = (await db.execute(
            select(Plant, Garden, Room, Zone, User.weather_notification_period)
            .join(Garden, Plant.garden_id == Garden.id)
            .join(Room, Plant.room_id == Room.id)
            .join(Zone, Plant.zone_id == Zone.id)
            .join(User, Plant.user_id == User.id)
            .where(Plant.id == plant_id)
        )).first()
        if row is None:
            continue
        plant, garden, room, zone, notification_period = row
        if not plant.sensitivities:
            continue
        plant_name = plant.name
        status = garden_status.setdefault(garden.id, {
            "has_alerts": False,
            "alert_count": 0,
            "last_checked": now.isoformat(),
            "alerts": [],
        })
        try:
            outcome = await _process_plant(
                db, redis, client, plant, garden, room, zone, notification_period, now, since
            )
            await db.commit()
        except Exception as exc:
            logger.exception("weather_alerts: failed for plant %d (%s)", plant_id, plant_name)
            await db.rollback()
            summary["errors"].append({"plant_id": plant_id, "error": str(exc)})
            continue

        summary["plants_checked"] += 1
        summary["notifications"] += outcome["notifications"]
        for alert_type, alert in outcome["current_alerts"].items():
            summary["alerts"] += 1
            status["has_alerts"] = True
            status["alert_count"] += 1
            status["alerts"].append({
                "plant_id": plant_id,
                "plant_name": plant_name,
                "alert_type": alert_type,
                "severity": alert["severity"],
                "timestamp": now.isoformat(),
            })

    for garden_id, status in garden_status.items():
        garden = await db.get(Garden, garden_id)
        if garden is not None:
            garden.weather_status = status
    await db.commit()

    logger.info(
        "weather_alerts: complete, %d plants checked, %d alerts, %d notifications, %d errors",
        summary["plants_checked"], summary["alerts"], summary["notifications"], len(summary["errors"]),
    )
    return summary


async def _process_plant(
    db: AsyncSession,
    redis: Any,
    client: Optional[httpx.AsyncClient],
    plant: Plant,
    garden: Garden,
    room: Room,
    zone: Zone,
    notification_period: Optional[str],
    now: datetime,
    since: datetime,
) -> dict:
    coords = await weather_service.geocode_zip(garden.zipcode, redis, client)
    lat, lon = coords["lat"], coords["lon"]

    periods = await weather_service.get_forecast_periods(lat, lon, client)
    if not periods:
        logger.warning("weather_alerts: no forecast periods for plant %d", plant.id)
        return {"current_alerts": {}, "notifications": 0}

    features = await weather_service.get_active_alerts(lat, lon, client)
    flood_active = weather_service.has_flood_alert(features)

    try:
        precip = await weather_service.get_precipitation_history(lat, lon, now, client)
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("weather_alerts: precipitation history unavailable for plant %d: %s", plant.id, exc)
        precip = {"days_without_rain": 0, "observed_24h": None}

    sensitivities = plant.sensitivities
    unit = heavy_rain_unit(sensitivities)
    count = forecast_period_count(notification_period, len(periods))

    current_weather = period_weather(periods[0], precip["days_without_rain"], flood_active)
    current_alerts = evaluate_current(sensitivities, current_weather, precip["observed_24h"])
    forecasted_alerts = evaluate_forecast(sensitivities, periods[1:count], precip["days_without_rain"])

    location = {
        "garden_name": garden.name,
        "zipcode": garden.zipcode,
        "plant_name": plant.name,
        "room_name": room.name,
        "zone_name": zone.name,
    }
    meta_location = {
        "plant_id": plant.id,
        "plant_name": plant.name,
        "garden_id": garden.id,
        "garden_name": garden.name,
        "room_id": room.id,
        "room_name": room.name,
        "zone_id": zone.id,
        "zone_name": zone.name,
        "timezone": garden.timezone,
    }
    user_ids = await get_garden_user_ids(db, garden.id, plant.user_id)
    sent = 0

    forecast_message = build_forecast_message(forecasted_alerts, unit=unit, **location)
    if forecast_message:
        created = await create_notifications(
            db,
            user_ids,
            "WEATHER_FORECAST_ALERT",
            title=f"Forecasted weather alerts for {plant.name}",
            message=forecast_message,
            link=f"/gardens/{garden.id}/rooms/{room.id}/zones/{zone.id}/plants/{plant.id}",
            meta={
                "kind": "weather_forecast_alert",
                **meta_location,
                "alert_types": list(forecasted_alerts),
                "forecasted_alerts": forecasted_alerts,
                "forecast_window": notification_period or "current",
            },
            dedup_key=f"forecast:{plant.id}",
            since=since,
            now=now,
        )
        sent += len(created)

    current_message = build_current_message(current_alerts, unit=unit, **location)
    if current_message and await has_recent_notification(db, f"weather:{plant.id}", since):
        logger.info("weather_alerts: plant %d already alerted since %s, skipping", plant.id, since.isoformat())
    elif current_message:
        first_type = next(iter(current_alerts))
        log = Log(
            user_id=plant.user_id,
            garden_id=garden.id,
            room_id=room.id,
            zone_id=zone.id,
            plant_id=plant.id,
            log_type="WEATHER_ALERT",
            stage=plant.stage,
            notes=current_message,
            log_date=now,
            data={
                "weatherInfo": {
                    "temperature": f"{current_weather['temperature']}°F",
                    "humidity": f"{current_weather['humidity']}%",
                    "windSpeed": f"{current_weather['wind_speed']} mph",
                    "precipitation": format_precipitation(current_weather["precipitation"], unit),
                    "conditions": current_weather["conditions"],
                },
                "type": first_type,
                "severity": current_alerts[first_type]["severity"],
                "alertTypes": list(current_alerts),
            },
        )
        db.add(log)
        await db.flush()

        created = await create_notifications(
            db,
            user_ids,
            "WEATHER_ALERT",
            title=f"Current weather alerts for {plant.name}",
            message=current_message,
            link=f"/logs/{log.id}",
            meta={
                "kind": "weather_alert",
                **meta_location,
                "alert_types": list(current_alerts),
                "current_alerts": current_alerts,
                "date": now.date().isoformat(),
                "log_id": log.id,
            },
            dedup_key=f"weather:{plant.id}",
            since=since,
            now=now,
        )
        sent += len(created)

    return {"current_alerts": current_alerts, "notifications": sent}
