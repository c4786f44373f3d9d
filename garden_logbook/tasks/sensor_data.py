"""
Govee sensor polling job.

For each user with a stored API key, poll every active device, store a
GoveeReading (°F converted to °C, VPD computed), refresh the device status and
compare the reading against the device's own thresholds and its zone's.

Returns {vendor_device_id: summary | {"error": message}}. A device that fails
is marked offline; it never aborts the batch.
"""
import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Optional

import httpx
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from garden_logbook.core.config import settings
from garden_logbook.models.garden import Room, Zone
from garden_logbook.models.logs import Log
from garden_logbook.models.sensor import GoveeDevice, GoveeReading
from garden_logbook.models.user import User
from garden_logbook.services.alert_messages import ALERT_LABELS
from garden_logbook.services.govee import GoveeClient
from garden_logbook.services.notifications import create_notifications, get_garden_user_ids
from garden_logbook.services.thresholds import classify_sensor_breach
from garden_logbook.services.units import fahrenheit_to_celsius
from garden_logbook.services.user_service import get_govee_api_key
from garden_logbook.services.vpd import calculate_vpd

logger = logging.getLogger(__name__)

_METRIC_UNITS = {"temperature": "°C", "humidity": "%"}


async def fetch_and_store_sensor_data(
    db: AsyncSession, now: Optional[datetime] = None, client: Optional[httpx.AsyncClient] = None
) -> dict[str, dict]:
    now = now or datetime.now(timezone.utc)
    results: dict[str, dict] = {}

    result = await db.execute(select(User.id).where(User.encrypted_govee_api_key.isnot(None)).order_by(User.id))
    user_ids = list(result.scalars().all())
    logger.info("sensor_data: %d users with Govee API keys", len(user_ids))

    for user_id in user_ids:
        user = await db.get(User, user_id)
        device_rows = await db.execute(
            select(GoveeDevice.id, GoveeDevice.device_id)
            .where(GoveeDevice.user_id == user_id, GoveeDevice.is_active.is_(True))
            .order_by(GoveeDevice.id)
        )
        devices = device_rows.all()

        try:
            api_key = get_govee_api_key(user)
        except Exception as exc:
            logger.warning("sensor_data: failed to decrypt API key for user %d: %s", user_id, exc)
            for _, vendor_id in devices:
                results[vendor_id] = {"error": "Failed to decrypt API key"}
            continue

        govee = GoveeClient(api_key, client)
        for device_pk, vendor_id in devices:
            try:
                device = await db.get(GoveeDevice, device_pk)
                results[vendor_id] = await _poll_device(db, govee, device, now)
                await db.commit()
            except Exception as exc:
                logger.warning("sensor_data: device %s (user %d) failed: %s", vendor_id, user_id, exc)
                await db.rollback()
                await db.execute(
                    update(GoveeDevice)
                    .where(GoveeDevice.id == device_pk)
                    .values(is_online=False, last_state_at=now)
                )
                await db.commit()
                results[vendor_id] = {"error": str(exc)}

    logger.info(
        "sensor_data: complete, %d devices polled, %d errors",
        len(results), sum(1 for r in results.values() if "error" in r),
    )
    return results


async def _poll_device(db: AsyncSession, govee: GoveeClient, device: GoveeDevice, now: datetime) -> dict:
    state = await govee.get_device_state(device.sku, device.device_id)
    temp_f, humidity, battery = state["temperature_f"], state["humidity"], state["battery"]
    if temp_f is None and humidity is None:
        return {"error": "No sensor data available"}

    temp_c = round(fahrenheit_to_celsius(temp_f), 2) if temp_f is not None else None
    vpd = calculate_vpd(temp_c, humidity)
    vpd = None if math.isnan(vpd) else round(vpd, 3)

    reading = GoveeReading(
        device_id=device.id,
        timestamp=now,
        temperature=temp_c,
        humidity=humidity,
        vpd=vpd,
        battery_level=battery,
        source="CRON",
        raw_data=state["capabilities"],
    )
    db.add(reading)

    device.last_state = state["capabilities"]
    device.last_state_at = now
    device.is_online = True
    if battery is not None:
        device.battery_level = battery
    await db.flush()

    alert_types = await check_sensor_thresholds(db, device, reading, now)
    logger.info(
        "sensor_data: stored reading for %s: T=%s°C H=%s%% B=%s", device.name, temp_c, humidity, battery
    )
    return {
        "reading_id": reading.id,
        "temperature": temp_c,
        "humidity": humidity,
        "vpd": vpd,
        "battery": battery,
        "alerts": alert_types,
    }


def find_breaches(device: GoveeDevice, zone: Optional[Zone], temperature, humidity) -> list[dict]:
    """Device thresholds first, then zone thresholds; at most one breach per alert type."""
    checks = [
        ("temperature", temperature, device.min_temp, device.max_temp),
        ("humidity", humidity, device.min_humidity, device.max_humidity),
    ]
    if zone is not None:
        checks += [
            ("temperature", temperature, zone.temp_min, zone.temp_max),
            ("humidity", humidity, zone.humidity_min, zone.humidity_max),
        ]

    breaches: dict[str, dict] = {}
    for metric, value, minimum, maximum in checks:
        breach = classify_sensor_breach(metric, value, minimum, maximum)
        if breach and breach["type"] not in breaches:
            breaches[breach["type"]] = {**breach, "metric": metric}
    return list(breaches.values())


async def check_sensor_thresholds(
    db: AsyncSession, device: GoveeDevice, reading: GoveeReading, now: datetime
) -> list[str]:
    """Notify on each breached alert type not already notified inside the lookback window."""
    zone = await db.get(Zone, device.zone_id) if device.zone_id else None
    breaches = find_breaches(device, zone, reading.temperature, reading.humidity)
    if not breaches:
        return []

    garden_id = room_id = None
    if zone is not None:
        room_id = zone.room_id
        garden_id = await db.scalar(select(Room.garden_id).where(Room.id == zone.room_id))
    recipients = await get_garden_user_ids(db, garden_id, device.user_id) if garden_id else [device.user_id]
    since = now - timedelta(hours=settings.WEATHER_ALERT_LOOKBACK_HOURS)

    notified = []
    for breach in breaches:
        unit = _METRIC_UNITS[breach["metric"]]
        direction = "above" if breach["bound"] == "max" else "below"
        created = await create_notifications(
            db,
            recipients,
            "SENSOR_ALERT",
            title=f"{ALERT_LABELS[breach['type']]} alert: {device.name}",
            message=(
                f"{device.name} reported {breach['metric']} {breach['value']}{unit}, "
                f"{direction} the limit of {breach['limit']}{unit}."
            ),
            link=f"/sensors/{device.id}",
            meta={
                "kind": "sensor_alert",
                "device_id": device.id,
                "device_name": device.name,
                "zone_id": device.zone_id,
                "reading_id": reading.id,
                "alert_types": [breach["type"]],
                "breaches": [{k: breach[k] for k in ("type", "value", "bound", "limit")}],
            },
            dedup_key=f"sensor:{device.id}:{breach['type']}",
            since=since,
            now=now,
        )
        if created:
            notified.append(breach["type"])

    if notified:
        db.add(Log(
            user_id=device.user_id,
            garden_id=garden_id,
            room_id=room_id,
            zone_id=device.zone_id,
            plant_id=device.plant_id,
            log_type="ENVIRONMENTAL",
            notes=f"Sensor alert from {device.name}: {', '.join(ALERT_LABELS[t] for t in notified)}",
            log_date=now,
            temperature=reading.temperature,
            humidity=reading.humidity,
            vpd=reading.vpd,
            data={"source": "govee", "deviceId": device.id, "readingId": reading.id, "breaches": breaches},
        ))
    return [b["type"] for b in breaches]
