import logging
import math
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from garden_logbook.core.deps import CurrentUser, get_db
from garden_logbook.models.garden import Room, Zone
from garden_logbook.models.plant import Plant
from garden_logbook.models.sensor import GoveeDevice, GoveeReading
from garden_logbook.models.user import User
from garden_logbook.schemas.room import ZoneRead, ZoneThresholdUpdate
from garden_logbook.schemas.sensor import (
    ApiKeyUpdate,
    DeviceLink,
    DeviceThresholdUpdate,
    DeviceUnlink,
    DiscoveredDevice,
    GoveeDeviceRead,
    GoveeReadingRead,
    LatestReading,
    ManualReadingCreate,
)
from garden_logbook.services.access import require_permission
from garden_logbook.services.change_log import record_entity_changes, snapshot
from garden_logbook.services.govee import GoveeAPIError, GoveeClient
from garden_logbook.services.units import fahrenheit_to_celsius
from garden_logbook.services.user_service import get_govee_api_key, set_govee_api_key
from garden_logbook.services.vpd import calculate_vpd, get_vpd_status
from garden_logbook.tasks.sensor_data import check_sensor_thresholds

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sensors", tags=["sensors"])


# ── API key ──────────────────────────────────────────────────────────────────


@router.post("/api-key", response_model=dict)
async def save_api_key(data: ApiKeyUpdate, current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    """Check the key against the Govee API, then store it encrypted."""
    try:
        devices = await GoveeClient(data.api_key).list_devices()
    except GoveeAPIError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid Govee API key: {exc}")
    await set_govee_api_key(db, current_user, data.api_key)
    return {"has_govee_api_key": True, "device_count": len(devices)}


@router.delete("/api-key", status_code=status.HTTP_204_NO_CONTENT)
async def delete_api_key(current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    await set_govee_api_key(db, current_user, None)


# ── Devices ──────────────────────────────────────────────────────────────────


@router.get("/devices", response_model=list[GoveeDeviceRead])
async def list_devices(current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        select(GoveeDevice).where(GoveeDevice.user_id == current_user.id).order_by(GoveeDevice.name)
    )
    return result.scalars().all()


@router.post("/discover", response_model=list[DiscoveredDevice])
async def discover_devices(current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    """Devices on the Govee account, flagged with whether they are already linked."""
    govee = GoveeClient(_require_api_key(current_user))
    try:
        devices = await govee.list_devices()
    except GoveeAPIError as exc:
        logger.warning("sensors: discovery failed for user %d: %s", current_user.id, exc)
        raise HTTPException(status_code=400, detail=str(exc))

    result = await db.execute(select(GoveeDevice.device_id).where(GoveeDevice.user_id == current_user.id))
    linked = set(result.scalars().all())
    return [DiscoveredDevice(**device, linked=device["device_id"] in linked) for device in devices]


@router.post("/link-device", response_model=GoveeDeviceRead, status_code=status.HTTP_201_CREATED)
async def link_device(data: DeviceLink, current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    if data.zone_id is not None:
        await _require_zone_edit(db, data.zone_id, current_user)
    if data.plant_id is not None:
        plant = await db.get(Plant, data.plant_id)
        if plant is None:
            raise HTTPException(status_code=404, detail="Plant not found")
        await require_permission(db, plant.garden_id, current_user, "EDIT")

    device = await db.scalar(
        select(GoveeDevice).where(GoveeDevice.user_id == current_user.id, GoveeDevice.device_id == data.device_id)
    )
    if device is None:
        device = GoveeDevice(user_id=current_user.id, device_id=data.device_id)
        db.add(device)
    device.sku = data.sku
    device.name = data.name or data.device_id
    device.zone_id = data.zone_id
    device.plant_id = data.plant_id
    device.is_active = True
    await db.commit()
    await db.refresh(device)
    return device


@router.post("/unlink-device", status_code=status.HTTP_204_NO_CONTENT)
async def unlink_device(data: DeviceUnlink, current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    device = await db.scalar(
        select(GoveeDevice).where(GoveeDevice.user_id == current_user.id, GoveeDevice.device_id == data.device_id)
    )
    if device is None:
        raise HTTPException(status_code=404, detail="Device not found")
    await db.delete(device)
    await db.commit()


@router.patch("/devices/{device_id}", response_model=GoveeDeviceRead)
async def update_device(
    device_id: int, data: DeviceThresholdUpdate, current_user: CurrentUser, db: AsyncSession = Depends(get_db)
):
    device = await _get_own_device(db, device_id, current_user.id)
    updates = data.model_dump(exclude_unset=True)
    if updates.get("zone_id") is not None:
        await _require_zone_edit(db, updates["zone_id"], current_user)
    for field, value in updates.items():
        setattr(device, field, value)
    await db.commit()
    await db.refresh(device)
    return device


@router.post(
    "/devices/{device_id}/readings", response_model=GoveeReadingRead, status_code=status.HTTP_201_CREATED
)
async def add_manual_reading(
    device_id: int, data: ManualReadingCreate, current_user: CurrentUser, db: AsyncSession = Depends(get_db)
):
    device = await _get_own_device(db, device_id, current_user.id)
    if data.temperature is None and data.humidity is None:
        raise HTTPException(status_code=400, detail="A temperature or humidity value is required")

    temperature = data.temperature
    if temperature is not None and data.unit == "F":
        temperature = round(fahrenheit_to_celsius(temperature), 2)
    vpd = calculate_vpd(temperature, data.humidity)

    now = datetime.now(timezone.utc)
    reading = GoveeReading(
        device_id=device.id,
        timestamp=now,
        temperature=temperature,
        humidity=data.humidity,
        vpd=None if math.isnan(vpd) else round(vpd, 3),
        source="MANUAL",
    )
    db.add(reading)
    await db.flush()
    await check_sensor_thresholds(db, device, reading, now)
    await db.commit()
    await db.refresh(reading)
    return reading


@router.get("/{device_id}/history", response_model=list[GoveeReadingRead])
async def device_history(
    device_id: int,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
    hours: int = Query(24, ge=1, le=24 * 90),
):
    await _get_own_device(db, device_id, current_user.id)
    since = datetime.now(timezone.utc) - timedelta(hours=hours)
    result = await db.execute(
        select(GoveeReading)
        .where(GoveeReading.device_id == device_id, GoveeReading.timestamp >= since)
        .order_by(GoveeReading.timestamp)
    )
    return result.scalars().all()


@router.get("/readings", response_model=list[LatestReading])
async def latest_readings(current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    """Latest reading per device, with VPD status for the linked plant's stage."""
    latest = (
        select(GoveeReading.device_id, func.max(GoveeReading.id).label("reading_id"))
        .group_by(GoveeReading.device_id)
        .subquery()
    )
    result = await db.execute(
        select(GoveeDevice, GoveeReading, Plant.stage)
        .outerjoin(latest, latest.c.device_id == GoveeDevice.id)
        .outerjoin(GoveeReading, GoveeReading.id == latest.c.reading_id)
        .outerjoin(Plant, Plant.id == GoveeDevice.plant_id)
        .where(GoveeDevice.user_id == current_user.id)
        .order_by(GoveeDevice.name)
    )

    items = []
    for device, reading, stage in result.all():
        vpd_status = None
        if reading is not None:
            vpd_status = get_vpd_status(reading.vpd if reading.vpd is not None else float("nan"), stage)
        items.append(LatestReading(
            device=GoveeDeviceRead.model_validate(device),
            reading=GoveeReadingRead.model_validate(reading) if reading is not None else None,
            vpd_status=vpd_status,
        ))
    return items


# ── Zone thresholds ──────────────────────────────────────────────────────────


@router.patch("/zones/{zone_id}", response_model=ZoneRead)
async def update_zone_thresholds(
    zone_id: int, data: ZoneThresholdUpdate, current_user: CurrentUser, db: AsyncSession = Depends(get_db)
):
    zone = await _require_zone_edit(db, zone_id, current_user)
    before = snapshot("zone", zone)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(zone, field, value)
    await db.commit()
    await db.refresh(zone)
    response = ZoneRead.model_validate(zone)
    await record_entity_changes(db, "zone", zone.id, zone.name, before, snapshot("zone", zone), current_user)
    return response


# ── Helpers ───────────────────────────────────────────────────────────────────


def _require_api_key(user: User) -> str:
    try:
        api_key = get_govee_api_key(user)
    except Exception:
        logger.exception("sensors: failed to decrypt API key for user %d", user.id)
        raise HTTPException(status_code=400, detail="Stored Govee API key could not be read, please save it again")
    if not api_key:
        raise HTTPException(status_code=400, detail="No Govee API key configured")
    return api_key


async def _get_own_device(db: AsyncSession, device_id: int, user_id: int) -> GoveeDevice:
    device = await db.get(GoveeDevice, device_id)
    if device is None or device.user_id != user_id:
        raise HTTPException(status_code=404, detail="Device not found")
    return device


async def _require_zone_edit(db: AsyncSession, zone_id: int, user: User) -> Zone:
    zone = await db.get(Zone, zone_id)
    if zone is None:
        raise HTTPException(status_code=404, detail="Zone not found")
    garden_id = await db.scalar(select(Room.garden_id).where(Room.id == zone.room_id))
    await require_permission(db, garden_id, user, "EDIT")
    return zone
