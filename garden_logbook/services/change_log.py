"""
Field-level change tracking for gardens, rooms, zones, plants and equipment.

Callers snapshot the entity before applying an update, commit the update, then
call record_entity_changes(). Recording is best effort: a failure is logged,
the log insert is rolled back, and the already-committed update stands.
"""
import logging
from datetime import date, datetime, timezone
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from garden_logbook.models.equipment import Equipment
from garden_logbook.models.garden import Garden, Room, Zone
from garden_logbook.models.logs import Log
from garden_logbook.models.plant import Plant
from garden_logbook.models.user import User

logger = logging.getLogger(__name__)

TRACKED_FIELDS: dict[str, tuple[str, ...]] = {
    "garden": ("name", "description", "is_private", "image_url", "zipcode", "timezone"),
    "room": ("name", "description", "room_type", "width", "length", "height"),
    "zone": (
        "name", "description", "zone_type",
        "temp_min", "temp_max", "humidity_min", "humidity_max", "weather_alert_source",
    ),
    "plant": (
        "name", "species", "variety", "plant_type", "stage",
        "start_date", "harvest_date", "notes", "sensitivities", "zone_id",
    ),
    "equipment": ("name", "equipment_type", "description", "purchase_date", "notes"),
}

PATH_SEPARATOR = " → "


def _jsonable(value: Any) -> Any:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def snapshot(entity_type: str, entity: Any) -> dict:
    return {f: _jsonable(getattr(entity, f, None)) for f in TRACKED_FIELDS[entity_type]}


def diff_tracked_fields(entity_type: str, before: dict, after: dict) -> list[dict]:
    changes = []
    for field in TRACKED_FIELDS[entity_type]:
        old, new = _jsonable(before.get(field)), _jsonable(after.get(field))
        if old != new:
            changes.append({"field": field, "oldValue": old, "newValue": new})
    return changes


def format_change_details(changes: list[dict]) -> str:
    parts = []
    for change in changes:
        label = change["field"].replace("_", " ").capitalize()
        old = change["oldValue"] if change["oldValue"] not in (None, "") else "empty"
        new = change["newValue"] if change["newValue"] not in (None, "") else "empty"
        parts.append(f"{label}: {old} → {new}")
    return " • ".join(parts)


async def _location(db: AsyncSession, entity_type: str, entity_id: int) -> Optional[tuple]:
    """Return (names, garden_id, room_id, zone_id) for the entity, outermost name first."""
    if entity_type == "garden":
        row = (await db.execute(select(Garden.name, Garden.id).where(Garden.id == entity_id))).first()
        return ([row[0]], row[1], None, None) if row else None

    if entity_type == "room":
        row = (await db.execute(
            select(Garden.name, Room.name, Garden.id, Room.id)
            .join(Room, Room.garden_id == Garden.id)
            .where(Room.id == entity_id)
        )).first()
        return ([row[0], row[1]], row[2], row[3], None) if row else None

    if entity_type == "zone":
        row = (await db.execute(
            select(Garden.name, Room.name, Zone.name, Garden.id, Room.id, Zone.id)
            .join(Room, Room.garden_id == Garden.id)
            .join(Zone, Zone.room_id == Room.id)
            .where(Zone.id == entity_id)
        )).first()
        return ([row[0], row[1], row[2]], row[3], row[4], row[5]) if row else None

    model = {"plant": Plant, "equipment": Equipment}.get(entity_type)
    if model is None:
        raise ValueError(f"Unknown entity type: {entity_type}")
    row = (await db.execute(
        select(Garden.name, Room.name, Zone.name, model.name, Garden.id, Room.id, Zone.id)
        .join(Room, Room.garden_id == Garden.id)
        .join(Zone, Zone.room_id == Room.id)
        .join(model, model.zone_id == Zone.id)
        .where(model.id == entity_id)
    )).first()
    return ([row[0], row[1], row[2], row[3]], row[4], row[5], row[6]) if row else None


async def resolve_entity_path(db: AsyncSession, entity_type: str, entity_id: int) -> str:
    """e.g. "Backyard → Greenhouse → Bench 1 → Tomato"."""
    location = await _location(db, entity_type, entity_id)
    if location is None:
        return "Unknown path"
    return PATH_SEPARATOR.join(location[0])


async def record_entity_changes(
    db: AsyncSession,
    entity_type: str,
    entity_id: int,
    entity_name: str,
    before: dict,
    after: dict,
    changed_by: User,
) -> Optional[Log]:
    changes = diff_tracked_fields(entity_type, before, after)
    if not changes:
        return None

    try:
        location = await _location(db, entity_type, entity_id)
        names, garden_id, room_id, zone_id = location or ([], None, None, None)
        log = Log(
            user_id=changed_by.id,
            garden_id=garden_id,
            room_id=room_id,
            zone_id=zone_id,
            log_type="CHANGE_LOG",
            notes=f"Changes made by {changed_by.name}",
            log_date=datetime.now(timezone.utc),
            data={
                "entityType": entity_type,
                "entityId": entity_id,
                "entityName": entity_name,
                "changes": changes,
                "path": PATH_SEPARATOR.join(names) if names else "Unknown path",
                "changedBy": {"id": changed_by.id, "name": changed_by.name, "email": changed_by.email},
                "changeDetails": format_change_details(changes),
            },
        )
        db.add(log)
        await db.commit()
        return log
    except Exception:
        logger.exception("change_log: failed to record %s %d", entity_type, entity_id)
        await db.rollback()
        return None
