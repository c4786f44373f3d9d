from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from garden_logbook.core.deps import CurrentUser, get_db
from garden_logbook.models.garden import Room, Zone
from garden_logbook.schemas.room import RoomCreate, RoomRead, RoomUpdate, ZoneCreate, ZoneRead, ZoneUpdate
from garden_logbook.services.access import get_room_in_garden, require_permission, require_zone_permission
from garden_logbook.services.change_log import record_entity_changes, snapshot

router = APIRouter(prefix="/gardens/{garden_id}/rooms", tags=["rooms"])


# ── Rooms ────────────────────────────────────────────────────────────────────


@router.get("", response_model=list[RoomRead])
async def list_rooms(garden_id: int, current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    await require_permission(db, garden_id, current_user, "VIEW")
    result = await db.execute(select(Room).where(Room.garden_id == garden_id).order_by(Room.name))
    return result.scalars().all()


@router.post("", response_model=RoomRead, status_code=status.HTTP_201_CREATED)
async def create_room(
    garden_id: int, data: RoomCreate, current_user: CurrentUser, db: AsyncSession = Depends(get_db)
):
    await require_permission(db, garden_id, current_user, "EDIT")
    room = Room(**data.model_dump(), garden_id=garden_id, creator_id=current_user.id)
    db.add(room)
    await db.commit()
    await db.refresh(room)
    return room


@router.get("/{room_id}", response_model=RoomRead)
async def get_room(garden_id: int, room_id: int, current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    await require_permission(db, garden_id, current_user, "VIEW")
    return await get_room_in_garden(db, garden_id, room_id)


@router.patch("/{room_id}", response_model=RoomRead)
async def update_room(
    garden_id: int, room_id: int, data: RoomUpdate, current_user: CurrentUser, db: AsyncSession = Depends(get_db)
):
    await require_permission(db, garden_id, current_user, "EDIT")
    room = await get_room_in_garden(db, garden_id, room_id)
    before = snapshot("room", room)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(room, field, value)
    await db.commit()
    await db.refresh(room)
    response = RoomRead.model_validate(room)
    await record_entity_changes(db, "room", room.id, room.name, before, snapshot("room", room), current_user)
    return response


@router.delete("/{room_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_room(garden_id: int, room_id: int, current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    await require_permission(db, garden_id, current_user, "DELETE")
    room = await get_room_in_garden(db, garden_id, room_id)
    await db.delete(room)
    await db.commit()


# ── Zones ────────────────────────────────────────────────────────────────────


@router.get("/{room_id}/zones", response_model=list[ZoneRead])
async def list_zones(garden_id: int, room_id: int, current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    await require_permission(db, garden_id, current_user, "VIEW")
    await get_room_in_garden(db, garden_id, room_id)
    result = await db.execute(select(Zone).where(Zone.room_id == room_id).order_by(Zone.name))
    return result.scalars().all()


@router.post("/{room_id}/zones", response_model=ZoneRead, status_code=status.HTTP_201_CREATED)
async def create_zone(
    garden_id: int, room_id: int, data: ZoneCreate, current_user: CurrentUser, db: AsyncSession = Depends(get_db)
):
    await require_permission(db, garden_id, current_user, "EDIT")
    await get_room_in_garden(db, garden_id, room_id)
    zone = Zone(**data.model_dump(), room_id=room_id, creator_id=current_user.id)
    db.add(zone)
    await db.commit()
    await db.refresh(zone)
    return zone


@router.get("/{room_id}/zones/{zone_id}", response_model=ZoneRead)
async def get_zone(
    garden_id: int, room_id: int, zone_id: int, current_user: CurrentUser, db: AsyncSession = Depends(get_db)
):
    _, _, zone = await require_zone_permission(db, current_user, garden_id, room_id, zone_id, "VIEW")
    return zone


@router.patch("/{room_id}/zones/{zone_id}", response_model=ZoneRead)
async def update_zone(
    garden_id: int,
    room_id: int,
    zone_id: int,
    data: ZoneUpdate,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
):
    _, _, zone = await require_zone_permission(db, current_user, garden_id, room_id, zone_id, "EDIT")
    before = snapshot("zone", zone)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(zone, field, value)
    await db.commit()
    await db.refresh(zone)
    response = ZoneRead.model_validate(zone)
    await record_entity_changes(db, "zone", zone.id, zone.name, before, snapshot("zone", zone), current_user)
    return response


@router.delete("/{room_id}/zones/{zone_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_zone(
    garden_id: int, room_id: int, zone_id: int, current_user: CurrentUser, db: AsyncSession = Depends(get_db)
):
    _, _, zone = await require_zone_permission(db, current_user, garden_id, room_id, zone_id, "DELETE")
    await db.delete(zone)
    await db.commit()
