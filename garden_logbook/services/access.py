"""
Per-garden permission checks.

The creator holds every permission. Members hold the permissions stored on
their GardenMember row. Anyone else gets a 404 so that private gardens do not
leak their existence; a member lacking the needed permission gets a 403.
"""
from dataclasses import dataclass, field
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from garden_logbook.models.garden import RESOURCE_PERMISSIONS, Garden, GardenMember, Room, Zone
from garden_logbook.models.user import User

NOT_FOUND_DETAIL = "Garden not found or access denied"


@dataclass
class GardenAccess:
    garden: Garden
    is_creator: bool
    permissions: frozenset = field(default_factory=frozenset)

    def can(self, permission: str) -> bool:
        return self.is_creator or permission in self.permissions


async def get_garden_access(db: AsyncSession, garden_id: int, user: User) -> Optional[GardenAccess]:
    garden = await db.get(Garden, garden_id)
    if garden is None:
        return None
    if garden.creator_id == user.id:
        return GardenAccess(garden=garden, is_creator=True, permissions=frozenset(RESOURCE_PERMISSIONS))

    result = await db.execute(
        select(GardenMember).where(GardenMember.garden_id == garden_id, GardenMember.user_id == user.id)
    )
    member = result.scalar_one_or_none()
    if member is None:
        return None
    return GardenAccess(garden=garden, is_creator=False, permissions=frozenset(member.permissions or []))


async def require_permission(db: AsyncSession, garden_id: int, user: User, permission: str = "VIEW") -> GardenAccess:
    access = await get_garden_access(db, garden_id, user)
    if access is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND_DETAIL)
    if not access.can(permission):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"{permission} permission required",
        )
    return access


def accessible_garden_ids(user_id: int):
    """Subquery of garden ids the user created or is a member of."""
    member_gardens = select(GardenMember.garden_id).where(GardenMember.user_id == user_id)
    return select(Garden.id).where(or_(Garden.creator_id == user_id, Garden.id.in_(member_gardens)))


async def get_room_in_garden(db: AsyncSession, garden_id: int, room_id: int) -> Room:
    room = await db.get(Room, room_id)
    if room is None or room.garden_id != garden_id:
        raise HTTPException(status_code=404, detail="Room not found")
    return room


async def get_zone_in_room(db: AsyncSession, room_id: int, zone_id: int) -> Zone:
    zone = await db.get(Zone, zone_id)
    if zone is None or zone.room_id != room_id:
        raise HTTPException(status_code=404, detail="Zone not found")
    return zone


async def require_zone_permission(
    db: AsyncSession, user: User, garden_id: int, room_id: int, zone_id: int, permission: str = "VIEW"
) -> tuple[GardenAccess, Room, Zone]:
    access = await require_permission(db, garden_id, user, permission)
    room = await get_room_in_garden(db, garden_id, room_id)
    zone = await get_zone_in_room(db, room_id, zone_id)
    return access, room, zone
