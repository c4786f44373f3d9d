from types import SimpleNamespace

import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

from garden_logbook.core.crypto import encrypt
from garden_logbook.models.garden import Garden, Room, Zone
from garden_logbook.models.user import User


@pytest_asyncio.fixture
async def garden_tree(db: AsyncSession) -> SimpleNamespace:
    """A user owning Backyard → Greenhouse → Bench, with a stored Govee key."""
    user = User(
        first_name="Gail",
        last_name="Grower",
        email="gail@example.com",
        hashed_password="not-a-real-hash",
        encrypted_govee_api_key=encrypt("govee-key"),
    )
    db.add(user)
    await db.flush()
    garden = Garden(name="Backyard", creator_id=user.id, zipcode="60601", timezone="America/Chicago")
    db.add(garden)
    await db.flush()
    room = Room(name="Greenhouse", garden_id=garden.id)
    db.add(room)
    await db.flush()
    zone = Zone(name="Bench", room_id=room.id, temp_max=30)
    db.add(zone)
    await db.commit()
    return SimpleNamespace(user=user, garden=garden, room=room, zone=zone)
