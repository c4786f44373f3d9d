from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from garden_logbook.core.deps import CurrentUser, get_db
from garden_logbook.models.plant import Plant
from garden_logbook.schemas.plant import GrowthStage, PlantCreate, PlantRead, PlantUpdate
from garden_logbook.services.access import accessible_garden_ids, require_zone_permission
from garden_logbook.services.change_log import record_entity_changes, snapshot

router = APIRouter(prefix="/gardens/{garden_id}/rooms/{room_id}/zones/{zone_id}/plants", tags=["plants"])
all_router = APIRouter(prefix="/plants", tags=["plants"])

_COPY_FIELDS = (
    "species", "variety", "plant_type", "stage", "start_date", "harvest_date", "notes", "sensitivities",
)


@all_router.get("", response_model=list[PlantRead])
async def list_visible_plants(
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
    garden_id: Optional[int] = Query(None),
    stage: Optional[GrowthStage] = Query(None),
    name: Optional[str] = Query(None, description="Partial match on name"),
):
    """Every plant in a garden the user created or belongs to."""
    query = select(Plant).where(Plant.garden_id.in_(accessible_garden_ids(current_user.id)))
    if garden_id is not None:
        query = query.where(Plant.garden_id == garden_id)
    if stage:
        query = query.where(Plant.stage == stage)
    if name:
        query = query.where(Plant.name.ilike(f"%{name}%"))
    result = await db.execute(query.order_by(Plant.name, Plant.id))
    return result.scalars().all()


@router.get("", response_model=list[PlantRead])
async def list_plants(
    garden_id: int, room_id: int, zone_id: int, current_user: CurrentUser, db: AsyncSession = Depends(get_db)
):
    await require_zone_permission(db, current_user, garden_id, room_id, zone_id, "VIEW")
    result = await db.execute(select(Plant).where(Plant.zone_id == zone_id).order_by(Plant.name))
    return result.scalars().all()


@router.post("", response_model=PlantRead, status_code=status.HTTP_201_CREATED)
async def create_plant(
    garden_id: int,
    room_id: int,
    zone_id: int,
    data: PlantCreate,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
):
    await require_zone_permission(db, current_user, garden_id, room_id, zone_id, "EDIT")
    plant = Plant(
        **data.model_dump(exclude={"sensitivities"}),
        sensitivities=data.sensitivities.model_dump(exclude_none=True) if data.sensitivities else None,
        garden_id=garden_id,
        room_id=room_id,
        zone_id=zone_id,
        user_id=current_user.id,
    )
    db.add(plant)
    await db.commit()
    await db.refresh(plant)
    return plant


@router.get("/{plant_id}", response_model=PlantRead)
async def get_plant(
    garden_id: int,
    room_id: int,
    zone_id: int,
    plant_id: int,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
):
    await require_zone_permission(db, current_user, garden_id, room_id, zone_id, "VIEW")
    return await _get_plant(db, zone_id, plant_id)


@router.patch("/{plant_id}", response_model=PlantRead)
async def update_plant(
    garden_id: int,
    room_id: int,
    zone_id: int,
    plant_id: int,
    data: PlantUpdate,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
):
    await require_zone_permission(db, current_user, garden_id, room_id, zone_id, "EDIT")
    plant = await _get_plant(db, zone_id, plant_id)
    before = snapshot("plant", plant)

    updates = data.model_dump(exclude_unset=True)
    if "sensitivities" in updates:
        updates["sensitivities"] = (
            data.sensitivities.model_dump(exclude_none=True) if data.sensitivities else None
        )
    for field, value in updates.items():
        setattr(plant, field, value)

    await db.commit()
    await db.refresh(plant)
    response = PlantRead.model_validate(plant)
    await record_entity_changes(db, "plant", plant.id, plant.name, before, snapshot("plant", plant), current_user)
    return response


@router.post("/{plant_id}/duplicate", response_model=PlantRead, status_code=status.HTTP_201_CREATED)
async def duplicate_plant(
    garden_id: int,
    room_id: int,
    zone_id: int,
    plant_id: int,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
):
    await require_zone_permission(db, current_user, garden_id, room_id, zone_id, "EDIT")
    source = await _get_plant(db, zone_id, plant_id)
    copy = Plant(
        **{f: getattr(source, f) for f in _COPY_FIELDS},
        name=f"{source.name} (Copy)"[:100],
        garden_id=garden_id,
        room_id=room_id,
        zone_id=zone_id,
        user_id=current_user.id,
    )
    db.add(copy)
    await db.commit()
    await db.refresh(copy)
    return copy


@router.delete("/{plant_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_plant(
    garden_id: int,
    room_id: int,
    zone_id: int,
    plant_id: int,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
):
    await require_zone_permission(db, current_user, garden_id, room_id, zone_id, "DELETE")
    plant = await _get_plant(db, zone_id, plant_id)
    await db.delete(plant)
    await db.commit()


async def _get_plant(db: AsyncSession, zone_id: int, plant_id: int) -> Plant:
    plant = await db.get(Plant, plant_id)
    if plant is None or plant.zone_id != zone_id:
        raise HTTPException(status_code=404, detail="Plant not found")
    return plant
