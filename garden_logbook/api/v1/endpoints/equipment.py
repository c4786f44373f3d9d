from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from garden_logbook.core.deps import CurrentUser, get_db
from garden_logbook.models.equipment import Equipment, MaintenanceTask
from garden_logbook.models.logs import Log
from garden_logbook.schemas.equipment import (
    EquipmentCreate,
    EquipmentDetail,
    EquipmentRead,
    EquipmentUpdate,
    MaintenanceTaskComplete,
    MaintenanceTaskCreate,
    MaintenanceTaskRead,
)
from garden_logbook.schemas.log import LogRead
from garden_logbook.services.access import require_zone_permission
from garden_logbook.services.change_log import record_entity_changes, snapshot
from garden_logbook.services.maintenance import complete_task

router = APIRouter(
    prefix="/gardens/{garden_id}/rooms/{room_id}/zones/{zone_id}/equipment", tags=["equipment"]
)


# ── Equipment ────────────────────────────────────────────────────────────────


@router.get("", response_model=list[EquipmentDetail])
async def list_equipment(
    garden_id: int, room_id: int, zone_id: int, current_user: CurrentUser, db: AsyncSession = Depends(get_db)
):
    await require_zone_permission(db, current_user, garden_id, room_id, zone_id, "VIEW")
    result = await db.execute(
        select(Equipment)
        .options(selectinload(Equipment.maintenance_tasks))
        .where(Equipment.zone_id == zone_id)
        .order_by(Equipment.name)
    )
    return result.scalars().all()


@router.post("", response_model=EquipmentRead, status_code=status.HTTP_201_CREATED)
async def create_equipment(
    garden_id: int,
    room_id: int,
    zone_id: int,
    data: EquipmentCreate,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
):
    await require_zone_permission(db, current_user, garden_id, room_id, zone_id, "EDIT")
    equipment = Equipment(**data.model_dump(), garden_id=garden_id, room_id=room_id, zone_id=zone_id)
    db.add(equipment)
    await db.commit()
    await db.refresh(equipment)
    return equipment


@router.get("/{equipment_id}", response_model=EquipmentDetail)
async def get_equipment(
    garden_id: int,
    room_id: int,
    zone_id: int,
    equipment_id: int,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
):
    await require_zone_permission(db, current_user, garden_id, room_id, zone_id, "VIEW")
    return await _get_equipment(db, zone_id, equipment_id, with_tasks=True)


@router.get("/{equipment_id}/logs", response_model=list[LogRead])
async def list_equipment_logs(
    garden_id: int,
    room_id: int,
    zone_id: int,
    equipment_id: int,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
):
    """Every garden user's logs for this piece of equipment, newest first."""
    await require_zone_permission(db, current_user, garden_id, room_id, zone_id, "VIEW")
    await _get_equipment(db, zone_id, equipment_id)
    result = await db.execute(
        select(Log)
        .where(Log.equipment_id == equipment_id, Log.garden_id == garden_id)
        .order_by(Log.log_date.desc(), Log.id.desc())
    )
    return result.scalars().all()


@router.patch("/{equipment_id}", response_model=EquipmentRead)
async def update_equipment(
    garden_id: int,
    room_id: int,
    zone_id: int,
    equipment_id: int,
    data: EquipmentUpdate,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
):
    await require_zone_permission(db, current_user, garden_id, room_id, zone_id, "EDIT")
    equipment = await _get_equipment(db, zone_id, equipment_id)
    before = snapshot("equipment", equipment)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(equipment, field, value)
    await db.commit()
    await db.refresh(equipment)
    response = EquipmentRead.model_validate(equipment)
    await record_entity_changes(
        db, "equipment", equipment.id, equipment.name, before, snapshot("equipment", equipment), current_user
    )
    return response


@router.post("/{equipment_id}/duplicate", response_model=EquipmentDetail, status_code=status.HTTP_201_CREATED)
async def duplicate_equipment(
    garden_id: int,
    room_id: int,
    zone_id: int,
    equipment_id: int,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
):
    """Copy the equipment and its maintenance schedule (completion history is not copied)."""
    await require_zone_permission(db, current_user, garden_id, room_id, zone_id, "EDIT")
    source = await _get_equipment(db, zone_id, equipment_id, with_tasks=True)
    copy = Equipment(
        garden_id=garden_id,
        room_id=room_id,
        zone_id=zone_id,
        name=f"{source.name} (Copy)"[:100],
        equipment_type=source.equipment_type,
        description=source.description,
        purchase_date=source.purchase_date,
        notes=source.notes,
        maintenance_tasks=[
            MaintenanceTask(
                title=task.title,
                description=task.description,
                frequency=task.frequency,
                next_due_date=task.next_due_date,
                notes=task.notes,
            )
            for task in source.maintenance_tasks
        ],
    )
    db.add(copy)
    await db.commit()
    return await _get_equipment(db, zone_id, copy.id, with_tasks=True)


@router.delete("/{equipment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_equipment(
    garden_id: int,
    room_id: int,
    zone_id: int,
    equipment_id: int,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
):
    await require_zone_permission(db, current_user, garden_id, room_id, zone_id, "DELETE")
    equipment = await _get_equipment(db, zone_id, equipment_id)
    await db.delete(equipment)
    await db.commit()


# ── Maintenance tasks ────────────────────────────────────────────────────────


@router.post(
    "/{equipment_id}/maintenance", response_model=MaintenanceTaskRead, status_code=status.HTTP_201_CREATED
)
async def create_maintenance_task(
    garden_id: int,
    room_id: int,
    zone_id: int,
    equipment_id: int,
    data: MaintenanceTaskCreate,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
):
    await require_zone_permission(db, current_user, garden_id, room_id, zone_id, "EDIT")
    await _get_equipment(db, zone_id, equipment_id)
    task = MaintenanceTask(**data.model_dump(), equipment_id=equipment_id)
    db.add(task)
    await db.commit()
    await db.refresh(task)
    return task


@router.put("/{equipment_id}/maintenance/{task_id}", response_model=MaintenanceTaskRead)
async def complete_maintenance_task(
    garden_id: int,
    room_id: int,
    zone_id: int,
    equipment_id: int,
    task_id: int,
    data: MaintenanceTaskComplete,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
):
    """Record a completion and schedule the next occurrence."""
    await require_zone_permission(db, current_user, garden_id, room_id, zone_id, "EDIT")
    equipment = await _get_equipment(db, zone_id, equipment_id)
    task = await _get_task(db, equipment_id, task_id)
    return await complete_task(
        db, task, equipment, current_user.id, completed_on=data.completed_date, notes=data.notes
    )


@router.delete("/{equipment_id}/maintenance/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_maintenance_task(
    garden_id: int,
    room_id: int,
    zone_id: int,
    equipment_id: int,
    task_id: int,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
):
    await require_zone_permission(db, current_user, garden_id, room_id, zone_id, "DELETE")
    await _get_equipment(db, zone_id, equipment_id)
    task = await _get_task(db, equipment_id, task_id)
    await db.delete(task)
    await db.commit()


# ── Helpers ───────────────────────────────────────────────────────────────────


async def _get_equipment(db: AsyncSession, zone_id: int, equipment_id: int, with_tasks: bool = False) -> Equipment:
    query = select(Equipment).where(Equipment.id == equipment_id, Equipment.zone_id == zone_id)
    if with_tasks:
        query = query.options(selectinload(Equipment.maintenance_tasks)).execution_options(populate_existing=True)
    equipment = (await db.execute(query)).scalar_one_or_none()
    if equipment is None:
        raise HTTPException(status_code=404, detail="Equipment not found")
    return equipment


async def _get_task(db: AsyncSession, equipment_id: int, task_id: int) -> MaintenanceTask:
    task = await db.get(MaintenanceTask, task_id)
    if task is None or task.equipment_id != equipment_id:
        raise HTTPException(status_code=404, detail="Maintenance task not found")
    return task
