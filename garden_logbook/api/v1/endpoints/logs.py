from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from garden_logbook.core.deps import CurrentUser, get_db
from garden_logbook.models.garden import Garden, Room, Zone
from garden_logbook.models.logs import LOG_TYPES, Log
from garden_logbook.models.plant import Plant
from garden_logbook.schemas.log import LogCreate, LogDeleteResult, LogRead, LogUpdate
from garden_logbook.services.access import require_permission

router = APIRouter(prefix="/logs", tags=["logs"])


@router.get("", response_model=list[LogRead])
async def list_logs(
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
    log_type: Optional[str] = Query(None, alias="type"),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    location: Optional[str] = Query(None, description="Partial match on garden, room, zone or plant name"),
    garden_id: Optional[int] = Query(None),
    plant_id: Optional[int] = Query(None),
    equipment_id: Optional[int] = Query(None),
    limit: int = Query(50, ge=1, le=500),
):
    """The current user's logs, newest first."""
    if log_type and log_type not in LOG_TYPES:
        raise HTTPException(status_code=400, detail=f"Unknown log type: {log_type}")

    query = select(Log).where(Log.user_id == current_user.id)
    if log_type:
        query = query.where(Log.log_type == log_type)
    if start_date:
        query = query.where(Log.log_date >= start_date)
    if end_date:
        query = query.where(Log.log_date <= end_date)
    if garden_id is not None:
        query = query.where(Log.garden_id == garden_id)
    if plant_id is not None:
        query = query.where(Log.plant_id == plant_id)
    if equipment_id is not None:
        query = query.where(Log.equipment_id == equipment_id)
    if location:
        pattern = f"%{location}%"
        query = (
            query.outerjoin(Garden, Log.garden_id == Garden.id)
            .outerjoin(Room, Log.room_id == Room.id)
            .outerjoin(Zone, Log.zone_id == Zone.id)
            .outerjoin(Plant, Log.plant_id == Plant.id)
            .where(or_(
                Garden.name.ilike(pattern),
                Room.name.ilike(pattern),
                Zone.name.ilike(pattern),
                Plant.name.ilike(pattern),
            ))
        )

    result = await db.execute(query.order_by(Log.log_date.desc(), Log.id.desc()).limit(limit))
    return result.scalars().all()


@router.post("", response_model=LogRead, status_code=status.HTTP_201_CREATED)
async def create_log(data: LogCreate, current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    values = data.model_dump()

    # A plant pins the log to the plant's location
    if data.plant_id is not None:
        plant = await db.get(Plant, data.plant_id)
        if plant is None:
            raise HTTPException(status_code=404, detail="Plant not found")
        values.update(garden_id=plant.garden_id, room_id=plant.room_id, zone_id=plant.zone_id)
        if values["stage"] is None:
            values["stage"] = plant.stage

    if values["garden_id"] is not None:
        await require_permission(db, values["garden_id"], current_user, "EDIT")
    if values["log_date"] is None:
        values["log_date"] = datetime.now(timezone.utc)

    log = Log(**values, user_id=current_user.id)
    db.add(log)
    await db.commit()
    await db.refresh(log)
    return log


@router.delete("", response_model=LogDeleteResult)
async def delete_all_logs(current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    """Delete every log the current user wrote."""
    result = await db.execute(delete(Log).where(Log.user_id == current_user.id))
    await db.commit()
    return LogDeleteResult(deleted=result.rowcount or 0)


@router.get("/{log_id}", response_model=LogRead)
async def get_log(log_id: int, current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    return await _get_own_log(db, log_id, current_user.id)


@router.patch("/{log_id}", response_model=LogRead)
async def update_log(
    log_id: int, data: LogUpdate, current_user: CurrentUser, db: AsyncSession = Depends(get_db)
):
    log = await _get_own_log(db, log_id, current_user.id)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(log, field, value)
    await db.commit()
    await db.refresh(log)
    return log


@router.delete("/{log_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_log(log_id: int, current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    log = await _get_own_log(db, log_id, current_user.id)
    await db.delete(log)
    await db.commit()


async def _get_own_log(db: AsyncSession, log_id: int, user_id: int) -> Log:
    log = await db.get(Log, log_id)
    if log is None or log.user_id != user_id:
        raise HTTPException(status_code=404, detail="Log not found")
    return log
