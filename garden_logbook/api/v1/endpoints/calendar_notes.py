from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from garden_logbook.core.deps import CurrentUser, get_db
from garden_logbook.models.logs import CalendarNote
from garden_logbook.models.user import User
from garden_logbook.schemas.log import CalendarNoteCreate, CalendarNoteRead
from garden_logbook.services.access import (
    accessible_garden_ids,
    get_garden_access,
    get_room_in_garden,
    get_zone_in_room,
    require_permission,
)

router = APIRouter(prefix="/calendar-notes", tags=["calendar"])


@router.get("", response_model=list[CalendarNoteRead])
async def list_calendar_notes(
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
    note_date: Optional[date] = Query(None, alias="date"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    garden_id: Optional[int] = Query(None),
    room_id: Optional[int] = Query(None),
    zone_id: Optional[int] = Query(None),
):
    """The user's own notes plus shared notes from gardens they belong to, oldest first."""
    query = select(CalendarNote).where(or_(
        CalendarNote.user_id == current_user.id,
        and_(
            CalendarNote.is_private.is_(False),
            CalendarNote.garden_id.in_(accessible_garden_ids(current_user.id)),
        ),
    ))
    if note_date is not None:
        query = query.where(CalendarNote.note_date == note_date)
    if start_date is not None:
        query = query.where(CalendarNote.note_date >= start_date)
    if end_date is not None:
        query = query.where(CalendarNote.note_date <= end_date)
    if garden_id is not None:
        query = query.where(CalendarNote.garden_id == garden_id)
    if room_id is not None:
        query = query.where(CalendarNote.room_id == room_id)
    if zone_id is not None:
        query = query.where(CalendarNote.zone_id == zone_id)

    result = await db.execute(query.order_by(CalendarNote.note_date, CalendarNote.created_at, CalendarNote.id))
    return result.scalars().all()


@router.post("", response_model=CalendarNoteRead, status_code=status.HTTP_201_CREATED)
async def create_calendar_note(data: CalendarNoteCreate, current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    if data.garden_id is None and (data.room_id is not None or data.zone_id is not None):
        raise HTTPException(status_code=400, detail="garden_id is required when room_id or zone_id is given")
    if data.zone_id is not None and data.room_id is None:
        raise HTTPException(status_code=400, detail="room_id is required when zone_id is given")

    if data.garden_id is not None:
        await require_permission(db, data.garden_id, current_user, "EDIT")
        if data.room_id is not None:
            await get_room_in_garden(db, data.garden_id, data.room_id)
        if data.zone_id is not None:
            await get_zone_in_room(db, data.room_id, data.zone_id)

    note = CalendarNote(**data.model_dump(), user_id=current_user.id)
    db.add(note)
    await db.commit()
    await db.refresh(note)
    return note


@router.delete("/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_calendar_note(note_id: int, current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    note = await _get_visible_note(db, note_id, current_user)
    if note.user_id != current_user.id:
        raise HTTPException(status_code=403, detail="Only the author can delete this note")
    await db.delete(note)
    await db.commit()


async def _get_visible_note(db: AsyncSession, note_id: int, user: User) -> CalendarNote:
    note = await db.get(CalendarNote, note_id)
    if note is None:
        raise HTTPException(status_code=404, detail="Note not found")
    if note.user_id == user.id:
        return note
    if note.is_private or note.garden_id is None or await get_garden_access(db, note.garden_id, user) is None:
        raise HTTPException(status_code=404, detail="Note not found")
    return note
