"""
Maintenance task recurrence.

Month arithmetic clamps to the last day of the target month, so a monthly
task completed on Jan 31 is next due Feb 28/29.
"""
import calendar
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from garden_logbook.models.equipment import Equipment, MaintenanceTask
from garden_logbook.models.logs import Log

_DAY_STEPS = {
    "Daily": 1,
    "Weekly": 7,
}
_MONTH_STEPS = {
    "Monthly": 1,
    "Every 3 Months": 3,
    "Every 6 Months": 6,
    "Annually": 12,
}


def add_months(base: date, months: int) -> date:
    month_index = base.month - 1 + months
    year = base.year + month_index // 12
    month = month_index % 12 + 1
    day = min(base.day, calendar.monthrange(year, month)[1])
    return base.replace(year=year, month=month, day=day)


def calculate_next_due_date(base: date, frequency: Optional[str]) -> date:
    if frequency in _DAY_STEPS:
        return base + timedelta(days=_DAY_STEPS[frequency])
    return add_months(base, _MONTH_STEPS.get(frequency, 1))


async def last_maintenance_log_date(db: AsyncSession, equipment_id: int) -> Optional[date]:
    result = await db.execute(
        select(Log.log_date)
        .where(Log.equipment_id == equipment_id, Log.log_type == "MAINTENANCE_TASK")
        .order_by(Log.log_date.desc())
        .limit(1)
    )
    latest = result.scalar_one_or_none()
    if latest is None:
        return None
    return latest.date() if isinstance(latest, datetime) else latest


async def complete_task(
    db: AsyncSession,
    task: MaintenanceTask,
    equipment: Equipment,
    user_id: int,
    completed_on: Optional[date] = None,
    notes: Optional[str] = None,
) -> MaintenanceTask:
    """
    Mark a task done and roll next_due_date forward.

    The base date is ``completed_on`` if given, else the latest MAINTENANCE_TASK
    log for the equipment, else the day the task was created. A MAINTENANCE_TASK
    log is written for the completion.
    """
    base = completed_on
    if base is None:
        base = await last_maintenance_log_date(db, equipment.id)
    if base is None:
        base = task.created_at.date()

    task.last_completed_date = base
    task.next_due_date = calculate_next_due_date(base, task.frequency)
    task.completed = False

    db.add(Log(
        user_id=user_id,
        garden_id=equipment.garden_id,
        room_id=equipment.room_id,
        zone_id=equipment.zone_id,
        equipment_id=equipment.id,
        log_type="MAINTENANCE_TASK",
        notes=notes or f"Completed maintenance task: {task.title}",
        log_date=datetime.combine(base, datetime.min.time(), tzinfo=timezone.utc),
        data={
            "taskId": task.id,
            "title": task.title,
            "frequency": task.frequency,
            "completedDate": base.isoformat(),
            "nextDueDate": task.next_due_date.isoformat(),
        },
    ))
    await db.commit()
    await db.refresh(task)
    return task
