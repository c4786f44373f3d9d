"""
Maintenance reminder job.

Every incomplete task that is overdue or due within MAINTENANCE_LOOKAHEAD_DAYS
gets one MAINTENANCE_DUE notification per garden user per UTC day.

Urgency: OVERDUE (due today or earlier), URGENT (within 3 days), REMINDER.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from garden_logbook.core.config import settings
from garden_logbook.models.equipment import Equipment, MaintenanceTask
from garden_logbook.services.notifications import create_notifications, get_garden_user_ids

logger = logging.getLogger(__name__)

URGENT_WITHIN_DAYS = 3


def classify_urgency(days_until_due: int) -> str:
    if days_until_due <= 0:
        return "OVERDUE"
    if days_until_due <= URGENT_WITHIN_DAYS:
        return "URGENT"
    return "REMINDER"


def _due_phrase(days_until_due: int) -> str:
    if days_until_due < 0:
        overdue = -days_until_due
        return f"overdue by {overdue} day{'' if overdue == 1 else 's'}"
    if days_until_due == 0:
        return "due today"
    return f"due in {days_until_due} day{'' if days_until_due == 1 else 's'}"


_TITLES = {
    "OVERDUE": "Maintenance task overdue: {title}",
    "URGENT": "Maintenance task due soon: {title}",
    "REMINDER": "Maintenance task reminder: {title}",
}


async def check_maintenance_notifications(db: AsyncSession, now: Optional[datetime] = None) -> dict:
    now = now or datetime.now(timezone.utc)
    today = now.date()
    horizon = today + timedelta(days=settings.MAINTENANCE_LOOKAHEAD_DAYS)
    start_of_day = datetime(today.year, today.month, today.day, tzinfo=timezone.utc)
    summary = {"tasks_checked": 0, "notifications": 0, "errors": []}

    result = await db.execute(
        select(MaintenanceTask.id)
        .where(MaintenanceTask.completed.is_(False), MaintenanceTask.next_due_date <= horizon)
        .order_by(MaintenanceTask.next_due_date)
    )
    task_ids = list(result.scalars().all())
    logger.info("maintenance_notifications: %d tasks due by %s", len(task_ids), horizon.isoformat())

    for task_id in task_ids:
        try:
            row = (await db.execute(
                select(MaintenanceTask, Equipment)
                .join(Equipment, MaintenanceTask.equipment_id == Equipment.id)
                .where(MaintenanceTask.id == task_id)
            )).first()
            if row is None:
                continue
            task, equipment = row

            days_until_due = (task.next_due_date - today).days
            urgency = classify_urgency(days_until_due)
            user_ids = await get_garden_user_ids(db, equipment.garden_id)

            created = await create_notifications(
                db,
                user_ids,
                "MAINTENANCE_DUE",
                title=_TITLES[urgency].format(title=task.title),
                message=f'{equipment.name} maintenance task "{task.title}" is {_due_phrase(days_until_due)}.',
                link=(
                    f"/gardens/{equipment.garden_id}/rooms/{equipment.room_id}"
                    f"/zones/{equipment.zone_id}/equipment/{equipment.id}"
                ),
                meta={
                    "kind": "maintenance_due",
                    "task_id": task.id,
                    "equipment_id": equipment.id,
                    "garden_id": equipment.garden_id,
                    "days_until_due": days_until_due,
                    "urgency": urgency,
                    "due_date": task.next_due_date.isoformat(),
                },
                dedup_key=f"maintenance:{task.id}",
                since=start_of_day,
                now=now,
            )
            await db.commit()
            summary["tasks_checked"] += 1
            summary["notifications"] += len(created)
            if created:
                logger.info(
                    "maintenance_notifications: sent %d notifications for task %d (%s)",
                    len(created), task_id, urgency,
                )
        except Exception as exc:
            logger.exception("maintenance_notifications: failed for task %d", task_id)
            await db.rollback()
            summary["errors"].append({"task_id": task_id, "error": str(exc)})

    logger.info(
        "maintenance_notifications: complete, %d notifications, %d errors",
        summary["notifications"], len(summary["errors"]),
    )
    return summary
