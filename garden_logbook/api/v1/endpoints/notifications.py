import calendar
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from garden_logbook.core.deps import CurrentUser, get_db
from garden_logbook.models.logs import Notification
from garden_logbook.schemas.notification import (
    GardenWeatherAlerts,
    NotificationMarkRead,
    NotificationRead,
    WeatherAlertDay,
)
from garden_logbook.services.access import require_permission

router = APIRouter(tags=["notifications"])

WEATHER_NOTIFICATION_TYPES = ("WEATHER_ALERT", "WEATHER_FORECAST_ALERT")
GARDEN_ALERT_HISTORY_DAYS = 7


# ── Inbox ────────────────────────────────────────────────────────────────────


@router.get("/notifications", response_model=list[NotificationRead])
async def list_notifications(
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
    unread: bool = Query(False, description="Only unread notifications"),
    limit: int = Query(50, ge=1, le=200),
):
    query = select(Notification).where(Notification.user_id == current_user.id)
    if unread:
        query = query.where(Notification.read.is_(False))
    result = await db.execute(query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit))
    return result.scalars().all()


@router.patch("/notifications", response_model=dict)
async def mark_notifications(data: NotificationMarkRead, current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        update(Notification)
        .where(Notification.user_id == current_user.id, Notification.id.in_(data.ids))
        .values(read=data.read)
    )
    await db.commit()
    return {"updated": result.rowcount or 0}


@router.delete("/notifications/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_notification(notification_id: int, current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    notification = await db.get(Notification, notification_id)
    if notification is None or notification.user_id != current_user.id:
        raise HTTPException(status_code=404, detail="Notification not found")
    await db.delete(notification)
    await db.commit()


# ── Weather alert views ──────────────────────────────────────────────────────


@router.get("/calendar/weather-alerts", response_model=list[WeatherAlertDay])
async def weather_alert_calendar(
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
    month: Optional[str] = Query(None, pattern=r"^\d{4}-\d{2}$", description="YYYY-MM, defaults to this month"),
):
    """Weather notifications for one month, grouped by the UTC day they were created."""
    start, end = _month_bounds(month)
    result = await db.execute(
        select(Notification)
        .where(
            Notification.user_id == current_user.id,
            Notification.notification_type.in_(WEATHER_NOTIFICATION_TYPES),
            Notification.created_at >= start,
            Notification.created_at < end,
        )
        .order_by(Notification.created_at, Notification.id)
    )

    days: dict[str, list[Notification]] = defaultdict(list)
    for notification in result.scalars().all():
        days[_as_utc(notification.created_at).date().isoformat()].append(notification)

    calendar_days = []
    for day, notifications in sorted(days.items()):
        alert_types: list[str] = []
        for notification in notifications:
            for alert_type in (notification.meta or {}).get("alertTypes", []):
                if alert_type not in alert_types:
                    alert_types.append(alert_type)
        calendar_days.append(WeatherAlertDay(
            date=day,
            alert_types=alert_types,
            notifications=[NotificationRead.model_validate(n) for n in notifications],
        ))
    return calendar_days


@router.get("/gardens/{garden_id}/weather-alerts", response_model=GardenWeatherAlerts)
async def garden_weather_alerts(garden_id: int, current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    """The garden's last weather check plus the user's recent weather notifications for it."""
    access = await require_permission(db, garden_id, current_user, "VIEW")
    since = datetime.now(timezone.utc) - timedelta(days=GARDEN_ALERT_HISTORY_DAYS)
    result = await db.execute(
        select(Notification)
        .where(
            Notification.user_id == current_user.id,
            Notification.notification_type.in_(WEATHER_NOTIFICATION_TYPES),
            Notification.created_at >= since,
        )
        .order_by(Notification.created_at.desc())
    )
    notifications = [n for n in result.scalars().all() if (n.meta or {}).get("gardenId") == garden_id]
    return GardenWeatherAlerts(
        garden_id=garden_id,
        weather_status=access.garden.weather_status,
        notifications=[NotificationRead.model_validate(n) for n in notifications],
    )


def _month_bounds(month: Optional[str]) -> tuple[datetime, datetime]:
    if month is None:
        today = datetime.now(timezone.utc)
        year, month_number = today.year, today.month
    else:
        year, month_number = (int(part) for part in month.split("-"))
        if not 1 <= month_number <= 12:
            raise HTTPException(status_code=400, detail="Month must be in YYYY-MM format")
    start = datetime(year, month_number, 1, tzinfo=timezone.utc)
    days_in_month = calendar.monthrange(year, month_number)[1]
    return start, start + timedelta(days=days_in_month)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
