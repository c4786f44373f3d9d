"""
In-app notification writer.

Notifications are deduplicated by ``dedup_key``: if any notification with the
same key (for any recipient) was created at or after ``since``, the batch is
skipped. Jobs choose ``since`` (a lookback window for weather and sensor
alerts, midnight UTC for maintenance reminders).
"""
import logging
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from garden_logbook.models.garden import Garden, GardenMember
from garden_logbook.models.logs import Notification
from garden_logbook.schemas.notification import NotificationMetaAdapter

logger = logging.getLogger(__name__)


async def get_garden_user_ids(db: AsyncSession, garden_id: int, extra_user_id: Optional[int] = None) -> list[int]:
    """Creator, then members, then ``extra_user_id`` (e.g. the plant owner), without duplicates."""
    creator_id = await db.scalar(select(Garden.creator_id).where(Garden.id == garden_id))
    result = await db.execute(
        select(GardenMember.user_id).where(GardenMember.garden_id == garden_id).order_by(GardenMember.id)
    )
    user_ids: list[int] = []
    for user_id in [creator_id, *result.scalars().all(), extra_user_id]:
        if user_id is not None and user_id not in user_ids:
            user_ids.append(user_id)
    return user_ids


async def has_recent_notification(db: AsyncSession, dedup_key: str, since: datetime) -> bool:
    result = await db.execute(
        select(Notification.id)
        .where(Notification.dedup_key == dedup_key, Notification.created_at >= since)
        .limit(1)
    )
    return result.scalar_one_or_none() is not None


async def create_notifications(
    db: AsyncSession,
    user_ids: Iterable[int],
    notification_type: str,
    title: str,
    message: str,
    meta: dict,
    link: Optional[str] = None,
    dedup_key: Optional[str] = None,
    since: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> list[Notification]:
    """
    Validate ``meta`` against the tagged union and add one row per recipient.

    Returns the new rows (empty when deduplicated). ``now`` stamps
    ``created_at`` so the dedup window follows the caller's clock. The caller
    commits.
    """
    if dedup_key and since is not None and await has_recent_notification(db, dedup_key, since):
        logger.info("notifications: %s already sent since %s, skipping", dedup_key, since.isoformat())
        return []

    validated = NotificationMetaAdapter.validate_python(meta)
    payload = validated.model_dump(mode="json", by_alias=True)

    created = []
    for user_id in user_ids:
        notification = Notification(
            user_id=user_id,
            notification_type=notification_type,
            title=title,
            message=message,
            link=link,
            meta=payload,
            dedup_key=dedup_key,
        )
        if now is not None:
            notification.created_at = now
        db.add(notification)
        created.append(notification)
    return created
