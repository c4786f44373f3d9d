from datetime import datetime, timezone

from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from garden_logbook.models.garden import Garden
from garden_logbook.models.logs import Notification


async def _user_id(client: AsyncClient, headers: dict) -> int:
    return (await client.get("/api/v1/users/me", headers=headers)).json()["id"]


def _weather(user_id: int, created_at: datetime, alert_types: list[str], garden_id: int = 1, **kwargs) -> Notification:
    return Notification(
        user_id=user_id,
        notification_type=kwargs.pop("notification_type", "WEATHER_ALERT"),
        title="Weather Alert for Tomato",
        message="Current weather conditions may affect Tomato",
        meta={"kind": "weather_alert", "alertTypes": alert_types, "gardenId": garden_id},
        created_at=created_at,
        **kwargs,
    )


async def test_list_unread_and_mark_read(client: AsyncClient, db: AsyncSession, register):
    headers = await register("reader@example.com")
    user_id = await _user_id(client, headers)
    now = datetime.now(timezone.utc)
    db.add_all([_weather(user_id, now, ["heat"]), _weather(user_id, now, ["frost"], read=True)])
    await db.commit()

    unread = await client.get("/api/v1/notifications", params={"unread": True}, headers=headers)
    assert len(unread.json()) == 1

    ids = [n["id"] for n in unread.json()]
    res = await client.patch("/api/v1/notifications", json={"ids": ids}, headers=headers)
    assert res.json() == {"updated": 1}

    unread = await client.get("/api/v1/notifications", params={"unread": True}, headers=headers)
    assert unread.json() == []


async def test_cannot_touch_someone_elses_notification(client: AsyncClient, db: AsyncSession, register):
    owner = await register("owner@example.com")
    other = await register("other@example.com")
    notification = _weather(await _user_id(client, owner), datetime.now(timezone.utc), ["heat"])
    db.add(notification)
    await db.commit()

    res = await client.delete(f"/api/v1/notifications/{notification.id}", headers=other)
    assert res.status_code == 404
    marked = await client.patch("/api/v1/notifications", json={"ids": [notification.id]}, headers=other)
    assert marked.json() == {"updated": 0}

    res = await client.delete(f"/api/v1/notifications/{notification.id}", headers=owner)
    assert res.status_code == 204


async def test_weather_calendar_groups_by_day(client: AsyncClient, db: AsyncSession, register):
    headers = await register("calendar@example.com")
    user_id = await _user_id(client, headers)
    db.add_all([
        _weather(user_id, datetime(2024, 7, 3, 9, 0, tzinfo=timezone.utc), ["heat"]),
        _weather(user_id, datetime(2024, 7, 3, 15, 0, tzinfo=timezone.utc), ["heat", "drought"]),
        _weather(
            user_id,
            datetime(2024, 7, 20, 6, 0, tzinfo=timezone.utc),
            ["heavyRain"],
            notification_type="WEATHER_FORECAST_ALERT",
        ),
        _weather(user_id, datetime(2024, 8, 1, 0, 0, tzinfo=timezone.utc), ["frost"]),
    ])
    await db.commit()

    res = await client.get("/api/v1/calendar/weather-alerts", params={"month": "2024-07"}, headers=headers)
    assert res.status_code == 200
    days = res.json()
    assert [d["date"] for d in days] == ["2024-07-03", "2024-07-20"]
    assert days[0]["alert_types"] == ["heat", "drought"]
    assert len(days[0]["notifications"]) == 2
    assert days[1]["alert_types"] == ["heavyRain"]


async def test_weather_calendar_rejects_bad_month(client: AsyncClient, register):
    headers = await register("calendar@example.com")
    res = await client.get("/api/v1/calendar/weather-alerts", params={"month": "2024-13"}, headers=headers)
    assert res.status_code == 400
    res = await client.get("/api/v1/calendar/weather-alerts", params={"month": "July"}, headers=headers)
    assert res.status_code == 400


async def test_garden_weather_alerts(client: AsyncClient, db: AsyncSession, register):
    headers = await register("gardener@example.com")
    created = await client.post("/api/v1/gardens", json={"name": "Backyard"}, headers=headers)
    garden_id = created.json()["id"]
    user_id = await _user_id(client, headers)

    garden = await db.get(Garden, garden_id)
    garden.weather_status = {"has_alerts": True, "alert_count": 1, "last_checked": "2024-07-03T09:00:00+00:00"}
    now = datetime.now(timezone.utc)
    db.add_all([_weather(user_id, now, ["heat"], garden_id=garden_id), _weather(user_id, now, ["wind"], garden_id=999)])
    await db.commit()

    res = await client.get(f"/api/v1/gardens/{garden_id}/weather-alerts", headers=headers)
    assert res.status_code == 200
    body = res.json()
    assert body["weather_status"]["alert_count"] == 1
    assert [n["meta"]["alertTypes"] for n in body["notifications"]] == [["heat"]]
