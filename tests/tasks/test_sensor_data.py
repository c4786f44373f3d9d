import json
from datetime import datetime, timedelta, timezone

import httpx
import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from garden_logbook.models.logs import Log, Notification
from garden_logbook.models.sensor import GoveeDevice, GoveeReading
from garden_logbook.tasks.sensor_data import fetch_and_store_sensor_data


def _govee(states: dict[str, dict]) -> httpx.AsyncClient:
    """Answer /device/state with the canned capabilities for each device id."""

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["Govee-API-Key"] == "govee-key"
        device = json.loads(request.content)["payload"]["device"]
        state = states[device]
        if "error" in state:
            return httpx.Response(400, json={"code": 400, "msg": state["error"]})
        capabilities = [
            {"type": "devices.capabilities.property", "instance": instance, "state": {"value": value}}
            for instance, value in state.items()
        ]
        return httpx.Response(200, json={"code": 200, "payload": {"sku": "H5075", "device": device, "capabilities": capabilities}})

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


async def _device(db: AsyncSession, tree, vendor_id: str = "AA:BB", **thresholds) -> GoveeDevice:
    device = GoveeDevice(
        user_id=tree.user.id, zone_id=tree.zone.id, device_id=vendor_id, sku="H5075", name="Bench sensor", **thresholds
    )
    db.add(device)
    await db.commit()
    return device


async def _count(db: AsyncSession, model, *where) -> int:
    return await db.scalar(select(func.count()).select_from(model).where(*where))


@pytest.mark.parametrize("temp_f", [87.8, 86.0])
async def test_zone_max_breach_alerts_once(db: AsyncSession, garden_tree, temp_f):
    device = await _device(db, garden_tree)
    client = _govee({"AA:BB": {"sensorTemperature": temp_f, "sensorHumidity": 50, "battery": 90}})
    now = datetime.now(timezone.utc)

    results = await fetch_and_store_sensor_data(db, now=now, client=client)

    assert results["AA:BB"]["alerts"] == ["heat"]
    assert results["AA:BB"]["battery"] == 90
    notifications = (await db.execute(select(Notification))).scalars().all()
    assert len(notifications) == 1
    assert notifications[0].notification_type == "SENSOR_ALERT"
    assert notifications[0].dedup_key == f"sensor:{device.id}:heat"
    assert notifications[0].meta["breaches"] == [
        {"type": "heat", "value": results["AA:BB"]["temperature"], "bound": "max", "limit": 30.0}
    ]
    assert await _count(db, Log, Log.log_type == "ENVIRONMENTAL") == 1

    await db.refresh(device)
    assert device.is_online is True
    assert device.battery_level == 90


async def test_repeat_breach_inside_lookback_is_not_renotified(db: AsyncSession, garden_tree):
    await _device(db, garden_tree)
    client = _govee({"AA:BB": {"sensorTemperature": 95.0, "sensorHumidity": 50}})
    now = datetime.now(timezone.utc)

    await fetch_and_store_sensor_data(db, now=now, client=client)
    await fetch_and_store_sensor_data(db, now=now + timedelta(hours=1), client=client)
    assert await _count(db, Notification) == 1
    assert await _count(db, GoveeReading) == 2
    assert await _count(db, Log, Log.log_type == "ENVIRONMENTAL") == 1

    await fetch_and_store_sensor_data(db, now=now + timedelta(hours=5), client=client)
    assert await _count(db, Notification) == 2


async def test_reading_inside_range_stores_without_alert(db: AsyncSession, garden_tree):
    await _device(db, garden_tree, min_humidity=40, max_humidity=70)
    client = _govee({"AA:BB": {"sensorTemperature": 75.2, "sensorHumidity": 55}})

    results = await fetch_and_store_sensor_data(db, client=client)

    assert results["AA:BB"]["temperature"] == 24.0
    assert results["AA:BB"]["vpd"] is not None
    assert results["AA:BB"]["alerts"] == []
    assert await _count(db, Notification) == 0


async def test_device_threshold_breach_uses_humidity_types(db: AsyncSession, garden_tree):
    await _device(db, garden_tree, max_humidity=70)
    client = _govee({"AA:BB": {"sensorTemperature": 68.0, "sensorHumidity": 82}})

    results = await fetch_and_store_sensor_data(db, client=client)

    assert results["AA:BB"]["alerts"] == ["humidityHigh"]


async def test_failing_device_is_marked_offline_and_batch_continues(db: AsyncSession, garden_tree):
    broken = await _device(db, garden_tree, vendor_id="BROKEN")
    await _device(db, garden_tree, vendor_id="GOOD")
    broken.is_online = True
    await db.commit()
    client = _govee({
        "BROKEN": {"error": "Device offline"},
        "GOOD": {"sensorTemperature": 70.0, "sensorHumidity": 50},
    })

    results = await fetch_and_store_sensor_data(db, client=client)

    assert results["BROKEN"] == {"error": "Govee API error: Device offline"}
    assert "reading_id" in results["GOOD"]
    await db.refresh(broken)
    assert broken.is_online is False


async def test_undecryptable_key_is_reported_per_device(db: AsyncSession, garden_tree):
    await _device(db, garden_tree)
    garden_tree.user.encrypted_govee_api_key = "not:valid:ciphertext"
    await db.commit()

    results = await fetch_and_store_sensor_data(db, client=_govee({}))

    assert results == {"AA:BB": {"error": "Failed to decrypt API key"}}
