from httpx import AsyncClient

from garden_logbook.services.govee import GoveeAPIError, GoveeClient

DEVICES = [
    {"device_id": "AA:BB:CC:DD", "sku": "H5075", "name": "Tent hygrometer"},
    {"device_id": "11:22:33:44", "sku": "H5179", "name": "Shed sensor"},
]


async def _list_devices(self):
    return DEVICES


async def _bad_key(self):
    raise GoveeAPIError("Govee API error: Unauthorized")


async def _zone(client: AsyncClient, headers: dict, **zone) -> int:
    gid = (await client.post("/api/v1/gardens", json={"name": "Indoor"}, headers=headers)).json()["id"]
    rid = (await client.post(f"/api/v1/gardens/{gid}/rooms", json={"name": "Tent"}, headers=headers)).json()["id"]
    res = await client.post(f"/api/v1/gardens/{gid}/rooms/{rid}/zones", json={"name": "Left", **zone}, headers=headers)
    return res.json()["id"]


async def test_save_api_key_validates_and_encrypts(client: AsyncClient, register, monkeypatch):
    monkeypatch.setattr(GoveeClient, "list_devices", _list_devices)
    headers = await register("sensors@example.com")

    res = await client.post("/api/v1/sensors/api-key", json={"api_key": "secret-key"}, headers=headers)
    assert res.status_code == 200
    assert res.json() == {"has_govee_api_key": True, "device_count": 2}

    me = await client.get("/api/v1/users/me", headers=headers)
    assert me.json()["has_govee_api_key"] is True

    res = await client.delete("/api/v1/sensors/api-key", headers=headers)
    assert res.status_code == 204
    me = await client.get("/api/v1/users/me", headers=headers)
    assert me.json()["has_govee_api_key"] is False


async def test_invalid_api_key_is_rejected(client: AsyncClient, register, monkeypatch):
    monkeypatch.setattr(GoveeClient, "list_devices", _bad_key)
    headers = await register("sensors@example.com")
    res = await client.post("/api/v1/sensors/api-key", json={"api_key": "nope"}, headers=headers)
    assert res.status_code == 400
    me = await client.get("/api/v1/users/me", headers=headers)
    assert me.json()["has_govee_api_key"] is False


async def test_discover_requires_api_key(client: AsyncClient, register):
    headers = await register("sensors@example.com")
    res = await client.post("/api/v1/sensors/discover", headers=headers)
    assert res.status_code == 400


async def test_discover_link_and_unlink(client: AsyncClient, register, monkeypatch):
    monkeypatch.setattr(GoveeClient, "list_devices", _list_devices)
    headers = await register("sensors@example.com")
    zone_id = await _zone(client, headers)
    await client.post("/api/v1/sensors/api-key", json={"api_key": "secret-key"}, headers=headers)

    linked = await client.post(
        "/api/v1/sensors/link-device",
        json={"device_id": "AA:BB:CC:DD", "sku": "H5075", "name": "Tent hygrometer", "zone_id": zone_id},
        headers=headers,
    )
    assert linked.status_code == 201
    assert linked.json()["zone_id"] == zone_id

    discovered = await client.post("/api/v1/sensors/discover", headers=headers)
    assert {d["device_id"]: d["linked"] for d in discovered.json()} == {
        "AA:BB:CC:DD": True,
        "11:22:33:44": False,
    }

    # Linking again updates the existing row
    relinked = await client.post(
        "/api/v1/sensors/link-device",
        json={"device_id": "AA:BB:CC:DD", "sku": "H5075", "name": "Renamed"},
        headers=headers,
    )
    assert relinked.json()["id"] == linked.json()["id"]
    assert relinked.json()["name"] == "Renamed"

    res = await client.post("/api/v1/sensors/unlink-device", json={"device_id": "AA:BB:CC:DD"}, headers=headers)
    assert res.status_code == 204
    devices = await client.get("/api/v1/sensors/devices", headers=headers)
    assert devices.json() == []


async def test_cannot_link_device_to_foreign_zone(client: AsyncClient, register):
    owner = await register("owner@example.com")
    intruder = await register("intruder@example.com")
    zone_id = await _zone(client, owner)
    res = await client.post(
        "/api/v1/sensors/link-device",
        json={"device_id": "AA:BB:CC:DD", "sku": "H5075", "zone_id": zone_id},
        headers=intruder,
    )
    assert res.status_code == 404


async def test_manual_reading_alerts_and_shows_latest(client: AsyncClient, register):
    headers = await register("sensors@example.com")
    zone_id = await _zone(client, headers, temp_max=30)
    device = await client.post(
        "/api/v1/sensors/link-device",
        json={"device_id": "AA:BB:CC:DD", "sku": "H5075", "name": "Tent hygrometer", "zone_id": zone_id},
        headers=headers,
    )
    device_id = device.json()["id"]

    reading = await client.post(
        f"/api/v1/sensors/devices/{device_id}/readings",
        json={"temperature": 87.8, "humidity": 50, "unit": "F"},
        headers=headers,
    )
    assert reading.status_code == 201
    assert reading.json()["temperature"] == 31.0
    assert reading.json()["source"] == "MANUAL"
    assert reading.json()["vpd"] is not None

    notifications = await client.get("/api/v1/notifications", headers=headers)
    [alert] = notifications.json()
    assert alert["notification_type"] == "SENSOR_ALERT"
    assert alert["meta"]["alertTypes"] == ["heat"]
    assert alert["meta"]["breaches"][0]["limit"] == 30

    latest = await client.get("/api/v1/sensors/readings", headers=headers)
    [item] = latest.json()
    assert item["reading"]["id"] == reading.json()["id"]
    assert item["vpd_status"]["status"] in ("optimal", "low", "high", "critical")

    history = await client.get(f"/api/v1/sensors/{device_id}/history", headers=headers)
    assert [r["id"] for r in history.json()] == [reading.json()["id"]]


async def test_device_and_zone_thresholds(client: AsyncClient, register):
    headers = await register("sensors@example.com")
    zone_id = await _zone(client, headers)
    device = await client.post(
        "/api/v1/sensors/link-device", json={"device_id": "AA:BB:CC:DD", "sku": "H5075"}, headers=headers
    )

    res = await client.patch(
        f"/api/v1/sensors/devices/{device.json()['id']}",
        json={"min_humidity": 40, "max_humidity": 70},
        headers=headers,
    )
    assert res.status_code == 200
    assert (res.json()["min_humidity"], res.json()["max_humidity"]) == (40, 70)

    zone = await client.patch(
        f"/api/v1/sensors/zones/{zone_id}", json={"temp_min": 18, "temp_max": 29}, headers=headers
    )
    assert zone.status_code == 200
    assert (zone.json()["temp_min"], zone.json()["temp_max"]) == (18, 29)
