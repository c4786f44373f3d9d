from httpx import AsyncClient


async def _zone(client: AsyncClient, headers: dict) -> tuple[int, int, int]:
    garden = await client.post("/api/v1/gardens", json={"name": "Backyard"}, headers=headers)
    gid = garden.json()["id"]
    room = await client.post(f"/api/v1/gardens/{gid}/rooms", json={"name": "Greenhouse"}, headers=headers)
    rid = room.json()["id"]
    zone = await client.post(
        f"/api/v1/gardens/{gid}/rooms/{rid}/zones", json={"name": "Bench 1", "temp_max": 30}, headers=headers
    )
    assert zone.status_code == 201
    return gid, rid, zone.json()["id"]


async def test_room_and_zone_crud(client: AsyncClient, register):
    headers = await register("grower@example.com")
    gid, rid, zid = await _zone(client, headers)

    rooms = await client.get(f"/api/v1/gardens/{gid}/rooms", headers=headers)
    assert [r["name"] for r in rooms.json()] == ["Greenhouse"]

    zone = await client.get(f"/api/v1/gardens/{gid}/rooms/{rid}/zones/{zid}", headers=headers)
    assert zone.json()["temp_max"] == 30
    assert zone.json()["weather_alert_source"] == "WEATHER_API"

    res = await client.delete(f"/api/v1/gardens/{gid}/rooms/{rid}/zones/{zid}", headers=headers)
    assert res.status_code == 204
    missing = await client.get(f"/api/v1/gardens/{gid}/rooms/{rid}/zones/{zid}", headers=headers)
    assert missing.status_code == 404


async def test_zone_update_logs_full_path(client: AsyncClient, register):
    headers = await register("grower@example.com")
    gid, rid, zid = await _zone(client, headers)

    res = await client.patch(
        f"/api/v1/gardens/{gid}/rooms/{rid}/zones/{zid}",
        json={"temp_max": 28.5, "weather_alert_source": "SENSORS"},
        headers=headers,
    )
    assert res.status_code == 200

    logs = await client.get("/api/v1/logs", params={"type": "CHANGE_LOG"}, headers=headers)
    [log] = logs.json()
    assert log["zone_id"] == zid
    assert log["room_id"] == rid
    assert log["data"]["path"] == "Backyard → Greenhouse → Bench 1"
    assert {c["field"] for c in log["data"]["changes"]} == {"temp_max", "weather_alert_source"}


async def test_null_for_required_zone_fields_is_400(client: AsyncClient, register):
    headers = await register("grower@example.com")
    gid, rid, zid = await _zone(client, headers)
    url = f"/api/v1/gardens/{gid}/rooms/{rid}/zones/{zid}"

    for body in ({"weather_alert_source": None}, {"name": None}):
        res = await client.patch(url, json=body, headers=headers)
        assert res.status_code == 400
        assert res.json()["detail"] == "Validation failed"

    # Nullable thresholds can still be cleared
    cleared = await client.patch(url, json={"temp_max": None}, headers=headers)
    assert cleared.status_code == 200
    assert cleared.json()["temp_max"] is None
    assert cleared.json()["weather_alert_source"] == "WEATHER_API"


async def test_zone_in_another_room_is_404(client: AsyncClient, register):
    headers = await register("grower@example.com")
    gid, _, zid = await _zone(client, headers)
    other = await client.post(f"/api/v1/gardens/{gid}/rooms", json={"name": "Shed"}, headers=headers)
    res = await client.get(f"/api/v1/gardens/{gid}/rooms/{other.json()['id']}/zones/{zid}", headers=headers)
    assert res.status_code == 404


async def test_plant_crud_and_duplicate(client: AsyncClient, register):
    headers = await register("grower@example.com")
    gid, rid, zid = await _zone(client, headers)
    base = f"/api/v1/gardens/{gid}/rooms/{rid}/zones/{zid}/plants"

    created = await client.post(
        base,
        json={"name": "Tomato", "stage": "SEEDLING", "sensitivities": {"heat": {"enabled": True, "threshold": 90}}},
        headers=headers,
    )
    assert created.status_code == 201
    plant = created.json()
    assert plant["garden_id"] == gid
    assert plant["sensitivities"] == {"heat": {"enabled": True, "threshold": 90.0}}

    copy = await client.post(f"{base}/{plant['id']}/duplicate", headers=headers)
    assert copy.status_code == 201
    assert copy.json()["name"] == "Tomato (Copy)"
    assert copy.json()["sensitivities"] == plant["sensitivities"]

    updated = await client.patch(f"{base}/{plant['id']}", json={"stage": "FLOWERING"}, headers=headers)
    assert updated.json()["stage"] == "FLOWERING"

    visible = await client.get("/api/v1/plants", headers=headers)
    assert sorted(p["name"] for p in visible.json()) == ["Tomato", "Tomato (Copy)"]
    flowering = await client.get("/api/v1/plants", params={"stage": "FLOWERING"}, headers=headers)
    assert [p["id"] for p in flowering.json()] == [plant["id"]]

    res = await client.delete(f"{base}/{plant['id']}", headers=headers)
    assert res.status_code == 204


async def test_plants_hidden_from_outsiders(client: AsyncClient, register):
    owner = await register("grower@example.com")
    outsider = await register("outsider@example.com")
    gid, rid, zid = await _zone(client, owner)
    await client.post(f"/api/v1/gardens/{gid}/rooms/{rid}/zones/{zid}/plants", json={"name": "Basil"}, headers=owner)

    visible = await client.get("/api/v1/plants", headers=outsider)
    assert visible.json() == []
    res = await client.get(f"/api/v1/gardens/{gid}/rooms/{rid}/zones/{zid}/plants", headers=outsider)
    assert res.status_code == 404


async def test_maintenance_completion_rolls_due_date(client: AsyncClient, register):
    headers = await register("grower@example.com")
    gid, rid, zid = await _zone(client, headers)
    base = f"/api/v1/gardens/{gid}/rooms/{rid}/zones/{zid}/equipment"

    equipment = await client.post(base, json={"name": "Carbon filter"}, headers=headers)
    eid = equipment.json()["id"]
    task = await client.post(
        f"{base}/{eid}/maintenance",
        json={"title": "Clean pre-filter", "frequency": "Weekly", "next_due_date": "2024-01-01"},
        headers=headers,
    )
    assert task.status_code == 201

    done = await client.put(
        f"{base}/{eid}/maintenance/{task.json()['id']}",
        json={"completed_date": "2024-01-01"},
        headers=headers,
    )
    assert done.status_code == 200
    assert done.json()["last_completed_date"] == "2024-01-01"
    assert done.json()["next_due_date"] == "2024-01-08"
    assert done.json()["completed"] is False

    logs = await client.get("/api/v1/logs", params={"type": "MAINTENANCE_TASK"}, headers=headers)
    [log] = logs.json()
    assert log["equipment_id"] == eid
    assert log["data"]["nextDueDate"] == "2024-01-08"


async def test_unknown_frequency_recurs_monthly(client: AsyncClient, register):
    headers = await register("grower@example.com")
    gid, rid, zid = await _zone(client, headers)
    base = f"/api/v1/gardens/{gid}/rooms/{rid}/zones/{zid}/equipment"

    eid = (await client.post(base, json={"name": "Pump"}, headers=headers)).json()["id"]
    task = await client.post(
        f"{base}/{eid}/maintenance",
        json={"title": "Descale", "frequency": "Whenever", "next_due_date": "2024-01-31"},
        headers=headers,
    )
    done = await client.put(
        f"{base}/{eid}/maintenance/{task.json()['id']}", json={"completed_date": "2024-01-31"}, headers=headers
    )
    assert done.json()["next_due_date"] == "2024-02-29"


async def test_equipment_duplicate_copies_schedule(client: AsyncClient, register):
    headers = await register("grower@example.com")
    gid, rid, zid = await _zone(client, headers)
    base = f"/api/v1/gardens/{gid}/rooms/{rid}/zones/{zid}/equipment"

    eid = (await client.post(base, json={"name": "Dehumidifier"}, headers=headers)).json()["id"]
    await client.post(
        f"{base}/{eid}/maintenance",
        json={"title": "Empty tank", "frequency": "Daily", "next_due_date": "2024-03-01"},
        headers=headers,
    )

    copy = await client.post(f"{base}/{eid}/duplicate", headers=headers)
    assert copy.status_code == 201
    assert copy.json()["name"] == "Dehumidifier (Copy)"
    assert [t["title"] for t in copy.json()["maintenance_tasks"]] == ["Empty tank"]

    listing = await client.get(base, headers=headers)
    assert len(listing.json()) == 2


async def test_equipment_logs_cover_every_garden_user(client: AsyncClient, register):
    owner = await register("owner@example.com")
    gid, rid, zid = await _zone(client, owner)
    base = f"/api/v1/gardens/{gid}/rooms/{rid}/zones/{zid}/equipment"
    eid = (await client.post(base, json={"name": "Exhaust fan"}, headers=owner)).json()["id"]
    other = (await client.post(base, json={"name": "Heater"}, headers=owner)).json()["id"]

    helper = await register("helper@example.com")
    invite = await client.post(
        f"/api/v1/gardens/{gid}/invites",
        json={"email": "helper@example.com", "permissions": ["VIEW", "EDIT"]},
        headers=owner,
    )
    await client.post(f"/api/v1/invites/{invite.json()['id']}/accept", headers=helper)

    entries = [
        (owner, eid, "Oiled bearings", "2024-05-03T10:00:00Z"),
        (helper, eid, "Fan rattling", "2024-05-01T10:00:00Z"),
        (owner, other, "Pilot lit", "2024-05-02T10:00:00Z"),
    ]
    for headers, equipment_id, notes, log_date in entries:
        res = await client.post(
            "/api/v1/logs",
            json={"garden_id": gid, "equipment_id": equipment_id, "notes": notes, "log_date": log_date},
            headers=headers,
        )
        assert res.status_code == 201

    res = await client.get(f"{base}/{eid}/logs", headers=helper)
    assert res.status_code == 200
    assert [log["notes"] for log in res.json()] == ["Oiled bearings", "Fan rattling"]

    mine = await client.get("/api/v1/logs", params={"equipment_id": eid}, headers=owner)
    assert [log["notes"] for log in mine.json()] == ["Oiled bearings"]

    outsider = await register("outsider@example.com")
    assert (await client.get(f"{base}/{eid}/logs", headers=outsider)).status_code == 404
    assert (await client.get(f"{base}/9999/logs", headers=owner)).status_code == 404
