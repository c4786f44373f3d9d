from httpx import AsyncClient


async def _plant(client: AsyncClient, headers: dict) -> dict:
    gid = (await client.post("/api/v1/gardens", json={"name": "Backyard"}, headers=headers)).json()["id"]
    rid = (await client.post(f"/api/v1/gardens/{gid}/rooms", json={"name": "Greenhouse"}, headers=headers)).json()["id"]
    zid = (await client.post(f"/api/v1/gardens/{gid}/rooms/{rid}/zones", json={"name": "Bench"}, headers=headers)).json()["id"]
    res = await client.post(
        f"/api/v1/gardens/{gid}/rooms/{rid}/zones/{zid}/plants",
        json={"name": "Pepper", "stage": "VEGETATIVE"},
        headers=headers,
    )
    return res.json()


async def test_plant_log_inherits_location_and_stage(client: AsyncClient, register):
    headers = await register("logger@example.com")
    plant = await _plant(client, headers)

    res = await client.post(
        "/api/v1/logs",
        json={"log_type": "WATERING", "plant_id": plant["id"], "water_amount": 500, "water_unit": "mL"},
        headers=headers,
    )
    assert res.status_code == 201
    log = res.json()
    assert (log["garden_id"], log["room_id"], log["zone_id"]) == (plant["garden_id"], plant["room_id"], plant["zone_id"])
    assert log["stage"] == "VEGETATIVE"
    assert log["log_date"] is not None


async def test_filters_and_location_search(client: AsyncClient, register):
    headers = await register("logger@example.com")
    plant = await _plant(client, headers)
    await client.post("/api/v1/logs", json={"log_type": "GENERAL", "notes": "Loose"}, headers=headers)
    await client.post(
        "/api/v1/logs",
        json={"log_type": "FEEDING", "plant_id": plant["id"], "log_date": "2024-05-01T10:00:00Z"},
        headers=headers,
    )

    feeding = await client.get("/api/v1/logs", params={"type": "FEEDING"}, headers=headers)
    assert [l["log_type"] for l in feeding.json()] == ["FEEDING"]

    by_location = await client.get("/api/v1/logs", params={"location": "greenhouse"}, headers=headers)
    assert [l["plant_id"] for l in by_location.json()] == [plant["id"]]

    ranged = await client.get(
        "/api/v1/logs",
        params={"start_date": "2024-04-30T00:00:00Z", "end_date": "2024-05-02T00:00:00Z"},
        headers=headers,
    )
    assert len(ranged.json()) == 1

    bad = await client.get("/api/v1/logs", params={"type": "NONSENSE"}, headers=headers)
    assert bad.status_code == 400


async def test_system_log_types_cannot_be_written(client: AsyncClient, register):
    headers = await register("logger@example.com")
    res = await client.post("/api/v1/logs", json={"log_type": "CHANGE_LOG"}, headers=headers)
    assert res.status_code == 400


async def test_logs_are_private_and_delete_all(client: AsyncClient, register):
    owner = await register("logger@example.com")
    other = await register("other@example.com")
    first = await client.post("/api/v1/logs", json={"notes": "one"}, headers=owner)
    await client.post("/api/v1/logs", json={"notes": "two"}, headers=owner)
    await client.post("/api/v1/logs", json={"notes": "theirs"}, headers=other)

    hidden = await client.get(f"/api/v1/logs/{first.json()['id']}", headers=other)
    assert hidden.status_code == 404

    updated = await client.patch(f"/api/v1/logs/{first.json()['id']}", json={"notes": "edited"}, headers=owner)
    assert updated.json()["notes"] == "edited"

    res = await client.delete("/api/v1/logs", headers=owner)
    assert res.json() == {"deleted": 2}
    assert (await client.get("/api/v1/logs", headers=owner)).json() == []
    assert len((await client.get("/api/v1/logs", headers=other)).json()) == 1


async def test_cannot_log_into_foreign_garden(client: AsyncClient, register):
    owner = await register("logger@example.com")
    intruder = await register("intruder@example.com")
    plant = await _plant(client, owner)
    res = await client.post("/api/v1/logs", json={"garden_id": plant["garden_id"]}, headers=intruder)
    assert res.status_code == 404


async def test_seed_inventory(client: AsyncClient, register):
    headers = await register("seeds@example.com")
    other = await register("other@example.com")

    created = await client.post(
        "/api/v1/seeds", json={"variety": "Cherokee Purple", "quantity": 25, "breeder": "Baker Creek"}, headers=headers
    )
    assert created.status_code == 201
    seed_id = created.json()["id"]

    updated = await client.patch(f"/api/v1/seeds/{seed_id}", json={"quantity": 20}, headers=headers)
    assert updated.json()["quantity"] == 20
    assert updated.json()["breeder"] == "Baker Creek"

    assert (await client.get(f"/api/v1/seeds/{seed_id}", headers=other)).status_code == 404
    assert [s["variety"] for s in (await client.get("/api/v1/seeds", headers=headers)).json()] == ["Cherokee Purple"]

    res = await client.delete(f"/api/v1/seeds/{seed_id}", headers=headers)
    assert res.status_code == 204
    assert (await client.get("/api/v1/seeds", headers=headers)).json() == []
