from httpx import AsyncClient


async def _shared_garden(client: AsyncClient, owner: dict, member: dict) -> int:
    garden = await client.post("/api/v1/gardens", json={"name": "Allotment"}, headers=owner)
    gid = garden.json()["id"]
    invite = await client.post(
        f"/api/v1/gardens/{gid}/invites", json={"email": "member@example.com", "permissions": ["VIEW"]}, headers=owner
    )
    await client.post(f"/api/v1/invites/{invite.json()['id']}/accept", headers=member)
    return gid


async def test_notes_are_shared_with_garden_users_unless_private(client: AsyncClient, register):
    owner = await register("owner@example.com")
    member = await register("member@example.com")
    outsider = await register("outsider@example.com")
    gid = await _shared_garden(client, owner, member)

    shared = await client.post(
        "/api/v1/calendar-notes",
        json={"note_date": "2024-04-20", "note": "Sow peas", "garden_id": gid},
        headers=owner,
    )
    assert shared.status_code == 201
    assert shared.json()["is_private"] is False
    await client.post(
        "/api/v1/calendar-notes",
        json={"note_date": "2024-04-20", "note": "Buy twine", "garden_id": gid, "is_private": True},
        headers=owner,
    )
    await client.post("/api/v1/calendar-notes", json={"note_date": "2024-04-22", "note": "Dentist"}, headers=owner)

    own = await client.get("/api/v1/calendar-notes", headers=owner)
    assert [n["note"] for n in own.json()] == ["Sow peas", "Buy twine", "Dentist"]

    seen_by_member = await client.get("/api/v1/calendar-notes", headers=member)
    assert [n["note"] for n in seen_by_member.json()] == ["Sow peas"]

    assert (await client.get("/api/v1/calendar-notes", headers=outsider)).json() == []

    one_day = await client.get("/api/v1/calendar-notes", params={"date": "2024-04-22"}, headers=owner)
    assert [n["note"] for n in one_day.json()] == ["Dentist"]
    in_garden = await client.get("/api/v1/calendar-notes", params={"garden_id": gid}, headers=owner)
    assert len(in_garden.json()) == 2


async def test_note_needs_edit_on_its_garden(client: AsyncClient, register):
    owner = await register("owner@example.com")
    member = await register("member@example.com")
    gid = await _shared_garden(client, owner, member)

    res = await client.post(
        "/api/v1/calendar-notes", json={"note_date": "2024-04-20", "note": "Weed", "garden_id": gid}, headers=member
    )
    assert res.status_code == 403

    orphan_room = await client.post(
        "/api/v1/calendar-notes", json={"note_date": "2024-04-20", "note": "Weed", "room_id": 1}, headers=owner
    )
    assert orphan_room.status_code == 400

    empty = await client.post("/api/v1/calendar-notes", json={"note_date": "2024-04-20", "note": ""}, headers=owner)
    assert empty.status_code == 400


async def test_only_the_author_deletes_a_note(client: AsyncClient, register):
    owner = await register("owner@example.com")
    member = await register("member@example.com")
    outsider = await register("outsider@example.com")
    gid = await _shared_garden(client, owner, member)
    note = await client.post(
        "/api/v1/calendar-notes",
        json={"note_date": "2024-04-20", "note": "Sow peas", "garden_id": gid},
        headers=owner,
    )
    url = f"/api/v1/calendar-notes/{note.json()['id']}"

    assert (await client.delete(url, headers=member)).status_code == 403
    assert (await client.delete(url, headers=outsider)).status_code == 404
    assert (await client.delete(url, headers=owner)).status_code == 204
    assert (await client.delete(url, headers=owner)).status_code == 404
