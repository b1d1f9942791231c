from datetime import datetime, timezone

from app.tasks import migration_tasks

API = "/api/v1"


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


async def test_seed_and_clone_flow(client, user_id):
    response = await client.post(
        f"{API}/users/{user_id}/uids/seed",
        json={"strain_name": "Blue Dream", "proposed_strain_code": "BLU", "date_born": "2024-01-15"},
    )
    assert response.status_code == 201
    body = response.json()
    assert body == {
        "uid": "BLU_150124_01",
        "strain_code": "BLU",
        "is_new_strain": True,
        "warning": None,
    }

    response = await client.post(
        f"{API}/users/{user_id}/uids/clone",
        json={"parent_uid": "BLU_150124_01", "parent_plant_id": "p1"},
    )
    assert response.status_code == 201
    assert response.json() == {"uid": "BLU_150124_01_c01", "clone_seq": 1}


async def test_seed_with_taken_code_is_conflict(client, user_id):
    payload = {"strain_name": "Blue Dream", "proposed_strain_code": "BLU", "date_born": "2024-01-15"}
    await client.post(f"{API}/users/{user_id}/uids/seed", json=payload)

    response = await client.post(
        f"{API}/users/{user_id}/uids/seed",
        json={**payload, "strain_name": "Blueberry"},
    )

    assert response.status_code == 409
    assert "BLU" in response.json()["detail"]


async def test_seed_with_reserved_code_is_unprocessable(client, user_id):
    response = await client.post(
        f"{API}/users/{user_id}/uids/seed",
        json={"strain_name": "Mystery", "proposed_strain_code": "XXX"},
    )

    assert response.status_code == 422
    assert "reserved" in response.json()["detail"]


async def test_clone_without_parent_is_unprocessable(client, user_id):
    response = await client.post(
        f"{API}/users/{user_id}/uids/clone", json={"parent_uid": "BLU_150124_01"}
    )

    assert response.status_code == 422
    assert "Parent plant ID" in response.json()["detail"]


async def test_strain_resolve_and_list(client, user_id):
    response = await client.post(
        f"{API}/users/{user_id}/strains/resolve",
        json={"strain_name": "OG Kush", "proposed_code": "ogk"},
    )
    assert response.status_code == 200
    assert response.json() == {"code": "OGK", "is_new": True, "warning": None}

    response = await client.post(
        f"{API}/users/{user_id}/strains/resolve",
        json={"strain_name": "og kush", "proposed_code": "OGX"},
    )
    assert response.json()["code"] == "OGK"
    assert response.json()["warning"]

    response = await client.get(f"{API}/users/{user_id}/strains")
    assert response.status_code == 200
    assert response.json() == [{"strain_name": "OG Kush", "strain_code": "OGK"}]


async def test_validate_and_parse(client):
    response = await client.get(f"{API}/uids/ABC_010124_01_c01/validate")
    assert response.json() == {"valid": True, "kind": "clone", "error": None}

    response = await client.get(f"{API}/uids/abc_010124_01/validate")
    assert response.json()["valid"] is False

    response = await client.get(f"{API}/uids/ABC_010124_01_c01_c02/parse")
    assert response.status_code == 200
    assert response.json() == {
        "strain_code": "ABC",
        "date_born": "010124",
        "seed_seq": "01",
        "clone_seqs": ["c01", "c02"],
        "kind": "clone",
    }

    response = await client.get(f"{API}/uids/ABC_010124/parse")
    assert response.status_code == 422


async def test_migration_routes(client, user_id, make_plant):
    await make_plant("OG Kush", created_at=datetime(2023, 11, 2, tzinfo=timezone.utc))

    response = await client.get(f"{API}/users/{user_id}/migration")
    assert response.json() == {"user_id": user_id, "needs_migration": True}

    response = await client.post(f"{API}/users/{user_id}/migration")
    assert response.status_code == 200
    summary = response.json()
    assert summary["migrated"] == 1
    assert summary["details"][0]["uid"] == "OGK_021123_01"

    response = await client.get(f"{API}/users/{user_id}/migration")
    assert response.json()["needs_migration"] is False


async def test_migration_in_background(client, user_id, monkeypatch):
    queued = []

    class _FakeResult:
        id = "task-123"

    class _FakeTask:
        def delay(self, uid):
            queued.append(uid)
            return _FakeResult()

    monkeypatch.setattr(migration_tasks, "migrate_user_plants_task", _FakeTask())

    response = await client.post(f"{API}/users/{user_id}/migration", params={"background": True})

    assert response.status_code == 202
    assert response.json() == {"user_id": user_id, "task_id": "task-123"}
    assert queued == [user_id]


async def test_uid_uniqueness_route(client, user_id, make_plant):
    await make_plant("OG Kush", unique_id="OGK_021123_01", strain_code="OGK")

    response = await client.get(f"{API}/users/{user_id}/uids/OGK_021123_01/unique")
    assert response.status_code == 200
    assert response.json() == {"uid": "OGK_021123_01", "unique": False}

    response = await client.get(f"{API}/users/other-user/uids/OGK_021123_01/unique")
    assert response.json()["unique"] is True
