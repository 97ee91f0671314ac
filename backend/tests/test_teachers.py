from sqlalchemy import select

from app.models.teacher import Teacher
from app.services.teacher_directory import ensure_teacher_profile, next_teacher_code


def test_teacher_codes_are_sequential_per_department(db_session):
    assert next_teacher_code(db_session, "cse") == "CSE-001"
    assert next_teacher_code(db_session, "CSE") == "CSE-002"
    assert next_teacher_code(db_session, "ECE") == "ECE-001"
    assert next_teacher_code(db_session, None) == "GEN-001"


def test_ensure_teacher_profile_is_idempotent(db_session):
    first = ensure_teacher_profile(db_session, name="Ada", email="Ada@Example.com", department="CSE")
    second = ensure_teacher_profile(db_session, name="Ada L.", email="ada@example.com", department="CSE")

    assert first.id == second.id
    assert first.teacher_code == "CSE-001"
    assert first.username == "ada"
    assert len(db_session.execute(select(Teacher)).scalars().all()) == 1


def test_teacher_crud_and_filters(client, coordinator_headers, teacher_headers):
    created = client.post(
        "/api/teachers",
        json={"display_name": "Grace Hopper", "department": "ECE", "email": "grace@example.com"},
        headers=coordinator_headers,
    )
    assert created.status_code == 201
    grace = created.json()
    assert grace["teacher_code"] == "ECE-001"
    assert grace["is_active"] is True

    duplicate = client.post(
        "/api/teachers",
        json={"display_name": "Grace Again", "department": "ECE", "email": "grace@example.com"},
        headers=coordinator_headers,
    )
    assert duplicate.status_code == 409

    forbidden = client.post("/api/teachers", json={"display_name": "Nope"}, headers=teacher_headers)
    assert forbidden.status_code == 403

    listing = client.get("/api/teachers/list", params={"department": "ECE"}, headers=teacher_headers).json()
    assert listing["count"] == 1
    assert listing["data"][0]["id"] == grace["id"]

    search = client.get("/api/teachers/list", params={"search": "ece-0"}, headers=teacher_headers).json()
    assert [item["id"] for item in search["data"]] == [grace["id"]]

    updated = client.put(f"/api/teachers/{grace['id']}", json={"is_active": False}, headers=coordinator_headers)
    assert updated.status_code == 200
    assert updated.json()["is_active"] is False

    active = client.get("/api/teachers/list", params={"isActive": "true"}, headers=teacher_headers).json()
    assert grace["id"] not in [item["id"] for item in active["data"]]

    grouped = client.get("/api/teachers/grouped", headers=teacher_headers).json()
    assert [group["department"] for group in grouped["data"]] == ["CSE", "ECE"]

    assert client.delete(f"/api/teachers/{grace['id']}", headers=coordinator_headers).status_code == 200
    assert client.get(f"/api/teachers/{grace['id']}", headers=teacher_headers).status_code == 404


def test_deleting_teacher_keeps_timetable_entries(client, coordinator_headers):
    teacher = client.post(
        "/api/teachers", json={"display_name": "Alan Turing", "department": "CSE"}, headers=coordinator_headers
    ).json()
    timetable = client.post(
        "/api/timetable",
        json={"year": "2nd Year", "branch": "CSE", "section": "A", "academicYear": "2025-26"},
        headers=coordinator_headers,
    ).json()
    client.put(
        f"/api/timetable/{timetable['id']}/cells",
        json={"day": "Monday", "slot": "TS1", "assignment": {"subject": "TOC", "teacher": {"id": teacher["id"]}}},
        headers=coordinator_headers,
    )

    client.delete(f"/api/teachers/{teacher['id']}", headers=coordinator_headers)
    fetched = client.get(f"/api/timetable/{timetable['id']}", headers=coordinator_headers).json()

    [cell] = fetched["schedule"]
    assert cell["teacher"] == {"id": teacher["id"], "name": "Alan Turing", "username": ""}
