def create_class(client, headers, **overrides):
    payload = {"year": "2nd Year", "branch": "cse", "section": "a", "academic_year": "2025-2026", **overrides}
    return client.post("/api/classes", json=payload, headers=headers)


def test_class_options_fall_back_to_defaults(client):
    options = client.get("/api/classes/options")
    assert options.status_code == 200
    assert options.json() == {
        "years": ["1st Year", "2nd Year", "3rd Year", "4th Year"],
        "branches": ["CSE", "ECE", "EEE", "MECH", "CIVIL", "IT"],
        "sections": ["A", "B", "C", "D"],
    }


def test_creating_a_timetable_registers_its_class(client, coordinator_headers):
    response = client.post(
        "/api/timetable",
        json={"year": "3", "branch": "ece", "section": "b", "academicYear": "2025-2026", "semester": 5},
        headers=coordinator_headers,
    )
    assert response.status_code == 201, response.text

    classes = client.get("/api/classes").json()
    assert [(item["year"], item["branch"], item["section"], item["semester"]) for item in classes] == [
        ("3rd Year", "ECE", "B", 5)
    ]
    assert client.get("/api/classes/options").json() == {
        "years": ["3rd Year"],
        "branches": ["ECE"],
        "sections": ["B"],
    }


def test_class_crud_and_filters(client, coordinator_headers, teacher_headers):
    created = create_class(client, coordinator_headers, total_students=60)
    assert created.status_code == 201, created.text
    cse_a = created.json()
    assert (cse_a["year"], cse_a["branch"], cse_a["section"]) == ("2nd Year", "CSE", "A")
    assert cse_a["is_active"] is True
    assert cse_a["class_teacher"] is None

    assert create_class(client, coordinator_headers, year="1st Year", section="B").status_code == 201

    duplicate = create_class(client, coordinator_headers, branch="CSE", section="A")
    assert duplicate.status_code == 409
    assert duplicate.json()["detail"] == "Class section already exists for this academic year"

    assert create_class(client, teacher_headers, section="C").status_code == 403

    listing = client.get("/api/classes").json()
    assert [(item["year"], item["section"]) for item in listing] == [("1st Year", "B"), ("2nd Year", "A")]

    by_year = client.get("/api/classes", params={"year": "2"}).json()
    assert [item["id"] for item in by_year] == [cse_a["id"]]
    assert client.get("/api/classes", params={"section": "b", "branch": "cse"}).json()[0]["year"] == "1st Year"
    assert client.get("/api/classes", params={"year": "9th"}).status_code == 400

    assert client.get(f"/api/classes/{cse_a['id']}").json()["total_students"] == 60
    assert client.get("/api/classes/missing").status_code == 404


def test_class_teacher_assignment(client, coordinator_headers):
    teacher = client.post(
        "/api/teachers",
        json={"display_name": "Ada Lovelace", "department": "CSE", "email": "ada@example.com"},
        headers=coordinator_headers,
    ).json()
    record = create_class(client, coordinator_headers).json()

    missing = client.put(
        f"/api/classes/{record['id']}",
        json={"class_teacher_id": "no-such-teacher"},
        headers=coordinator_headers,
    )
    assert missing.status_code == 400

    updated = client.put(
        f"/api/classes/{record['id']}",
        json={"class_teacher_id": teacher["id"], "semester": 4},
        headers=coordinator_headers,
    )
    assert updated.status_code == 200
    body = updated.json()
    assert body["semester"] == 4
    assert body["class_teacher"]["display_name"] == "Ada Lovelace"

    assert client.delete(f"/api/classes/{record['id']}", headers=coordinator_headers).json() == {"success": True}
    assert client.get(f"/api/classes/{record['id']}").status_code == 404
