def test_announcements_can_be_posted_read_and_deleted(client, coordinator_headers, teacher_headers):
    created = client.post(
        "/api/notifications",
        json={"title": "Exam week", "message": "No labs next week.", "target_audience": "students"},
        headers=coordinator_headers,
    )
    assert created.status_code == 201
    notification = created.json()
    assert notification["notification_type"] == "announcement"
    assert notification["is_read"] is False

    forbidden = client.post(
        "/api/notifications",
        json={"title": "Hi", "message": "From a teacher"},
        headers=teacher_headers,
    )
    assert forbidden.status_code == 403

    for_students = client.get("/api/notifications", params={"targetAudience": "students"}).json()
    for_teachers = client.get("/api/notifications", params={"targetAudience": "teachers"}).json()
    assert [item["id"] for item in for_students] == [notification["id"]]
    assert for_teachers == []

    read = client.put(f"/api/notifications/{notification['id']}/read")
    assert read.status_code == 200
    assert read.json()["is_read"] is True
    assert client.get("/api/notifications", params={"isRead": "false"}).json() == []

    assert client.delete(f"/api/notifications/{notification['id']}", headers=coordinator_headers).status_code == 200
    assert client.put(f"/api/notifications/{notification['id']}/read").status_code == 404


def test_publishing_emits_audience_wide_notification(client, coordinator_headers):
    timetable = client.post(
        "/api/timetable",
        json={"year": "4th Year", "branch": "ME", "section": "B", "academicYear": "2025-26"},
        headers=coordinator_headers,
    ).json()

    client.put(f"/api/timetable/{timetable['id']}/publish", json={"isPublished": True}, headers=coordinator_headers)

    [notification] = client.get("/api/notifications", params={"targetAudience": "teachers"}).json()
    assert notification["notification_type"] == "timetable_published"
    assert notification["target_audience"] == "all"
    assert notification["priority"] == "high"
    assert notification["message"] == "Timetable for 4th Year ME Section B has been published."
