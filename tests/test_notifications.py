from __future__ import annotations

from pathlib import Path

import pytest


def _notify(client, **overrides):
    form = {
        "title": "Holiday",
        "message": "School closed on Friday",
        "targetAudience": "all",
        "targetClass": "all",
        "displayDays": "7",
    }
    form.update(overrides)
    return client.post("/api/admin/notifications", data=form)


def test_create_notification_sets_expiry_and_history(client, store):
    response = _notify(client)
    assert response.status_code == 200
    notification = response.json()["notification"]
    assert notification["id"].startswith("notif_")
    assert notification["source"] == "admin"
    assert notification["readBy"] == []
    assert notification["expiryDate"] > notification["createdAt"]

    history = store.load()["history"]["admin"]
    assert history[-1]["type"] == "notification-sent"


@pytest.mark.parametrize("overrides", [
    {"title": ""},
    {"message": "<script>x</script>"},
    {"displayDays": "0"},
    {"displayDays": "366"},
    {"displayDays": "soon"},
])
def test_create_notification_validation(client, overrides):
    assert _notify(client, **overrides).status_code == 400


def test_notification_with_attachment(client, test_config):
    response = client.post(
        "/api/admin/notifications",
        data={"title": "Circular", "message": "See attached", "displayDays": "3"},
        files={"file": ("circular.pdf", b"%PDF-1.4 test", "application/pdf")},
    )
    assert response.status_code == 200
    notification = response.json()["notification"]
    assert notification["fileName"] == "circular.pdf"
    assert notification["file"].startswith("/uploads/")
    stored = Path(test_config.UPLOAD_DIR) / notification["file"].rsplit("/", 1)[1]
    assert stored.read_bytes() == b"%PDF-1.4 test"


def test_rejected_attachment_extension(client):
    response = client.post(
        "/api/admin/notifications",
        data={"title": "Circular", "message": "See attached", "displayDays": "3"},
        files={"file": ("run.exe", b"MZ", "application/octet-stream")},
    )
    assert response.status_code == 400


def test_audience_filtering_and_read_status(client):
    _notify(client, title="Everyone", targetAudience="all")
    _notify(client, title="Staff only", targetAudience="faculty")
    _notify(client, title="Class 5", targetAudience="students", targetClass="5")
    _notify(client, title="Class 6", targetAudience="students", targetClass="6")

    faculty = client.get("/api/faculty/FAC01/notifications").json()
    assert {n["title"] for n in faculty} == {"Everyone", "Staff only"}

    student = client.get("/api/student/notifications/CB25-05-12").json()
    assert {n["title"] for n in student} == {"Everyone", "Class 5"}
    assert not any(n["isRead"] for n in student)

    target = next(n for n in student if n["title"] == "Class 5")
    marked = client.post(f"/api/notifications/{target['id']}/read", json={"userCode": "CB25-05-12"})
    assert marked.status_code == 200

    student = client.get("/api/student/notifications/CB25-05-12").json()
    assert {n["title"]: n["isRead"] for n in student} == {"Everyone": False, "Class 5": True}

    assert client.get("/api/student/notifications/garbage").status_code == 400


def test_read_all_and_missing_notification(client):
    _notify(client, title="One")
    _notify(client, title="Two")

    response = client.post("/api/notifications/read-all", json={"userCode": "FAC01", "userType": "faculty"})
    assert response.status_code == 200
    assert all(n["isRead"] for n in client.get("/api/faculty/FAC01/notifications").json())

    missing = client.post("/api/notifications/notif_missing/read", json={"userCode": "FAC01"})
    assert missing.status_code == 404


def test_delete_single_and_all(client):
    first = _notify(client, title="One").json()["notification"]
    _notify(client, title="Two")
    _notify(client, title="Three")

    assert client.delete(f"/api/admin/notifications/{first['id']}").status_code == 200
    assert client.delete(f"/api/admin/notifications/{first['id']}").status_code == 404

    listed = client.get("/api/admin/notifications")
    assert listed.headers["cache-control"].startswith("no-store")
    assert {n["title"] for n in listed.json()} == {"Two", "Three"}

    deleted = client.delete("/api/admin/delete-all-notifications").json()
    assert deleted["deletedCount"] == 2
    assert client.get("/api/admin/notifications").json() == []
