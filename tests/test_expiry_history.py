from __future__ import annotations

from datetime import datetime, timedelta, timezone

from database import default_document
from services.expiry import clean_expired, is_expired
from services.history import add_to_history, recent_history

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
PAST = (NOW - timedelta(minutes=1)).isoformat()
FUTURE = (NOW + timedelta(days=1)).isoformat()


def test_is_expired_rules():
    assert not is_expired({}, NOW)
    assert not is_expired({"expiryDate": None}, NOW)
    assert not is_expired({"expiryDate": FUTURE}, NOW)
    assert is_expired({"expiryDate": PAST}, NOW)
    assert is_expired({"expiryDate": "someday"}, NOW)


def test_clean_expired_covers_every_expiring_collection():
    doc = default_document()
    doc["facultyPosts"]["5"] = {
        "homework": [{"id": 1, "expiryDate": PAST}, {"id": 2, "expiryDate": None}],
        "assignment": [],
        "subject": [{"id": 3, "expiryDate": FUTURE}],
    }
    doc["assignments"]["5"] = [{"id": 4, "expiryDate": PAST}, {"id": 5}]
    doc["progressCards"]["5"] = [{"id": 6, "expiryDate": PAST}]
    doc["notifications"] = [{"id": "a", "expiryDate": PAST}, {"id": "b", "expiryDate": FUTURE}]

    assert clean_expired(doc, NOW) == 4
    assert [p["id"] for p in doc["facultyPosts"]["5"]["homework"]] == [2]
    assert [p["id"] for p in doc["facultyPosts"]["5"]["subject"]] == [3]
    assert [a["id"] for a in doc["assignments"]["5"]] == [5]
    assert doc["progressCards"]["5"] == []
    assert [n["id"] for n in doc["notifications"]] == ["b"]

    assert clean_expired(doc, NOW) == 0


def test_listing_sweeps_and_persists(client, store):
    client.post("/api/admin/notifications", data={"title": "Old", "message": "gone soon", "displayDays": "1"})
    client.post("/api/create-assignment", json={
        "classCode": "5", "facultyCode": "FAC01", "title": "Quiz", "assignmentDate": "2026-10-19",
        "questions": [{"question": "?", "options": {"a": "1", "b": "2", "c": "3", "d": "4"}, "correctAnswer": "a"}],
        "displayDays": 1,
    })
    assert len(client.get("/api/admin/notifications").json()) == 1
    assert len(client.get("/api/assignments/5").json()) == 1

    doc = store.load()
    doc["notifications"][0]["expiryDate"] = PAST
    doc["assignments"]["5"][0]["expiryDate"] = PAST
    store.save(doc)

    assert client.get("/api/admin/notifications").json() == []
    assert client.get("/api/assignments/5").json() == []
    assert store.load()["notifications"] == []
    assert store.load()["assignments"]["5"] == []


# ---------- history ----------

def test_history_routing_by_actor():
    doc = default_document()
    add_to_history(doc, "fee-certificate-generated", "receptionist", {"text": "paid", "date": NOW.isoformat()})
    add_to_history(doc, "notification-sent", "admin", {"text": "sent", "date": NOW.isoformat()})
    entry = add_to_history(doc, "faculty-homework", "FAC07", {"text": "hw", "postedAt": NOW.isoformat()})

    assert entry["type"] == "faculty-homework"
    assert entry["originalDate"] == NOW.isoformat()
    assert len(doc["history"]["receptionist"]) == 1
    assert len(doc["history"]["admin"]) == 1
    assert doc["history"]["faculty"]["FAC07"] == [entry]


def test_recent_history_window():
    doc = default_document()
    for days_ago in (0, 29, 31):
        add_to_history(doc, "notification-sent", "admin", {
            "text": f"{days_ago} days ago", "date": (NOW - timedelta(days=days_ago)).isoformat(),
        })
    add_to_history(doc, "notification-sent", "admin", {"text": "undated"})

    recent = recent_history(doc, "admin", now=NOW)
    assert [h["text"] for h in recent] == ["0 days ago", "29 days ago"]
    assert recent_history(doc, "faculty", now=NOW) == []
    assert recent_history(doc, "student", now=NOW) == []


def test_history_endpoints(client, store):
    doc = store.load()
    now = datetime.now(timezone.utc)
    add_to_history(doc, "notification-sent", "admin", {"text": "new", "date": now.isoformat()})
    add_to_history(doc, "notification-sent", "admin", {"text": "old", "date": (now - timedelta(days=45)).isoformat()})
    add_to_history(doc, "faculty-subject", "FAC01", {"text": "notes", "date": now.isoformat()})
    store.save(doc)

    assert [h["text"] for h in client.get("/api/history/admin").json()] == ["new"]
    assert [h["text"] for h in client.get("/api/history/faculty/FAC01").json()] == ["notes"]
    assert client.get("/api/history/faculty").json() == []
    assert client.get("/api/history/receptionist").json() == []
