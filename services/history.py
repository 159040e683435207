from datetime import timedelta

from services.validators import parse_timestamp, utc_now

STAFF_ACTORS = ("admin", "receptionist")


def add_to_history(doc: dict, entry_type: str, actor: str, entry: dict) -> dict:
    """Append an entry to the actor's trail. Anyone not admin/receptionist is a faculty code."""
    history = doc.setdefault("history", {"admin": [], "faculty": {}, "receptionist": []})
    item = dict(entry)
    item["type"] = entry_type
    item["originalDate"] = entry.get("date") or entry.get("postedAt")

    if actor in STAFF_ACTORS:
        history.setdefault(actor, []).append(item)
    else:
        history.setdefault("faculty", {}).setdefault(actor, []).append(item)
    return item


def history_for(doc: dict, user_type: str, user_code=None) -> list:
    history = doc.get("history") or {}
    if user_type in STAFF_ACTORS:
        return history.get(user_type) or []
    if user_type == "faculty" and user_code:
        return (history.get("faculty") or {}).get(user_code) or []
    return []


def recent_history(doc: dict, user_type: str, user_code=None, now=None, days: int = 30) -> list:
    cutoff = (now or utc_now()) - timedelta(days=days)
    recent = []
    for item in history_for(doc, user_type, user_code):
        stamp = parse_timestamp(item.get("date") or item.get("originalDate") or item.get("postedAt"))
        if stamp is not None and stamp >= cutoff:
            recent.append(item)
    return recent
