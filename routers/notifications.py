import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from config import Config
from dependencies import get_settings, get_store, no_cache
from schemas.common import CamelModel, RequiredStr
from services.expiry import clean_expired
from services.history import add_to_history
from services.student_codes import parse_student_code
from services.uploads import save_upload
from services.validators import expiry_from_days, new_token_id, now_iso, sanitize_input, sort_key_timestamp, utc_now

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Notifications"])

# =====================
# PYDANTIC SCHEMAS
# =====================

class MarkRead(CamelModel):
    user_code: RequiredStr


class MarkAllRead(CamelModel):
    user_code: RequiredStr
    user_type: RequiredStr


# =====================
# HELPER FUNCTIONS
# =====================

def _newest_first(items):
    return sorted(items, key=lambda n: sort_key_timestamp(n.get("createdAt")), reverse=True)


def _with_read_status(items, user_code):
    return [{**n, "isRead": user_code in (n.get("readBy") or [])} for n in items]


# =====================
# ADMIN APIs
# =====================

@router.post("/api/admin/notifications")
def create_notification(
    title: str = Form(None),
    message: str = Form(None),
    type: str = Form(None),
    targetAudience: str = Form(None),
    targetClass: str = Form(None),
    displayDays: str = Form(None),
    priority: str = Form(None),
    file: Optional[UploadFile] = File(None),
    store=Depends(get_store),
    config: Config = Depends(get_settings),
):
    title = sanitize_input(title)
    message = sanitize_input(message)
    if not title or not message:
        raise HTTPException(status_code=400, detail="Title and message are required")
    if len(title) > 200 or len(message) > 1000:
        raise HTTPException(status_code=400, detail="Title or message too long")

    try:
        display_days = int(displayDays)
    except (TypeError, ValueError):
        display_days = 0
    if display_days < 1 or display_days > 365:
        raise HTTPException(status_code=400, detail="Display days must be between 1 and 365")

    target_audience = sanitize_input(targetAudience) or "all"
    file_url, file_name = None, None
    if file is not None and file.filename:
        file_url, file_name = save_upload(file, config.UPLOAD_DIR)

    now = utc_now()
    notification = {
        "id": new_token_id("notif"),
        "source": "admin",
        "title": title,
        "message": message,
        "type": sanitize_input(type) or "general",
        "priority": sanitize_input(priority) or "normal",
        "targetAudience": target_audience,
        "targetClass": sanitize_input(targetClass) or "all",
        "createdAt": now.isoformat(),
        "expiryDate": expiry_from_days(display_days, now),
        "displayDays": display_days,
        "readBy": [],
        "file": file_url,
        "fileName": file_name,
    }

    with store.transaction() as doc:
        doc["notifications"].append(notification)
        add_to_history(doc, "notification-sent", "admin", {
            "text": f"Notification sent: {title} to {target_audience}",
            "date": notification["createdAt"],
        })

    logger.info("Notification created: %s", notification["id"])
    return {"success": True, "notification": notification}


@router.get("/api/admin/notifications", dependencies=[Depends(no_cache)])
def get_admin_notifications(store=Depends(get_store)):
    with store.transaction() as doc:
        clean_expired(doc)
        notifications = list(doc["notifications"])
    return _newest_first([n for n in notifications if n.get("source") == "admin"])


@router.delete("/api/admin/notifications/{notification_id}")
def delete_notification(notification_id: str, store=Depends(get_store)):
    notification_id = sanitize_input(notification_id)
    with store.transaction() as doc:
        before = len(doc["notifications"])
        doc["notifications"] = [
            n for n in doc["notifications"]
            if not (n.get("id") == notification_id and n.get("source") == "admin")
        ]
        if len(doc["notifications"]) == before:
            raise HTTPException(status_code=404, detail="Notification not found")
        add_to_history(doc, "notification-deleted", "admin", {
            "text": f"Notification deleted: {notification_id}",
            "date": now_iso(),
        })
    return {"success": True, "message": "Notification deleted successfully"}


@router.delete("/api/admin/delete-all-notifications")
def delete_all_notifications(store=Depends(get_store)):
    with store.transaction() as doc:
        deleted_count = sum(1 for n in doc["notifications"] if n.get("source") == "admin")
        doc["notifications"] = [n for n in doc["notifications"] if n.get("source") != "admin"]
        add_to_history(doc, "all-notifications-deleted", "admin", {
            "text": f"All notifications deleted ({deleted_count} notifications)",
            "date": now_iso(),
        })
    logger.info("All %d admin notifications deleted", deleted_count)
    return {"success": True, "message": "All notifications deleted successfully", "deletedCount": deleted_count}


# =====================
# READER APIs
# =====================

@router.get("/api/faculty/{faculty_code}/notifications")
def get_faculty_notifications(faculty_code: str, store=Depends(get_store)):
    faculty_code = sanitize_input(faculty_code)
    with store.transaction() as doc:
        clean_expired(doc)
        notifications = list(doc["notifications"])
    visible = [n for n in notifications if n.get("targetAudience") in ("all", "faculty")]
    return _newest_first(_with_read_status(visible, faculty_code))


@router.get("/api/student/notifications/{student_code}")
def get_student_notifications(student_code: str, store=Depends(get_store)):
    student_code = sanitize_input(student_code)
    parsed = parse_student_code(student_code)
    if parsed is None:
        raise HTTPException(status_code=400, detail="Invalid student code format")

    with store.transaction() as doc:
        clean_expired(doc)
        notifications = list(doc["notifications"])
    visible = [
        n for n in notifications
        if n.get("targetAudience") in ("all", "students")
        and n.get("targetClass") in ("all", parsed.classCode)
    ]
    return _newest_first(_with_read_status(visible, student_code))


@router.post("/api/notifications/read-all")
def mark_all_read(payload: MarkAllRead, store=Depends(get_store)):
    marked = 0
    with store.transaction() as doc:
        for notification in doc["notifications"]:
            read_by = notification.setdefault("readBy", [])
            if payload.user_code not in read_by:
                read_by.append(payload.user_code)
                marked += 1
    return {"success": True, "message": f"{marked} notifications marked as read"}


@router.post("/api/notifications/{notification_id}/read")
def mark_read(notification_id: str, payload: MarkRead, store=Depends(get_store)):
    notification_id = sanitize_input(notification_id)
    with store.transaction() as doc:
        notification = next((n for n in doc["notifications"] if n.get("id") == notification_id), None)
        if notification is None:
            raise HTTPException(status_code=404, detail="Notification not found")
        read_by = notification.setdefault("readBy", [])
        if payload.user_code not in read_by:
            read_by.append(payload.user_code)
    return {"success": True, "message": "Notification marked as read"}
