import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from config import Config
from dependencies import get_settings, get_store
from services.history import add_to_history
from services.student_codes import is_valid_class_code, normalize_class_code
from services.uploads import save_upload
from services.validators import expiry_from_days, new_numeric_id, now_iso, sanitize_input

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Faculty Posts"])

POST_TYPES = ("homework", "assignment", "subject")


@router.post("/api/faculty-posts")
def create_faculty_post(
    classCode: str = Form(None),
    type: str = Form(None),
    text: str = Form(None),
    facultyCode: str = Form(None),
    displayDays: str = Form(None),
    file: Optional[UploadFile] = File(None),
    store=Depends(get_store),
    config: Config = Depends(get_settings),
):
    class_code = sanitize_input(classCode)
    post_type = sanitize_input(type)
    text = sanitize_input(text)
    faculty_code = sanitize_input(facultyCode)

    if not class_code or not post_type or not text or not faculty_code:
        raise HTTPException(status_code=400, detail="All fields are required")
    if not is_valid_class_code(class_code):
        raise HTTPException(status_code=400, detail="Invalid class code")
    if post_type not in POST_TYPES:
        raise HTTPException(status_code=400, detail="Invalid post type")
    if len(text) > 1000:
        raise HTTPException(status_code=400, detail="Text must be less than 1000 characters")

    display_days = sanitize_input(displayDays)
    if display_days:
        try:
            display_days = int(display_days)
        except ValueError:
            raise HTTPException(status_code=400, detail="Display days must be a number")

    file_url, file_name = None, None
    if file is not None and file.filename:
        file_url, file_name = save_upload(file, config.UPLOAD_DIR)

    class_code = normalize_class_code(class_code)
    post = {
        "id": new_numeric_id(),
        "text": text,
        "date": now_iso(),
        "faculty": faculty_code,
        "file": file_url,
        "fileName": file_name,
        "expiryDate": expiry_from_days(display_days or None),
    }

    with store.transaction() as doc:
        class_posts = doc["facultyPosts"].setdefault(class_code, {t: [] for t in POST_TYPES})
        class_posts.setdefault(post_type, []).append(post)
        add_to_history(doc, f"faculty-{post_type}", faculty_code, post)

    logger.info("Faculty post (%s) for class %s by %s", post_type, class_code, faculty_code)
    return {"success": True, "post": post}
