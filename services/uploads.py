import logging
import os
import random
import shutil
import time

from services.exceptions import ValidationError

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".jpeg", ".jpg", ".png", ".gif", ".pdf", ".doc", ".docx"}
MAX_UPLOAD_BYTES = 10 * 1024 * 1024


def save_upload(upload, upload_dir):
    """Save an UploadFile under upload_dir. Returns (public_url, original_name)."""
    original_name = os.path.basename(upload.filename or "")
    ext = os.path.splitext(original_name)[1].lower()
    if not original_name or ext not in ALLOWED_EXTENSIONS:
        raise ValidationError("Only images, PDFs, and documents are allowed")

    upload.file.seek(0, os.SEEK_END)
    size = upload.file.tell()
    upload.file.seek(0)
    if size > MAX_UPLOAD_BYTES:
        raise ValidationError("File too large. Maximum size is 10MB.")

    os.makedirs(upload_dir, exist_ok=True)
    unique_name = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}-{original_name}"
    file_path = os.path.join(upload_dir, unique_name)
    with open(file_path, "wb") as buffer:
        shutil.copyfileobj(upload.file, buffer)

    logger.info("Saved upload %s (%d bytes)", unique_name, size)
    return f"/uploads/{unique_name}", original_name
