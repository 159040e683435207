"""
Student Bulk Registration Router
Receptionist/admin uploads an Excel or CSV sheet; every row goes through
the same fee-ledger registration as the single-student form.
"""
import io
import logging
from typing import Optional

import pandas as pd
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from dependencies import get_store
from services import fee_ledger
from services.exceptions import ConflictError, PermissionDeniedError, SchoolError
from services.validators import sanitize_input

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bulk-import", tags=["Bulk Import"])

REQUIRED_COLUMNS = ["student_class", "student_roll", "student_name", "father_name", "total_fee", "academic_year"]

# Sheet headers jo log alag alag likhte hain
COLUMN_ALIASES = {
    "class": "student_class",
    "studentclass": "student_class",
    "roll": "student_roll",
    "roll_no": "student_roll",
    "studentroll": "student_roll",
    "name": "student_name",
    "studentname": "student_name",
    "fathername": "father_name",
    "fee": "total_fee",
    "totalfee": "total_fee",
    "session": "academic_year",
    "academicyear": "academic_year",
}


# ==========================================
#   CELL HELPERS
# ==========================================

def safe_str(value) -> Optional[str]:
    """Safely convert value to string, handling NaN and None"""
    if value is None or pd.isna(value):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = sanitize_input(str(value))
    return text or None


def safe_float(value) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    try:
        return float(value)
    except (ValueError, TypeError):
        return None


def normalize_column(name) -> str:
    key = str(name).strip().lower().replace(" ", "_")
    return COLUMN_ALIASES.get(key.replace("_", ""), COLUMN_ALIASES.get(key, key))


def read_sheet(filename: str, content: bytes) -> pd.DataFrame:
    lower = (filename or "").lower()
    if lower.endswith((".xlsx", ".xls")):
        df = pd.read_excel(io.BytesIO(content), dtype=str)
    elif lower.endswith(".csv"):
        df = pd.read_csv(io.BytesIO(content), dtype=str)
    else:
        raise HTTPException(
            status_code=400,
            detail="Invalid file format. Please upload an Excel (.xlsx, .xls) or CSV file",
        )
    df.columns = [normalize_column(c) for c in df.columns]
    return df


# ==========================================
#   MAIN BULK IMPORT ENDPOINT
# ==========================================

@router.post("/students")
def bulk_register_students(
    file: UploadFile = File(...),
    registeredBy: str = Form(...),
    store=Depends(get_store),
):
    if registeredBy not in fee_ledger.FEE_STAFF:
        raise PermissionDeniedError("Invalid user type for registration")

    content = file.file.read()
    try:
        df = read_sheet(file.filename, content)
    except HTTPException:
        raise
    except Exception as e:
        logger.warning("Could not read uploaded sheet %s: %s", file.filename, e)
        raise HTTPException(status_code=400, detail=f"Could not read file: {e}")

    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise HTTPException(status_code=400, detail=f"Missing columns: {', '.join(missing)}")

    imported, errors = [], []
    with store.transaction() as doc:
        # header row = 1, data starts at row 2
        for row_number, row in enumerate(df.to_dict(orient="records"), start=2):
            try:
                record = fee_ledger.register_student(
                    doc,
                    student_class=safe_str(row.get("student_class")),
                    student_roll=safe_str(row.get("student_roll")),
                    student_name=safe_str(row.get("student_name")),
                    father_name=safe_str(row.get("father_name")),
                    total_fee=safe_float(row.get("total_fee")),
                    academic_year=safe_str(row.get("academic_year")),
                    registered_by=registeredBy,
                )
                imported.append(record["studentCode"])
            except ConflictError as e:
                errors.append({"row": row_number, "error": str(e), "studentCode": e.existing_record.get("studentCode")})
            except SchoolError as e:
                errors.append({"row": row_number, "error": str(e)})

    logger.info("Bulk registration: %d imported, %d failed", len(imported), len(errors))
    return {
        "success": True,
        "imported": len(imported),
        "failed": len(errors),
        "students": imported,
        "errors": errors,
    }
