import logging

from fastapi import APIRouter, Depends, HTTPException

from dependencies import get_store
from schemas.common import CamelModel, RequiredStr
from services.history import add_to_history
from services.student_codes import generate_student_code, is_valid_class_code, normalize_class_code
from services.validators import is_valid_attendance_date, new_numeric_id, now_iso, percentage, sanitize_input

logger = logging.getLogger(__name__)

router = APIRouter(tags=["attendance"])

# --- SCHEMAS ---
class MonthlyAttendanceSubmit(CamelModel):
    class_code: RequiredStr
    faculty_code: RequiredStr
    month: int
    year: int
    student_name: RequiredStr
    student_roll: RequiredStr
    total_working_days: int
    attended_days: int


class AttendanceDelete(CamelModel):
    faculty_code: RequiredStr


# 1. POST MONTHLY ATTENDANCE (upsert per student + month + year)
@router.post("/api/post-monthly-attendance")
def post_monthly_attendance(payload: MonthlyAttendanceSubmit, store=Depends(get_store)):
    if not is_valid_class_code(payload.class_code):
        raise HTTPException(status_code=400, detail="Invalid class code")
    if not is_valid_attendance_date(payload.month, payload.year):
        raise HTTPException(status_code=400, detail="Invalid attendance date")
    if payload.total_working_days < 0 or not 0 <= payload.attended_days <= payload.total_working_days:
        raise HTTPException(status_code=400, detail="Attended days must be between 0 and total working days")

    student_code = generate_student_code(payload.class_code, payload.student_roll)
    if student_code is None:
        raise HTTPException(status_code=400, detail="Invalid class or roll number combination")

    record = {
        "id": new_numeric_id(),
        "classCode": normalize_class_code(payload.class_code),
        "facultyCode": payload.faculty_code,
        "studentCode": student_code,
        "month": payload.month,
        "year": payload.year,
        "studentName": payload.student_name,
        "studentRoll": payload.student_roll,
        "totalWorkingDays": payload.total_working_days,
        "attendedDays": payload.attended_days,
        "percentage": percentage(payload.attended_days, payload.total_working_days),
        "postedAt": now_iso(),
    }

    with store.transaction() as doc:
        records = doc["monthlyAttendance"]
        for index, existing in enumerate(records):
            if (existing.get("studentCode") == student_code
                    and existing.get("month") == record["month"]
                    and existing.get("year") == record["year"]):
                records[index] = record
                break
        else:
            records.append(record)

        add_to_history(doc, "monthly-attendance", payload.faculty_code, {
            "text": f"Monthly attendance posted for {payload.student_name} ({student_code})",
            "date": record["postedAt"],
        })

    logger.info("Monthly attendance posted for %s (%02d/%d)", student_code, payload.month, payload.year)
    return {"success": True, "record": record}


# 2. CLASS REGISTER (latest month first)
@router.get("/api/monthly-attendance/{class_code}")
def get_monthly_attendance(class_code: str, store=Depends(get_store)):
    class_code = sanitize_input(class_code)
    if not is_valid_class_code(class_code):
        raise HTTPException(status_code=400, detail="Invalid class code")
    class_code = normalize_class_code(class_code)

    doc = store.load()
    records = [r for r in doc["monthlyAttendance"] if r.get("classCode") == class_code]
    return sorted(records, key=lambda r: (r.get("year", 0), r.get("month", 0)), reverse=True)


# 3. DELETE (sirf wahi faculty jisne post kiya)
@router.delete("/api/delete-monthly-attendance/{record_id}")
def delete_monthly_attendance(record_id: str, payload: AttendanceDelete, store=Depends(get_store)):
    with store.transaction() as doc:
        records = doc["monthlyAttendance"]
        index = next(
            (i for i, r in enumerate(records) if str(r.get("id")) == record_id and r.get("facultyCode") == payload.faculty_code),
            None,
        )
        if index is None:
            raise HTTPException(status_code=404, detail="Attendance record not found or unauthorized")
        deleted = records.pop(index)
        add_to_history(doc, "attendance-deleted", payload.faculty_code, {
            "text": f"Monthly attendance deleted for {deleted.get('studentName')} ({deleted.get('studentCode')})",
            "date": now_iso(),
        })

    logger.info("Attendance record %s deleted by %s", record_id, payload.faculty_code)
    return {"success": True, "message": "Attendance record deleted successfully"}
