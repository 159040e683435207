from typing import Any, Optional, Union

from fastapi import APIRouter, Depends, HTTPException

from dependencies import get_store
from schemas.common import CamelModel, RequiredStr, SanitizedStr
from services.history import add_to_history
from services.student_codes import generate_student_code, is_valid_class_code, normalize_class_code
from services.validators import new_numeric_id, now_iso, sanitize_input

router = APIRouter(tags=["Progress Cards"])

Number = Union[int, float, str]


class ProgressCardCreate(CamelModel):
    class_code: RequiredStr
    faculty_code: RequiredStr
    roll_number: RequiredStr
    full_name: RequiredStr
    father_name: RequiredStr
    exam_type: RequiredStr
    subjects: Any = None
    total_marks: Number
    obtained_marks: Number
    percentage: Optional[Number] = None
    performance: Optional[SanitizedStr] = None
    posting_date: RequiredStr
    display_days: Number
    expiry_date: Optional[str] = None


class ProgressCardDelete(CamelModel):
    faculty_code: RequiredStr
    class_code: RequiredStr


def _roll_sort_key(card):
    try:
        return int(card.get("rollNumber"))
    except (TypeError, ValueError):
        return 0


@router.post("/api/create-progress-card")
def create_progress_card(payload: ProgressCardCreate, store=Depends(get_store)):
    if not is_valid_class_code(payload.class_code):
        raise HTTPException(status_code=400, detail="Invalid class code")
    if not payload.total_marks or payload.display_days in (None, ""):
        raise HTTPException(status_code=400, detail="All required fields must be provided")

    student_code = generate_student_code(payload.class_code, payload.roll_number)
    if student_code is None:
        raise HTTPException(status_code=400, detail="Invalid class or roll number combination")

    class_code = normalize_class_code(payload.class_code)
    card = {
        "id": new_numeric_id(),
        "classCode": class_code,
        "facultyCode": payload.faculty_code,
        "rollNumber": payload.roll_number,
        "studentCode": student_code,
        "fullName": payload.full_name,
        "fatherName": payload.father_name,
        "examType": payload.exam_type,
        "subjects": payload.subjects,
        "totalMarks": payload.total_marks,
        "obtainedMarks": payload.obtained_marks,
        "percentage": payload.percentage,
        "performance": payload.performance,
        "postingDate": payload.posting_date,
        "displayDays": payload.display_days,
        "expiryDate": payload.expiry_date,
        "date": now_iso(),
    }

    with store.transaction() as doc:
        cards = doc["progressCards"].setdefault(class_code, [])
        # same student + same exam -> replace
        for index, existing in enumerate(cards):
            same_student = existing.get("rollNumber") == card["rollNumber"] or existing.get("studentCode") == student_code
            if same_student and existing.get("examType") == card["examType"]:
                cards[index] = card
                break
        else:
            cards.append(card)

        add_to_history(doc, "progress-card", payload.faculty_code, {
            "text": f"Progress card for {card['fullName']} ({student_code}) - Class {class_code}",
            "date": card["date"],
        })
    return {"success": True, "progressCard": card}


@router.delete("/api/delete-progress-card/{card_id}")
def delete_progress_card(card_id: str, payload: ProgressCardDelete, store=Depends(get_store)):
    class_code = normalize_class_code(payload.class_code)
    with store.transaction() as doc:
        cards = doc["progressCards"].get(class_code)
        if not cards:
            raise HTTPException(status_code=404, detail="No progress cards found")
        index = next(
            (i for i, c in enumerate(cards) if str(c.get("id")) == card_id and c.get("facultyCode") == payload.faculty_code),
            None,
        )
        if index is None:
            raise HTTPException(status_code=404, detail="Progress card not found")
        deleted = cards.pop(index)
        add_to_history(doc, "progress-card-deleted", payload.faculty_code, {
            "text": f"Progress card deleted for {deleted.get('fullName')}",
            "date": now_iso(),
        })
    return {"success": True, "message": "Progress card deleted successfully"}


@router.get("/api/progress-cards/{class_code}")
def get_progress_cards(class_code: str, store=Depends(get_store)):
    class_code = sanitize_input(class_code)
    if not is_valid_class_code(class_code):
        raise HTTPException(status_code=400, detail="Invalid class code")
    doc = store.load()
    cards = doc["progressCards"].get(normalize_class_code(class_code)) or []
    return sorted(cards, key=_roll_sort_key)
