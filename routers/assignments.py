from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import Field

from dependencies import get_store
from schemas.common import CamelModel, RequiredStr
from services import grading
from services.expiry import clean_expired
from services.student_codes import is_valid_class_code, normalize_class_code
from services.validators import sanitize_input, sort_key_timestamp

router = APIRouter(tags=["Assignments"])

# =====================
# PYDANTIC SCHEMAS
# =====================

class QuestionOptions(CamelModel):
    a: RequiredStr = Field(max_length=200)
    b: RequiredStr = Field(max_length=200)
    c: RequiredStr = Field(max_length=200)
    d: RequiredStr = Field(max_length=200)


class Question(CamelModel):
    question: RequiredStr = Field(max_length=500)
    options: QuestionOptions
    correct_answer: str = Field(pattern="^[abcd]$")


class AssignmentCreate(CamelModel):
    class_code: RequiredStr
    faculty_code: RequiredStr
    title: RequiredStr = Field(max_length=200)
    assignment_date: RequiredStr
    questions: List[Question] = Field(min_length=1, max_length=grading.MAX_QUESTIONS)
    display_days: Optional[int] = Field(None, ge=1)


class AssignmentDelete(CamelModel):
    faculty_code: RequiredStr


class AssignmentSubmit(CamelModel):
    assignment_id: RequiredStr
    class_code: RequiredStr
    student_code: RequiredStr
    answers: List[str]


# =====================
# APIs
# =====================

@router.post("/api/create-assignment")
def create_assignment(payload: AssignmentCreate, store=Depends(get_store)):
    questions = [q.model_dump(by_alias=True) for q in payload.questions]
    with store.transaction() as doc:
        assignment = grading.create_assignment(
            doc,
            class_code=payload.class_code,
            faculty_code=payload.faculty_code,
            title=payload.title,
            assignment_date=payload.assignment_date,
            questions=questions,
            display_days=payload.display_days,
        )
    return {"success": True, "assignment": assignment}


@router.delete("/api/delete-assignment/{assignment_id}")
def delete_assignment(assignment_id: str, payload: AssignmentDelete, store=Depends(get_store)):
    with store.transaction() as doc:
        grading.delete_assignment(doc, assignment_id, payload.faculty_code)
    return {"success": True, "message": "Assignment deleted successfully"}


@router.post("/api/submit-assignment")
def submit_assignment(payload: AssignmentSubmit, store=Depends(get_store)):
    with store.transaction() as doc:
        submission = grading.submit_assignment(
            doc,
            assignment_id=payload.assignment_id,
            class_code=payload.class_code,
            student_code=payload.student_code,
            answers=payload.answers,
        )
    return {"success": True, "submission": submission}


@router.get("/api/assignment-results/{assignment_id}")
def get_assignment_results(assignment_id: str, store=Depends(get_store)):
    doc = store.load()
    results = doc["assignmentResults"].get(sanitize_input(assignment_id)) or []
    return sorted(results, key=lambda r: sort_key_timestamp(r.get("submittedAt")), reverse=True)


@router.get("/api/assignments/{class_code}")
def get_assignments(class_code: str, store=Depends(get_store)):
    class_code = sanitize_input(class_code)
    if not is_valid_class_code(class_code):
        raise HTTPException(status_code=400, detail="Invalid class code")

    with store.transaction() as doc:
        clean_expired(doc)
        assignments = doc["assignments"].get(normalize_class_code(class_code)) or []
    active = [a for a in assignments if a.get("isActive")]
    return sorted(active, key=lambda a: sort_key_timestamp(a.get("date")), reverse=True)
