from fastapi import APIRouter, Depends, HTTPException

from dependencies import get_store, no_cache
from services.expiry import clean_expired
from services.student_codes import parse_student_code
from services.validators import sanitize_input

router = APIRouter(tags=["Student Portal"])


def build_student_view(doc, code):
    """Everything one student may see, collected from the class-level collections."""
    class_code, roll_number = code.classCode, code.rollNumber
    student_code = code.fullCode

    class_assignments = doc["assignments"].get(class_code) or []
    assignment_results = {}
    for assignment in class_assignments:
        for result in doc["assignmentResults"].get(str(assignment.get("id"))) or []:
            if result.get("studentCode") == student_code:
                assignment_results[str(assignment["id"])] = result
                break

    progress_cards = [
        card for card in doc["progressCards"].get(class_code) or []
        if card.get("rollNumber") == roll_number or card.get("studentCode") == student_code
    ]

    return {
        "studentInfo": {
            "code": student_code,
            "class": class_code,
            "rollNumber": roll_number,
            "type": code.type,
        },
        "facultyPosts": doc["facultyPosts"].get(class_code) or {"homework": [], "assignment": [], "subject": []},
        "assignments": class_assignments,
        "assignmentResults": assignment_results,
        "progressCards": progress_cards,
        "monthlyAttendance": [r for r in doc["monthlyAttendance"] if r.get("studentCode") == student_code],
        "feeCertificates": doc["studentFeeCertificates"].get(student_code) or [],
        "hallTickets": doc["studentHallTickets"].get(student_code) or [],
    }


@router.get("/api/student-data/{student_code}")
def get_student_data(student_code: str, store=Depends(get_store)):
    student_code = sanitize_input(student_code)
    code = parse_student_code(student_code)
    if code is None:
        raise HTTPException(status_code=400, detail="Invalid student code format")

    with store.transaction() as doc:
        clean_expired(doc)
        view = build_student_view(doc, code)
    return view


@router.get("/api/data", dependencies=[Depends(no_cache)])
def get_all_data(store=Depends(get_store)):
    with store.transaction() as doc:
        clean_expired(doc)
    return doc
