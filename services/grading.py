"""
Assignment quizzes - creation, auto-grading and result storage.
"""
import logging

from services.exceptions import NotFoundError, ValidationError
from services.history import add_to_history
from services.student_codes import is_valid_class_code, normalize_class_code, parse_student_code
from services.validators import expiry_from_days, new_numeric_id, now_iso, percentage

logger = logging.getLogger(__name__)

ANSWER_KEYS = ("a", "b", "c", "d")
MAX_QUESTIONS = 20


def create_assignment(doc, class_code, faculty_code, title, assignment_date, questions, display_days=None):
    """`questions` is a list of dicts: {question, options{a..d}, correctAnswer}."""
    if not is_valid_class_code(class_code):
        raise ValidationError("Invalid class code")
    if not questions:
        raise ValidationError("At least one question is required")
    if len(questions) > MAX_QUESTIONS:
        raise ValidationError(f"Maximum {MAX_QUESTIONS} questions allowed")

    class_code = normalize_class_code(class_code)
    assignment = {
        "id": new_numeric_id(),
        "title": title,
        "classCode": class_code,
        "facultyCode": faculty_code,
        "assignmentDate": assignment_date,
        "questions": questions,
        "date": now_iso(),
        "expiryDate": expiry_from_days(display_days),
        "isActive": True,
    }
    doc["assignments"].setdefault(class_code, []).append(assignment)
    add_to_history(doc, "assignment-created", faculty_code, {
        "title": title,
        "text": f"Assignment created: {title} for Class {class_code}",
        "date": assignment["date"],
    })
    logger.info("Assignment %s created for class %s", assignment["id"], class_code)
    return assignment


def find_assignment(doc, assignment_id, class_code=None):
    classes = [class_code] if class_code else list(doc.get("assignments", {}))
    for code in classes:
        for assignment in doc.get("assignments", {}).get(code) or []:
            if str(assignment.get("id")) == str(assignment_id):
                return assignment
    return None


def delete_assignment(doc, assignment_id, faculty_code):
    """Only the faculty who created the assignment may delete it."""
    for class_code, items in doc.get("assignments", {}).items():
        for index, assignment in enumerate(items):
            if str(assignment.get("id")) == str(assignment_id) and assignment.get("facultyCode") == faculty_code:
                deleted = items.pop(index)
                doc.get("assignmentResults", {}).pop(str(assignment_id), None)
                add_to_history(doc, "assignment-deleted", faculty_code, {
                    "text": f"Assignment deleted: {deleted.get('title')} for Class {class_code}",
                    "date": now_iso(),
                })
                logger.info("Assignment %s deleted by %s", assignment_id, faculty_code)
                return deleted
    raise NotFoundError("Assignment not found")


def grade_answers(assignment: dict, answers: list) -> tuple:
    questions = assignment.get("questions") or []
    if len(answers) != len(questions):
        raise ValidationError("Number of answers must match number of questions")
    for index, answer in enumerate(answers):
        if answer not in ANSWER_KEYS:
            raise ValidationError(f"Invalid answer for question {index + 1}")

    score = 0
    results = []
    for question, answer in zip(questions, answers):
        is_correct = answer == question.get("correctAnswer")
        if is_correct:
            score += 1
        results.append({
            "question": question.get("question"),
            "options": question.get("options"),
            "studentAnswer": answer,
            "correctAnswer": question.get("correctAnswer"),
            "isCorrect": is_correct,
        })
    return score, results


def submit_assignment(doc, assignment_id, class_code, student_code, answers):
    if not is_valid_class_code(class_code):
        raise ValidationError("Invalid class code")
    class_code = normalize_class_code(class_code)

    parsed = parse_student_code(student_code)
    if parsed is None:
        raise ValidationError("Invalid student code format")
    if parsed.classCode != class_code:
        raise ValidationError("Student does not belong to this class")

    assignment = find_assignment(doc, assignment_id, class_code)
    if assignment is None:
        raise NotFoundError("Assignment not found")
    if not assignment.get("isActive"):
        raise ValidationError("Assignment is no longer active")

    score, results = grade_answers(assignment, answers)
    total = len(assignment["questions"])
    submission = {
        "assignmentId": str(assignment_id),
        "studentCode": parsed.fullCode,
        "classCode": class_code,
        "score": score,
        "totalQuestions": total,
        "percentage": percentage(score, total),
        "results": results,
        "submittedAt": now_iso(),
    }

    # ek student ka ek hi result - resubmit pe overwrite
    stored = doc["assignmentResults"].setdefault(str(assignment_id), [])
    for index, existing in enumerate(stored):
        if existing.get("studentCode") == parsed.fullCode:
            stored[index] = submission
            break
    else:
        stored.append(submission)

    logger.info("Assignment %s submitted by %s (%d/%d)", assignment_id, parsed.fullCode, score, total)
    return submission
