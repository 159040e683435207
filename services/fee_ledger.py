"""
Fee Ledger - student registry with running balance.

Registration opens a balance (currentDue = totalFee). Every fee
certificate records one payment and decrements currentDue; the record,
the global certificate list, the per-student list and the history entry
all change inside the same document write.
"""
import logging
import math

from services.exceptions import (
    ConflictError,
    InvalidAmountError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from services.history import add_to_history
from services.student_codes import generate_student_code, is_valid_class_code, parse_student_code
from services.validators import new_token_id, now_iso, sort_key_timestamp

logger = logging.getLogger(__name__)

FEE_STAFF = ("admin", "receptionist")


def _money(value) -> float:
    return round(float(value), 2)


def _require_staff(actor, action):
    if actor not in FEE_STAFF:
        raise PermissionDeniedError(f"Invalid user type for {action}")


def register_student(doc, student_class, student_roll, student_name, father_name,
                     total_fee, academic_year, registered_by):
    _require_staff(registered_by, "registration")

    if not all([student_class, student_roll, student_name, father_name, academic_year]) or total_fee is None:
        raise ValidationError("All fields are required")
    if not is_valid_class_code(student_class):
        raise ValidationError("Invalid class selected")

    try:
        total_fee = _money(total_fee)
    except (TypeError, ValueError):
        raise ValidationError("Invalid total fee amount")
    if not math.isfinite(total_fee) or total_fee < 0:
        raise ValidationError("Invalid total fee amount")

    student_code = generate_student_code(student_class, student_roll)
    if student_code is None:
        raise ValidationError("Invalid class or roll number combination")

    records = doc["studentMasterRecords"]
    existing = records.get(student_code)
    if existing and existing.get("academicYear") == academic_year:
        raise ConflictError(f"Student {student_code} already registered for {academic_year}", existing)

    stamp = now_iso()
    record = {
        "studentCode": student_code,
        "studentName": student_name,
        "fatherName": father_name,
        "studentClass": student_class,
        "studentRoll": student_roll,
        "totalFee": total_fee,
        "currentDue": total_fee,
        "academicYear": academic_year,
        "registeredDate": stamp,
        "lastUpdated": stamp,
    }
    records[student_code] = record

    add_to_history(doc, "student-registered", registered_by, {
        "text": f"Student registered: {student_name} ({student_code}) - Total Fee: ₹{total_fee}",
        "date": stamp,
    })
    logger.info("Student registered: %s (%s)", student_code, academic_year)
    return record


def get_balance(doc, student_code):
    """Master record (with currentDue) for a registered student code."""
    code = (student_code or "").strip().upper()
    record = doc.get("studentMasterRecords", {}).get(code)
    if record is None:
        raise NotFoundError(f"Student {code} not found. Please register this student first.")
    return record


def issue_certificate(doc, student_code, amount_paid, generated_by, remarks=""):
    """Record one payment. Returns (certificate, new_balance)."""
    _require_staff(generated_by, "fee certificate generation")

    if not student_code or amount_paid is None:
        raise ValidationError("Student code and amount paid are required")
    try:
        amount_paid = _money(amount_paid)
    except (TypeError, ValueError):
        raise InvalidAmountError("Invalid amount paid")
    if not math.isfinite(amount_paid) or amount_paid <= 0:
        raise InvalidAmountError("Invalid amount paid")

    record = get_balance(doc, student_code)
    previous_due = _money(record.get("currentDue", 0))
    if amount_paid > previous_due:
        raise InvalidAmountError(
            f"Amount paid (₹{amount_paid}) exceeds current due (₹{previous_due})"
        )

    new_due = _money(previous_due - amount_paid)
    total_paid = _money(record.get("totalFee", 0) - new_due)
    code = record["studentCode"]

    certificate = {
        "id": new_token_id("FEE"),
        "studentCode": code,
        "studentName": record.get("studentName"),
        "fatherName": record.get("fatherName"),
        "studentClass": record.get("studentClass"),
        "studentRoll": record.get("studentRoll"),
        "totalFee": record.get("totalFee"),
        "amountPaid": amount_paid,
        "previousDue": previous_due,
        "remainingDue": new_due,
        "totalPaidToDate": total_paid,
        "academicYear": record.get("academicYear"),
        "remarks": remarks or "",
        "generatedBy": generated_by,
        "generatedAt": now_iso(),
        "status": "issued",
    }

    record["currentDue"] = new_due
    record["lastUpdated"] = certificate["generatedAt"]
    doc["feeCertificates"].append(certificate)
    doc["studentFeeCertificates"].setdefault(code, []).append(certificate)

    add_to_history(doc, "fee-certificate-generated", generated_by, {
        "text": (f"Fee certificate: {record.get('studentName')} ({code}) - "
                 f"Paid: ₹{amount_paid}, Due: ₹{new_due}"),
        "date": certificate["generatedAt"],
    })
    logger.info("Fee certificate %s issued for %s: paid %s, due %s", certificate["id"], code, amount_paid, new_due)

    new_balance = {"currentDue": new_due, "totalPaid": total_paid, "totalFee": record.get("totalFee")}
    return certificate, new_balance


def list_certificates(doc):
    return sorted(doc.get("feeCertificates", []), key=lambda c: sort_key_timestamp(c.get("generatedAt")), reverse=True)


def student_certificates(doc, student_code):
    if parse_student_code(student_code) is None:
        raise ValidationError("Invalid student code format")
    items = doc.get("studentFeeCertificates", {}).get(student_code.strip().upper()) or []
    return sorted(items, key=lambda c: sort_key_timestamp(c.get("generatedAt")), reverse=True)


def list_registered_students(doc):
    return sorted(doc.get("studentMasterRecords", {}).values(), key=lambda r: r.get("studentCode", ""))


def delete_certificate(doc, certificate_id):
    """Removes the record only. The student's balance is not restored."""
    certificates = doc["feeCertificates"]
    for index, cert in enumerate(certificates):
        if cert.get("id") == certificate_id:
            deleted = certificates.pop(index)
            break
    else:
        raise NotFoundError("Fee certificate not found")

    code = (deleted.get("studentCode") or "").upper()
    per_student = doc["studentFeeCertificates"]
    if code in per_student:
        per_student[code] = [c for c in per_student[code] if c.get("id") != certificate_id]
        if not per_student[code]:
            del per_student[code]

    add_to_history(doc, "fee-certificate-deleted", "admin", {
        "text": f"Fee certificate deleted: {deleted.get('studentName')} ({deleted.get('studentCode')}) - ₹{deleted.get('amountPaid')}",
        "date": now_iso(),
    })
    logger.info("Fee certificate %s deleted", certificate_id)
    return deleted


def delete_all_certificates(doc) -> int:
    deleted_count = len(doc.get("feeCertificates", []))
    doc["feeCertificates"] = []
    doc["studentFeeCertificates"] = {}
    add_to_history(doc, "all-fee-certificates-deleted", "admin", {
        "text": f"All fee certificates deleted ({deleted_count} certificates)",
        "date": now_iso(),
    })
    logger.info("All %d fee certificates deleted", deleted_count)
    return deleted_count
