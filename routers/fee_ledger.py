"""
Fee Ledger Router - student registration, running balance and fee certificates.
Certificates are issued immediately by admin or receptionist.
"""
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException

from dependencies import get_store, no_cache
from schemas.common import CamelModel, SanitizedStr
from services import fee_ledger
from services.validators import sanitize_input

router = APIRouter(tags=["Fee Ledger System"])

# =====================
# PYDANTIC SCHEMAS
# =====================

class StudentRegister(CamelModel):
    student_class: Optional[SanitizedStr] = None
    student_roll: Optional[SanitizedStr] = None
    student_name: Optional[SanitizedStr] = None
    father_name: Optional[SanitizedStr] = None
    total_fee: Any = None
    academic_year: Optional[SanitizedStr] = None
    registered_by: Optional[str] = None


class CertificateRequest(CamelModel):
    student_code: Optional[SanitizedStr] = None
    amount_paid: Any = None
    remarks: Optional[SanitizedStr] = None
    generated_by: Optional[str] = None


# =====================
# STUDENT REGISTRY APIs
# =====================

@router.post("/api/register-student")
def register_student(payload: StudentRegister, store=Depends(get_store)):
    with store.transaction() as doc:
        record = fee_ledger.register_student(
            doc,
            student_class=payload.student_class,
            student_roll=payload.student_roll,
            student_name=payload.student_name,
            father_name=payload.father_name,
            total_fee=payload.total_fee,
            academic_year=payload.academic_year,
            registered_by=payload.registered_by,
        )
    return {"success": True, "studentRecord": record}


@router.get("/api/student-balance/{student_code}")
def get_student_balance(student_code: str, store=Depends(get_store)):
    student_code = sanitize_input(student_code)
    if not student_code:
        raise HTTPException(status_code=400, detail="Student code is required")
    record = fee_ledger.get_balance(store.load(), student_code)
    return {
        "success": True,
        "studentCode": record["studentCode"],
        "studentName": record.get("studentName"),
        "fatherName": record.get("fatherName"),
        "studentClass": record.get("studentClass"),
        "studentRoll": record.get("studentRoll"),
        "totalFee": record.get("totalFee"),
        "currentDue": record.get("currentDue"),
        "academicYear": record.get("academicYear"),
        "lastUpdated": record.get("lastUpdated"),
    }


@router.get("/api/registered-students", dependencies=[Depends(no_cache)])
def get_registered_students(store=Depends(get_store)):
    return fee_ledger.list_registered_students(store.load())


# =====================
# FEE CERTIFICATE APIs
# =====================

@router.post("/api/fee-certificates")
def generate_fee_certificate(payload: CertificateRequest, store=Depends(get_store)):
    with store.transaction() as doc:
        certificate, new_balance = fee_ledger.issue_certificate(
            doc,
            student_code=payload.student_code,
            amount_paid=payload.amount_paid,
            generated_by=payload.generated_by,
            remarks=payload.remarks,
        )
    return {"success": True, "certificate": certificate, "newBalance": new_balance}


@router.get("/api/admin/fee-certificates", dependencies=[Depends(no_cache)])
def get_admin_fee_certificates(store=Depends(get_store)):
    return fee_ledger.list_certificates(store.load())


@router.get("/api/receptionist/fee-certificates", dependencies=[Depends(no_cache)])
def get_receptionist_fee_certificates(store=Depends(get_store)):
    # receptionist bhi saare certificates dekhta hai
    return fee_ledger.list_certificates(store.load())


@router.delete("/api/admin/delete-fee-certificate/{certificate_id}")
def delete_fee_certificate(certificate_id: str, store=Depends(get_store)):
    with store.transaction() as doc:
        fee_ledger.delete_certificate(doc, certificate_id)
    return {"success": True, "message": "Fee certificate deleted successfully"}


@router.delete("/api/admin/delete-all-fee-certificates")
def delete_all_fee_certificates(store=Depends(get_store)):
    with store.transaction() as doc:
        deleted_count = fee_ledger.delete_all_certificates(doc)
    return {"success": True, "message": "All fee certificates deleted successfully", "deletedCount": deleted_count}


@router.get("/api/student-fee-certificates/{student_code}")
def get_student_fee_certificates(student_code: str, store=Depends(get_store)):
    student_code = sanitize_input(student_code)
    if not student_code:
        raise HTTPException(status_code=400, detail="Student code is required")
    return fee_ledger.student_certificates(store.load(), student_code)
