from __future__ import annotations

import pytest

from database import default_document
from services import fee_ledger
from services.exceptions import ConflictError, InvalidAmountError, NotFoundError, PermissionDeniedError


def _register(doc, **overrides):
    kwargs = dict(
        student_class="5",
        student_roll="12",
        student_name="Aarav Sharma",
        father_name="Rakesh Sharma",
        total_fee=10000,
        academic_year="2025-2026",
        registered_by="receptionist",
    )
    kwargs.update(overrides)
    return fee_ledger.register_student(doc, **kwargs)


# ---------- service level ----------

def test_running_balance_scenario():
    doc = default_document()
    record = _register(doc)
    assert record["studentCode"] == "CB25-05-12"
    assert record["currentDue"] == 10000

    cert, balance = fee_ledger.issue_certificate(doc, "CB25-05-12", 4000, "receptionist")
    assert cert["previousDue"] == 10000
    assert cert["remainingDue"] == 6000
    assert cert["totalPaidToDate"] == 4000
    assert cert["status"] == "issued"
    assert balance == {"currentDue": 6000, "totalPaid": 4000, "totalFee": 10000}

    with pytest.raises(InvalidAmountError):
        fee_ledger.issue_certificate(doc, "CB25-05-12", 7000, "admin")
    assert doc["studentMasterRecords"]["CB25-05-12"]["currentDue"] == 6000

    cert, _ = fee_ledger.issue_certificate(doc, "cb25-05-12", 6000, "admin")
    assert cert["remainingDue"] == 0
    assert doc["studentMasterRecords"]["CB25-05-12"]["currentDue"] == 0

    assert len(doc["feeCertificates"]) == 2
    assert len(doc["studentFeeCertificates"]["CB25-05-12"]) == 2
    assert [h["type"] for h in doc["history"]["admin"]] == ["fee-certificate-generated"]


@pytest.mark.parametrize("amount", [0, -5, "abc", None])
def test_non_positive_or_garbage_amount_is_rejected(amount):
    doc = default_document()
    _register(doc)
    with pytest.raises(Exception) as info:
        fee_ledger.issue_certificate(doc, "CB25-05-12", amount, "admin")
    assert getattr(info.value, "status_code", None) == 400
    assert doc["feeCertificates"] == []


def test_unknown_student_and_bad_role():
    doc = default_document()
    with pytest.raises(NotFoundError):
        fee_ledger.issue_certificate(doc, "CB25-05-13", 100, "admin")
    with pytest.raises(PermissionDeniedError):
        fee_ledger.issue_certificate(doc, "CB25-05-13", 100, "faculty")
    with pytest.raises(PermissionDeniedError):
        _register(doc, registered_by="student")


def test_duplicate_registration_same_year_conflicts_new_year_replaces():
    doc = default_document()
    _register(doc)
    with pytest.raises(ConflictError) as info:
        _register(doc, total_fee=5000)
    assert info.value.existing_record["totalFee"] == 10000

    record = _register(doc, academic_year="2026-2027", total_fee=12000)
    assert doc["studentMasterRecords"]["CB25-05-12"] is record
    assert record["currentDue"] == 12000


def test_delete_certificate_keeps_balance():
    doc = default_document()
    _register(doc)
    cert, _ = fee_ledger.issue_certificate(doc, "CB25-05-12", 2500, "receptionist")

    fee_ledger.delete_certificate(doc, cert["id"])
    assert doc["feeCertificates"] == []
    assert "CB25-05-12" not in doc["studentFeeCertificates"]
    assert doc["studentMasterRecords"]["CB25-05-12"]["currentDue"] == 7500

    with pytest.raises(NotFoundError):
        fee_ledger.delete_certificate(doc, cert["id"])


# ---------- HTTP level ----------

def test_register_and_pay_over_http(client, register):
    response = register()
    assert response.status_code == 200
    assert response.json()["studentRecord"]["studentCode"] == "CB25-05-12"

    duplicate = register()
    assert duplicate.status_code == 400
    assert duplicate.json()["existingRecord"]["studentCode"] == "CB25-05-12"

    paid = client.post("/api/fee-certificates", json={
        "studentCode": "CB25-05-12", "amountPaid": "4000", "generatedBy": "receptionist", "remarks": "Term 1",
    })
    assert paid.status_code == 200
    assert paid.json()["certificate"]["remainingDue"] == 6000
    assert paid.json()["newBalance"]["currentDue"] == 6000

    too_much = client.post("/api/fee-certificates", json={
        "studentCode": "CB25-05-12", "amountPaid": 7000, "generatedBy": "admin",
    })
    assert too_much.status_code == 400
    assert "exceeds current due" in too_much.json()["detail"]

    balance = client.get("/api/student-balance/cb25-05-12").json()
    assert balance["currentDue"] == 6000
    assert balance["totalFee"] == 10000


def test_certificate_listings(client, register):
    register()
    register(student_class="nursery", student_roll="7", total_fee=8000)
    for code, amount in [("CB25-05-12", 1000), ("CB25N007", 2000), ("CB25-05-12", 500)]:
        client.post("/api/fee-certificates", json={"studentCode": code, "amountPaid": amount, "generatedBy": "admin"})

    admin_view = client.get("/api/admin/fee-certificates")
    assert admin_view.headers["cache-control"].startswith("no-store")
    assert len(admin_view.json()) == 3
    assert client.get("/api/receptionist/fee-certificates").json() == admin_view.json()

    own = client.get("/api/student-fee-certificates/CB25-05-12").json()
    assert sorted(c["amountPaid"] for c in own) == [500, 1000]
    assert client.get("/api/student-fee-certificates/BADCODE").status_code == 400

    students = client.get("/api/registered-students").json()
    assert [s["studentCode"] for s in students] == ["CB25-05-12", "CB25N007"]

    deleted = client.delete("/api/admin/delete-all-fee-certificates").json()
    assert deleted["deletedCount"] == 3
    assert client.get("/api/student-fee-certificates/CB25N007").json() == []


def test_http_errors(client, register):
    assert client.get("/api/student-balance/CB25-05-12").status_code == 404
    assert register(registered_by="faculty").status_code == 403
    assert register(student_class="12").status_code == 400
    assert register(student_roll="1000").status_code == 400
    assert register(student_roll="²").status_code == 400
    assert client.post("/api/fee-certificates", json={
        "studentCode": "CB25-05-12", "amountPaid": 10, "generatedBy": "admin",
    }).status_code == 404
    assert client.delete("/api/admin/delete-fee-certificate/FEE_missing").status_code == 404


def test_get_balance_returns_master_record():
    doc = default_document()
    _register(doc)
    fee_ledger.issue_certificate(doc, "CB25-05-12", 2500, "admin")

    record = fee_ledger.get_balance(doc, " cb25-05-12 ")
    assert record["currentDue"] == 7500
    with pytest.raises(NotFoundError):
        fee_ledger.get_balance(doc, "CB25N001")
