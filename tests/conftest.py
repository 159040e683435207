from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from config import Config
from database import MemoryStore
from dependencies import get_settings, get_store
from main import app


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def test_config(tmp_path):
    config = Config()
    config.UPLOAD_DIR = str(tmp_path / "uploads")
    return config


@pytest.fixture
def client(store, test_config):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_settings] = lambda: test_config
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def register(client):
    def _register(student_class="5", student_roll="12", total_fee=10000, academic_year="2025-2026", **extra):
        body = {
            "studentClass": student_class,
            "studentRoll": student_roll,
            "studentName": extra.pop("student_name", "Aarav Sharma"),
            "fatherName": extra.pop("father_name", "Rakesh Sharma"),
            "totalFee": total_fee,
            "academicYear": academic_year,
            "registeredBy": extra.pop("registered_by", "receptionist"),
        }
        return client.post("/api/register-student", json=body)

    return _register
