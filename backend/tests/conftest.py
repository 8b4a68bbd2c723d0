"""Shared fixtures: in-memory SQLite store, seeded reference data and API client."""
from __future__ import annotations

import os
import tempfile
from datetime import datetime, timezone

# Configure the app before it is imported.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENV"] = "test"
os.environ["AUTH_RATE_LIMIT_ENABLED"] = "false"
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret-key-for-testing"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="sgms-uploads-")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from sgms.auth import get_password_hash
from sgms.database import Base, get_db
from sgms.main import app
from sgms.models import Admin, Category, Faculty, Grievance, Status, Student

from helpers import TEST_PASSWORD

# bcrypt is slow; hash once for every fixture account.
TEST_PASSWORD_HASH = get_password_hash(TEST_PASSWORD)

STATUS_ROWS = (
    ("Pending", "#FFA500", 1),
    ("In Progress", "#2196F3", 2),
    ("Resolved", "#4CAF50", 3),
    ("Closed", "#9E9E9E", 4),
    ("Reopened", "#F44336", 5),
)


@pytest.fixture
def db_session():
    """Fresh in-memory database per test (one shared connection)."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def statuses(db_session) -> dict[str, Status]:
    rows = {}
    for name, color, order in STATUS_ROWS:
        status = Status(name=name, color_code=color, display_order=order)
        db_session.add(status)
        rows[name] = status
    db_session.commit()
    return rows


@pytest.fixture
def category(db_session) -> Category:
    row = Category(name="Academic", description="Courses and exams", is_active=True)
    db_session.add(row)
    db_session.commit()
    return row


@pytest.fixture
def make_student(db_session):
    counter = {"n": 0}

    def _make(**overrides) -> Student:
        counter["n"] += 1
        n = counter["n"]
        values = {
            "name": f"Student {n}",
            "email": f"student{n}@example.edu",
            "password_hash": TEST_PASSWORD_HASH,
            "enrollment_no": f"ENR{n:04d}",
            "department": "Computer Science",
            "is_active": True,
        }
        values.update(overrides)
        student = Student(**values)
        db_session.add(student)
        db_session.commit()
        return student

    return _make


@pytest.fixture
def make_faculty(db_session):
    counter = {"n": 0}

    def _make(**overrides) -> Faculty:
        counter["n"] += 1
        n = counter["n"]
        values = {
            "name": f"Faculty {n}",
            "email": f"faculty{n}@example.edu",
            "password_hash": TEST_PASSWORD_HASH,
            "employee_id": f"EMP{n:04d}",
            "department": "Computer Science",
            "is_active": True,
        }
        values.update(overrides)
        faculty = Faculty(**values)
        db_session.add(faculty)
        db_session.commit()
        return faculty

    return _make


@pytest.fixture
def admin(db_session) -> Admin:
    row = Admin(
        name="Admin",
        email="admin@example.edu",
        password_hash=TEST_PASSWORD_HASH,
        is_active=True,
    )
    db_session.add(row)
    db_session.commit()
    return row


@pytest.fixture
def make_grievance(db_session, statuses, category):
    def _make(*, student, status="Pending", assigned_to=None, priority="medium", created_at=None, **overrides):
        values = {
            "student_id": student.id,
            "category_id": category.id,
            "status_id": statuses[status].id,
            "assigned_to": assigned_to,
            "title": "Broken projector in lab",
            "description": "The projector in lab 3 has not worked for two weeks.",
            "priority": priority,
            "created_at": created_at or datetime.now(timezone.utc),
        }
        values.update(overrides)
        grievance = Grievance(**values)
        db_session.add(grievance)
        db_session.commit()
        return grievance

    return _make


@pytest.fixture
def client(db_session):
    """Test client sharing the test session with request handlers."""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
