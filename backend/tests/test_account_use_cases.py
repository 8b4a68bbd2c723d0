from __future__ import annotations

import pytest

from sgms.auth import verify_password
from sgms.domain_errors import ConflictError, NotFoundError, UnauthorizedError, ValidationError
from sgms.use_cases.accounts import (
    authenticate_use_case,
    change_password_use_case,
    create_faculty_use_case,
    list_accounts_use_case,
    register_student_use_case,
    update_account_use_case,
    update_profile_use_case,
)

from helpers import TEST_PASSWORD, actor_for


def _student_payload(**overrides):
    payload = {
        "name": "Kiran Das",
        "email": "kiran@example.edu",
        "password": "Secure123",
        "enrollment_no": "ME2024011",
        "department": "Mechanical",
        "contact": None,
    }
    payload.update(overrides)
    return payload


def test_register_student_normalizes_email_and_hashes_password(db_session) -> None:
    student = register_student_use_case(db=db_session, payload=_student_payload(email="  Kiran@Example.EDU "))

    assert student.email == "kiran@example.edu"
    assert student.password_hash != "Secure123"
    assert verify_password("Secure123", student.password_hash)


def test_register_student_rejects_duplicates_and_weak_passwords(db_session) -> None:
    register_student_use_case(db=db_session, payload=_student_payload())

    with pytest.raises(ConflictError):
        register_student_use_case(db=db_session, payload=_student_payload(enrollment_no="OTHER"))
    with pytest.raises(ConflictError):
        register_student_use_case(db=db_session, payload=_student_payload(email="new@example.edu"))
    with pytest.raises(ValidationError):
        register_student_use_case(db=db_session, payload=_student_payload(email="x@example.edu", password="weak"))


def test_create_faculty_rejects_duplicate_employee_id(db_session, make_faculty) -> None:
    existing = make_faculty()

    with pytest.raises(ConflictError):
        create_faculty_use_case(db=db_session, payload={
            "name": "New Faculty",
            "email": "new.faculty@example.edu",
            "password": "Secure123",
            "employee_id": existing.employee_id,
        })


def test_authenticate_rejects_inactive_accounts(db_session, make_student) -> None:
    active = make_student()
    inactive = make_student(is_active=False)

    assert authenticate_use_case(db=db_session, email=active.email, password=TEST_PASSWORD, role="student") is active
    assert authenticate_use_case(db=db_session, email=inactive.email, password=TEST_PASSWORD, role="student") is None
    assert authenticate_use_case(db=db_session, email=active.email, password="Wrong123", role="student") is None


def test_profile_update_touches_only_supplied_fields(db_session, make_student) -> None:
    student = make_student(contact="9876543210")

    update_profile_use_case(db=db_session, actor=actor_for(student, "student"), changes={"department": "Civil"})

    db_session.refresh(student)
    assert student.department == "Civil"
    assert student.contact == "9876543210"

    with pytest.raises(ValidationError):
        update_profile_use_case(db=db_session, actor=actor_for(student, "student"), changes={})


def test_change_password_requires_current_password(db_session, make_faculty) -> None:
    faculty = make_faculty()
    actor = actor_for(faculty, "faculty")

    with pytest.raises(UnauthorizedError):
        change_password_use_case(db=db_session, actor=actor, current_password="Wrong123", new_password="Newpass123")
    with pytest.raises(ValidationError):
        change_password_use_case(db=db_session, actor=actor, current_password=TEST_PASSWORD, new_password="short")

    change_password_use_case(db=db_session, actor=actor, current_password=TEST_PASSWORD, new_password="Newpass123")
    db_session.refresh(faculty)
    assert verify_password("Newpass123", faculty.password_hash)


def test_admin_can_deactivate_account(db_session, make_student) -> None:
    student = make_student()

    updated = update_account_use_case(db=db_session, role="student", account_id=student.id, changes={"is_active": False})

    assert updated.is_active is False
    with pytest.raises(NotFoundError):
        update_account_use_case(db=db_session, role="student", account_id=9999, changes={"is_active": False})
    with pytest.raises(ValidationError):
        update_account_use_case(db=db_session, role="student", account_id=student.id, changes={"name": None})


def test_list_accounts_filters_and_paginates(db_session, make_student) -> None:
    make_student(name="Asha", department="Civil")
    make_student(name="Bala", department="Civil", is_active=False)
    make_student(name="Chitra", department="Mechanical", enrollment_no="ME0099")

    rows, pagination = list_accounts_use_case(db=db_session, role="student", department="Civil", limit=1)
    assert len(rows) == 1
    assert pagination.total == 2
    assert pagination.pages == 2

    rows, _ = list_accounts_use_case(db=db_session, role="student", is_active=False)
    assert [row.name for row in rows] == ["Bala"]

    rows, _ = list_accounts_use_case(db=db_session, role="student", search="me0099")
    assert [row.name for row in rows] == ["Chitra"]

    with pytest.raises(ValidationError):
        list_accounts_use_case(db=db_session, role="admin")


def test_account_search_matches_underscore_literally(db_session, make_student) -> None:
    make_student(name="Plain Name")
    make_student(name="Snake Case", email="snake_case@example.edu")

    rows, pagination = list_accounts_use_case(db=db_session, role="student", search="_")

    assert [row.name for row in rows] == ["Snake Case"]
    assert pagination.total == 1
