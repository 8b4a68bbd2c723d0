"""Account use-cases for the three account tables."""
from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..auth import (
    ACCOUNT_MODELS,
    Actor,
    get_password_hash,
    validate_new_password,
    verify_password,
)
from ..domain_errors import ConflictError, NotFoundError, UnauthorizedError, ValidationError
from ..models import Faculty, Student
from ..services.pagination import LIKE_ESCAPE, contains_pattern, paginate_query

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("name", "department", "contact")
STUDENT_ADMIN_FIELDS = ("name", "department", "contact", "is_active")
FACULTY_ADMIN_FIELDS = ("name", "department", "contact", "designation", "is_active")
REQUIRED_FIELDS = frozenset({"name", "is_active"})


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def _email_taken(db: Session, model, email: str) -> bool:
    return db.query(model.id).filter(model.email == email).first() is not None


def _commit_new_account(db: Session, account, *, conflict_message: str):
    db.add(account)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError(conflict_message)
    db.refresh(account)
    return account


def authenticate_use_case(*, db: Session, email: str, password: str, role: str):
    """Return the active account matching the credentials, or None."""
    model = ACCOUNT_MODELS.get(role)
    if model is None:
        raise ValidationError("Invalid role")

    account = db.query(model).filter(model.email == normalize_email(email)).first()
    if not account or not account.is_active:
        return None
    if not verify_password(password, account.password_hash):
        return None
    return account


def register_student_use_case(*, db: Session, payload: dict[str, Any]) -> Student:
    email = normalize_email(payload.get("email"))
    validate_new_password(new_password=payload.get("password"))

    if _email_taken(db, Student, email):
        raise ConflictError("Email already registered")
    enrollment_no = (payload.get("enrollment_no") or "").strip()
    if db.query(Student.id).filter(Student.enrollment_no == enrollment_no).first():
        raise ConflictError("Enrollment number already registered")

    student = Student(
        name=payload["name"].strip(),
        email=email,
        password_hash=get_password_hash(payload["password"]),
        enrollment_no=enrollment_no,
        department=payload.get("department"),
        contact=payload.get("contact"),
        is_active=True,
    )
    student = _commit_new_account(db, student, conflict_message="Student already exists")
    logger.info("account.registered role=student id=%s", student.id)
    return student


def create_faculty_use_case(*, db: Session, payload: dict[str, Any]) -> Faculty:
    email = normalize_email(payload.get("email"))
    validate_new_password(new_password=payload.get("password"))

    if _email_taken(db, Faculty, email):
        raise ConflictError("Email already registered")
    employee_id = (payload.get("employee_id") or "").strip()
    if db.query(Faculty.id).filter(Faculty.employee_id == employee_id).first():
        raise ConflictError("Employee ID already registered")

    faculty = Faculty(
        name=payload["name"].strip(),
        email=email,
        password_hash=get_password_hash(payload["password"]),
        employee_id=employee_id,
        department=payload.get("department"),
        designation=payload.get("designation"),
        contact=payload.get("contact"),
        is_active=True,
    )
    faculty = _commit_new_account(db, faculty, conflict_message="Faculty already exists")
    logger.info("account.created role=faculty id=%s", faculty.id)
    return faculty


def get_account_or_404(db: Session, *, role: str, account_id: int):
    model = ACCOUNT_MODELS.get(role)
    if model is None:
        raise ValidationError("Invalid role")
    account = db.query(model).filter(model.id == account_id).first()
    if not account:
        raise NotFoundError(f"{role.capitalize()} not found")
    return account


def _apply_partial(account, changes: dict[str, Any], allowed: tuple[str, ...]) -> list[str]:
    fields = [field for field in allowed if field in changes]
    if not fields:
        raise ValidationError("No fields to update")
    for field in REQUIRED_FIELDS.intersection(fields):
        if changes[field] is None:
            raise ValidationError(f"{field} cannot be null")
    for field in fields:
        setattr(account, field, changes[field])
    return fields


def update_account_use_case(*, db: Session, role: str, account_id: int, changes: dict[str, Any]):
    """Admin partial update of a student or faculty account."""
    allowed = FACULTY_ADMIN_FIELDS if role == "faculty" else STUDENT_ADMIN_FIELDS
    account = get_account_or_404(db, role=role, account_id=account_id)
    fields = _apply_partial(account, changes, allowed)
    db.commit()
    db.refresh(account)
    logger.info("account.updated role=%s id=%s fields=%s", role, account_id, ",".join(fields))
    return account


def update_profile_use_case(*, db: Session, actor: Actor, changes: dict[str, Any]):
    account = get_account_or_404(db, role=actor.role, account_id=actor.id)
    _apply_partial(account, changes, PROFILE_FIELDS)
    db.commit()
    db.refresh(account)
    return account


def change_password_use_case(*, db: Session, actor: Actor, current_password: str, new_password: str) -> None:
    account = get_account_or_404(db, role=actor.role, account_id=actor.id)
    if not verify_password(current_password, account.password_hash):
        raise UnauthorizedError("Current password is incorrect")
    validate_new_password(new_password=new_password)

    account.password_hash = get_password_hash(new_password)
    db.commit()
    logger.info("account.password_changed role=%s id=%s", actor.role, actor.id)


def list_accounts_use_case(
    *,
    db: Session,
    role: str,
    page: int = 1,
    limit: int = 10,
    search: str | None = None,
    department: str | None = None,
    is_active: bool | None = None,
):
    """Paginated student/faculty directory for admins."""
    model = ACCOUNT_MODELS.get(role)
    if model is None or role == "admin":
        raise ValidationError("Invalid role")

    query = db.query(model)
    term = (search or "").strip()
    if term:
        pattern = contains_pattern(term)
        natural_key = model.enrollment_no if role == "student" else model.employee_id
        query = query.filter(or_(
            model.name.ilike(pattern, escape=LIKE_ESCAPE),
            model.email.ilike(pattern, escape=LIKE_ESCAPE),
            natural_key.ilike(pattern, escape=LIKE_ESCAPE),
        ))
    if department:
        query = query.filter(model.department == department)
    if is_active is not None:
        query = query.filter(model.is_active.is_(is_active))

    return paginate_query(
        query,
        page=page,
        limit=limit,
        order_by=(model.created_at.desc(), model.id.desc()),
    )
