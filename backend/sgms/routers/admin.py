"""Admin endpoints: accounts, grievance triage, categories and statistics."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth import Actor, PermissionChecker
from ..database import get_db
from ..envelope import success_envelope
from ..schemas import (
    AssignRequest,
    CategoryCreate,
    CategoryResponse,
    CategoryUpdate,
    FacultyCreate,
    FacultyResponse,
    FacultyUpdate,
    StudentCreate,
    StudentResponse,
    StudentUpdate,
)
from ..use_cases.accounts import (
    create_faculty_use_case,
    list_accounts_use_case,
    register_student_use_case,
    update_account_use_case,
)
from ..use_cases.categories import (
    create_category_use_case,
    list_categories_use_case,
    update_category_use_case,
)
from ..use_cases.grievance_lifecycle import assign_grievance_use_case, get_grievance_use_case
from ..use_cases.grievance_queries import GrievanceFilters, list_grievances_use_case
from ..use_cases.statistics import dashboard_statistics_use_case, faculty_workload_use_case

router = APIRouter(prefix="/admin", tags=["admin"])

require_user_admin = PermissionChecker("canManageUsers")


# Students
@router.get("/students")
def list_students(
    page: int = 1,
    limit: int = 10,
    search: Optional[str] = None,
    department: Optional[str] = None,
    is_active: Optional[bool] = None,
    _: Actor = Depends(require_user_admin),
    db: Session = Depends(get_db),
):
    rows, pagination = list_accounts_use_case(
        db=db,
        role="student",
        page=page,
        limit=limit,
        search=search,
        department=department,
        is_active=is_active,
    )
    return success_envelope(
        [StudentResponse.model_validate(row) for row in rows],
        pagination=pagination.as_dict(),
    )


@router.post("/students", status_code=201)
def create_student(
    payload: StudentCreate,
    _: Actor = Depends(require_user_admin),
    db: Session = Depends(get_db),
):
    student = register_student_use_case(db=db, payload=payload.model_dump())
    return success_envelope(StudentResponse.model_validate(student), message="Student created successfully")


@router.put("/students/{student_id}")
def update_student(
    student_id: int,
    payload: StudentUpdate,
    _: Actor = Depends(require_user_admin),
    db: Session = Depends(get_db),
):
    student = update_account_use_case(
        db=db,
        role="student",
        account_id=student_id,
        changes=payload.model_dump(exclude_unset=True),
    )
    return success_envelope(StudentResponse.model_validate(student), message="Student updated successfully")


# Faculty
@router.get("/faculty")
def list_faculty(
    page: int = 1,
    limit: int = 10,
    search: Optional[str] = None,
    department: Optional[str] = None,
    is_active: Optional[bool] = None,
    _: Actor = Depends(require_user_admin),
    db: Session = Depends(get_db),
):
    rows, pagination = list_accounts_use_case(
        db=db,
        role="faculty",
        page=page,
        limit=limit,
        search=search,
        department=department,
        is_active=is_active,
    )
    return success_envelope(
        [FacultyResponse.model_validate(row) for row in rows],
        pagination=pagination.as_dict(),
    )


@router.post("/faculty", status_code=201)
def create_faculty(
    payload: FacultyCreate,
    _: Actor = Depends(require_user_admin),
    db: Session = Depends(get_db),
):
    faculty = create_faculty_use_case(db=db, payload=payload.model_dump())
    return success_envelope(FacultyResponse.model_validate(faculty), message="Faculty created successfully")


@router.get("/faculty/workload")
def faculty_workload(
    _: Actor = Depends(PermissionChecker("canViewStatistics")),
    db: Session = Depends(get_db),
):
    return success_envelope(faculty_workload_use_case(db=db))


@router.put("/faculty/{faculty_id}")
def update_faculty(
    faculty_id: int,
    payload: FacultyUpdate,
    _: Actor = Depends(require_user_admin),
    db: Session = Depends(get_db),
):
    faculty = update_account_use_case(
        db=db,
        role="faculty",
        account_id=faculty_id,
        changes=payload.model_dump(exclude_unset=True),
    )
    return success_envelope(FacultyResponse.model_validate(faculty), message="Faculty updated successfully")


# Grievances
@router.get("/grievances")
def list_all_grievances(
    page: int = 1,
    limit: int = 10,
    status: Optional[str] = None,
    category: Optional[int] = None,
    priority: Optional[str] = None,
    department: Optional[str] = None,
    search: Optional[str] = None,
    actor: Actor = Depends(PermissionChecker("canAssignGrievances")),
    db: Session = Depends(get_db),
):
    rows, pagination = list_grievances_use_case(
        db=db,
        actor=actor,
        filters=GrievanceFilters(
            status=status,
            category=category,
            priority=priority,
            department=department,
            search=search,
        ),
        page=page,
        limit=limit,
    )
    return success_envelope(rows, pagination=pagination.as_dict())


@router.put("/grievances/{grievance_id}/assign")
def assign_grievance(
    grievance_id: int,
    payload: AssignRequest,
    actor: Actor = Depends(PermissionChecker("canAssignGrievances")),
    db: Session = Depends(get_db),
):
    assign_grievance_use_case(db=db, actor=actor, grievance_id=grievance_id, faculty_id=payload.faculty_id)
    return success_envelope(
        get_grievance_use_case(db=db, actor=actor, grievance_id=grievance_id),
        message="Grievance assigned successfully",
    )


# Categories
@router.get("/categories")
def list_all_categories(
    _: Actor = Depends(PermissionChecker("canManageCategories")),
    db: Session = Depends(get_db),
):
    categories = list_categories_use_case(db=db, active_only=False)
    return success_envelope([CategoryResponse.model_validate(category) for category in categories])


@router.post("/categories", status_code=201)
def create_category(
    payload: CategoryCreate,
    _: Actor = Depends(PermissionChecker("canManageCategories")),
    db: Session = Depends(get_db),
):
    category = create_category_use_case(db=db, payload=payload.model_dump())
    return success_envelope(CategoryResponse.model_validate(category), message="Category created successfully")


@router.put("/categories/{category_id}")
def update_category(
    category_id: int,
    payload: CategoryUpdate,
    _: Actor = Depends(PermissionChecker("canManageCategories")),
    db: Session = Depends(get_db),
):
    category = update_category_use_case(
        db=db,
        category_id=category_id,
        changes=payload.model_dump(exclude_unset=True),
    )
    return success_envelope(CategoryResponse.model_validate(category), message="Category updated successfully")


# Statistics
@router.get("/stats")
def dashboard_stats(
    _: Actor = Depends(PermissionChecker("canViewStatistics")),
    db: Session = Depends(get_db),
):
    return success_envelope(dashboard_statistics_use_case(db=db))
