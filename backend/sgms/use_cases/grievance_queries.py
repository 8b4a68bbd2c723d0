"""Scoped, filtered and paginated grievance reads."""
from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import case, func, or_
from sqlalchemy.orm import Session

from ..auth import Actor
from ..domain_errors import ForbiddenError, NotFoundError
from ..models import Grievance, Status, Student
from ..services.grievance_response_builder import GRIEVANCE_LOAD_OPTIONS, build_grievance_list
from ..services.grievance_rules import PRIORITY_RANK, normalize_status_filter, validate_priority
from ..services.pagination import LIKE_ESCAPE, contains_pattern, paginate_query


@dataclass(frozen=True)
class GrievanceFilters:
    status: str | None = None
    category: int | None = None
    priority: str | None = None
    department: str | None = None
    search: str | None = None


def get_grievance_or_404(db: Session, grievance_id: int, *, with_relations: bool = False) -> Grievance:
    query = db.query(Grievance)
    if with_relations:
        query = query.options(*GRIEVANCE_LOAD_OPTIONS)
    grievance = query.filter(Grievance.id == grievance_id).first()
    if not grievance:
        raise NotFoundError("Grievance not found")
    return grievance


def _scoped_query(db: Session, actor: Actor):
    query = (
        db.query(Grievance)
        .outerjoin(Status, Grievance.status_id == Status.id)
        .outerjoin(Student, Grievance.student_id == Student.id)
    )
    if actor.role == "student":
        return query.filter(Grievance.student_id == actor.id)
    if actor.role == "faculty":
        return query.filter(Grievance.assigned_to == actor.id)
    if actor.role == "admin":
        return query
    raise ForbiddenError("Access denied")


def _apply_filters(query, *, actor: Actor, filters: GrievanceFilters):
    status = normalize_status_filter(filters.status)
    if status is not None:
        query = query.filter(func.lower(Status.name) == status)

    if filters.category is not None:
        query = query.filter(Grievance.category_id == filters.category)

    priority = validate_priority(filters.priority)
    if priority is not None:
        query = query.filter(Grievance.priority == priority)

    # Department narrows by the owning student's department (admin view only).
    if filters.department and actor.role == "admin":
        query = query.filter(Student.department == filters.department)

    search = (filters.search or "").strip()
    if search:
        pattern = contains_pattern(search)
        clauses = [
            Grievance.title.ilike(pattern, escape=LIKE_ESCAPE),
            Grievance.description.ilike(pattern, escape=LIKE_ESCAPE),
        ]
        if actor.role == "admin":
            clauses.extend([
                Student.name.ilike(pattern, escape=LIKE_ESCAPE),
                Student.email.ilike(pattern, escape=LIKE_ESCAPE),
                Student.enrollment_no.ilike(pattern, escape=LIKE_ESCAPE),
            ])
        query = query.filter(or_(*clauses))

    return query


def _ordering(actor: Actor):
    if actor.role == "student":
        return (Grievance.created_at.desc(), Grievance.id.desc())
    priority_rank = case(PRIORITY_RANK, value=Grievance.priority, else_=0)
    return (priority_rank.desc(), Grievance.created_at.desc(), Grievance.id.desc())


def list_grievances_use_case(
    *,
    db: Session,
    actor: Actor,
    filters: GrievanceFilters | None = None,
    page: int = 1,
    limit: int = 10,
):
    """Return (rows, pagination) for the actor's scope."""
    query = _apply_filters(_scoped_query(db, actor), actor=actor, filters=filters or GrievanceFilters())
    rows, pagination = paginate_query(
        query,
        page=page,
        limit=limit,
        order_by=_ordering(actor),
        options=GRIEVANCE_LOAD_OPTIONS,
    )
    return build_grievance_list(rows), pagination
