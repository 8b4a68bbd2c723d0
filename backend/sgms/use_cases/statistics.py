"""Read-only aggregates for the dashboards."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import case, func
from sqlalchemy.orm import Session, joinedload

from ..auth import Actor
from ..models import Category, Faculty, Grievance, Status, Student
from ..services.grievance_response_builder import build_recent_grievance
from ..services.grievance_rules import (
    PRIORITIES,
    STATUS_IN_PROGRESS,
    STATUS_PENDING,
    STATUS_RESOLVED,
    as_utc,
    now_utc,
)

MONTHS_WINDOW = 6
TOP_CATEGORIES = 10
RECENT_LIMIT = 5


def _month_keys(now: datetime, count: int) -> list[tuple[int, int]]:
    """Calendar months ending with the current one, newest first."""
    year, month = now.year, now.month
    keys = []
    for _ in range(count):
        keys.append((year, month))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return keys


def _count_by_status_name(query) -> dict[str, int]:
    rows = query.with_entities(Status.name, func.count(Grievance.id)).group_by(Status.name).all()
    return {name: int(count) for name, count in rows if name is not None}


def _count_by_priority(query) -> dict[str, int]:
    counts = {priority: 0 for priority in PRIORITIES}
    rows = query.with_entities(Grievance.priority, func.count(Grievance.id)).group_by(Grievance.priority).all()
    for priority, count in rows:
        if priority in counts:
            counts[priority] = int(count)
    return counts


def _status_breakdown(db: Session) -> list[dict]:
    rows = (
        db.query(Status.id, Status.name, Status.color_code, func.count(Grievance.id))
        .outerjoin(Grievance, Grievance.status_id == Status.id)
        .group_by(Status.id, Status.name, Status.color_code, Status.display_order)
        .order_by(Status.display_order.asc(), Status.id.asc())
        .all()
    )
    return [
        {"id": status_id, "name": name, "color_code": color, "count": int(count)}
        for status_id, name, color, count in rows
    ]


def _category_breakdown(db: Session) -> list[dict]:
    count_col = func.count(Grievance.id)
    rows = (
        db.query(Category.id, Category.name, count_col)
        .outerjoin(Grievance, Grievance.category_id == Category.id)
        .filter(Category.is_active.is_(True))
        .group_by(Category.id, Category.name)
        .order_by(count_col.desc(), Category.name.asc())
        .limit(TOP_CATEGORIES)
        .all()
    )
    return [{"id": category_id, "name": name, "count": int(count)} for category_id, name, count in rows]


def _monthly_trend(db: Session, *, now: datetime) -> list[dict]:
    keys = _month_keys(now, MONTHS_WINDOW)
    oldest_year, oldest_month = keys[-1]
    window_start = now.replace(
        year=oldest_year, month=oldest_month, day=1, hour=0, minute=0, second=0, microsecond=0
    )

    buckets = {key: {"total": 0, "resolved": 0} for key in keys}
    rows = (
        db.query(Grievance.created_at, Status.name)
        .outerjoin(Status, Grievance.status_id == Status.id)
        .filter(Grievance.created_at >= window_start)
        .all()
    )
    for created_at, status_name in rows:
        created = as_utc(created_at)
        if created is None:
            continue
        bucket = buckets.get((created.year, created.month))
        if bucket is None:
            continue
        bucket["total"] += 1
        if status_name == STATUS_RESOLVED:
            bucket["resolved"] += 1

    return [
        {"month": f"{year:04d}-{month:02d}", **buckets[(year, month)]}
        for year, month in keys
    ]


def dashboard_statistics_use_case(*, db: Session, now: datetime | None = None) -> dict:
    """Admin dashboard aggregates; empty tables yield zeros and empty lists."""
    current = as_utc(now) or now_utc()

    by_status = _status_breakdown(db)
    counts_by_name = {row["name"]: row["count"] for row in by_status}

    recent = (
        db.query(Grievance)
        .options(joinedload(Grievance.student), joinedload(Grievance.status))
        .order_by(Grievance.created_at.desc(), Grievance.id.desc())
        .limit(RECENT_LIMIT)
        .all()
    )

    return {
        "totals": {
            "total_students": int(db.query(func.count(Student.id)).filter(Student.is_active.is_(True)).scalar() or 0),
            "total_faculty": int(db.query(func.count(Faculty.id)).filter(Faculty.is_active.is_(True)).scalar() or 0),
            "total_grievances": int(db.query(func.count(Grievance.id)).scalar() or 0),
            "pending": counts_by_name.get(STATUS_PENDING, 0),
            "in_progress": counts_by_name.get(STATUS_IN_PROGRESS, 0),
            "resolved": counts_by_name.get(STATUS_RESOLVED, 0),
        },
        "by_status": by_status,
        "by_category": _category_breakdown(db),
        "by_priority": [
            {"priority": priority, "count": count}
            for priority, count in _count_by_priority(db.query(Grievance)).items()
        ],
        "monthly": _monthly_trend(db, now=current),
        "recent": [build_recent_grievance(grievance) for grievance in recent],
    }


def faculty_workload_use_case(*, db: Session) -> list[dict]:
    assigned = func.count(Grievance.id)

    def _status_sum(name: str):
        return func.sum(case((Status.name == name, 1), else_=0))

    rows = (
        db.query(
            Faculty.id,
            Faculty.name,
            Faculty.email,
            Faculty.department,
            assigned,
            _status_sum(STATUS_PENDING),
            _status_sum(STATUS_IN_PROGRESS),
            _status_sum(STATUS_RESOLVED),
        )
        .outerjoin(Grievance, Grievance.assigned_to == Faculty.id)
        .outerjoin(Status, Grievance.status_id == Status.id)
        .filter(Faculty.is_active.is_(True))
        .group_by(Faculty.id, Faculty.name, Faculty.email, Faculty.department)
        .order_by(assigned.desc(), Faculty.name.asc())
        .all()
    )
    return [
        {
            "id": faculty_id,
            "name": name,
            "email": email,
            "department": department,
            "assigned": int(total or 0),
            "pending": int(pending or 0),
            "in_progress": int(in_progress or 0),
            "resolved": int(resolved or 0),
        }
        for faculty_id, name, email, department, total, pending, in_progress, resolved in rows
    ]


def student_statistics_use_case(*, db: Session, actor: Actor) -> dict:
    own = db.query(Grievance).outerjoin(Status, Grievance.status_id == Status.id).filter(
        Grievance.student_id == actor.id,
    )
    by_status = _count_by_status_name(own)
    return {
        "total": int(own.count()),
        "pending": by_status.get(STATUS_PENDING, 0),
        "in_progress": by_status.get(STATUS_IN_PROGRESS, 0),
        "resolved": by_status.get(STATUS_RESOLVED, 0),
        "by_priority": _count_by_priority(own),
    }


def faculty_statistics_use_case(*, db: Session, actor: Actor) -> dict:
    assigned = db.query(Grievance).outerjoin(Status, Grievance.status_id == Status.id).filter(
        Grievance.assigned_to == actor.id,
    )
    by_status = _count_by_status_name(assigned)

    durations = [
        (as_utc(resolved_at) - as_utc(created_at)).total_seconds() / 86400
        for created_at, resolved_at in assigned.with_entities(Grievance.created_at, Grievance.resolved_at)
        .filter(Status.name == STATUS_RESOLVED, Grievance.resolved_at.isnot(None))
        .all()
        if created_at is not None
    ]
    avg_days = round(sum(durations) / len(durations), 1) if durations else None

    return {
        "total_assigned": int(assigned.count()),
        "pending": by_status.get(STATUS_PENDING, 0),
        "in_progress": by_status.get(STATUS_IN_PROGRESS, 0),
        "resolved": by_status.get(STATUS_RESOLVED, 0),
        "high_priority": int(assigned.filter(Grievance.priority == "high").count()),
        "avg_resolution_days": avg_days,
    }
