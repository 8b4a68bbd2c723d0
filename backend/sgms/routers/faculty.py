"""Faculty workspace endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth import Actor, get_current_actor
from ..database import get_db
from ..domain_errors import ForbiddenError
from ..envelope import success_envelope
from ..use_cases.grievance_queries import GrievanceFilters, list_grievances_use_case
from ..use_cases.statistics import faculty_statistics_use_case

router = APIRouter(prefix="/faculty", tags=["faculty"])


def require_faculty(actor: Actor = Depends(get_current_actor)) -> Actor:
    if actor.role != "faculty":
        raise ForbiddenError("Faculty access required")
    return actor


@router.get("/grievances")
def list_assigned_grievances(
    page: int = 1,
    limit: int = 10,
    status: Optional[str] = None,
    category: Optional[int] = None,
    priority: Optional[str] = None,
    search: Optional[str] = None,
    actor: Actor = Depends(require_faculty),
    db: Session = Depends(get_db),
):
    """Grievances assigned to the calling faculty member, highest priority first."""
    rows, pagination = list_grievances_use_case(
        db=db,
        actor=actor,
        filters=GrievanceFilters(status=status, category=category, priority=priority, search=search),
        page=page,
        limit=limit,
    )
    return success_envelope(rows, pagination=pagination.as_dict())


@router.get("/stats")
def faculty_stats(actor: Actor = Depends(require_faculty), db: Session = Depends(get_db)):
    return success_envelope(faculty_statistics_use_case(db=db, actor=actor))
