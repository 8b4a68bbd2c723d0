"""Grievance lifecycle use-cases: submit, assign, update, delete, read."""
from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from sqlalchemy.orm import Session

from ..auth import Actor, check_permission
from ..domain_errors import ForbiddenError, InternalError, NotFoundError, ValidationError
from ..models import Category, Faculty, Grievance, Notification, Status
from ..schemas import GrievanceResponse
from ..security import ensure_grievance_access
from ..services.attachment_store import release_attachment
from ..services.grievance_response_builder import build_grievance_response
from ..services.grievance_rules import (
    DEFAULT_PRIORITY,
    STATUS_IN_PROGRESS,
    STATUS_PENDING,
    apply_resolution_timestamp,
    validate_priority,
    validate_submission,
)
from .grievance_queries import get_grievance_or_404
from .notifications import notify

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("status_id", "resolution_notes", "priority")


def _get_status_by_name(db: Session, name: str) -> Status:
    status = db.query(Status).filter(Status.name == name).first()
    if not status:
        # Reference data missing: the store was not seeded.
        raise InternalError(f"Status '{name}' is not configured")
    return status


def submit_grievance_use_case(
    *,
    db: Session,
    actor: Actor,
    title: str,
    description: str,
    category_id: int,
    priority: str | None = None,
    attachment_path: str | None = None,
) -> Grievance:
    """Create a Pending, unassigned grievance owned by the submitting student."""
    check_permission(actor.role, "canSubmitGrievances")

    clean_title, clean_description = validate_submission(title=title, description=description)
    clean_priority = validate_priority(priority, default=DEFAULT_PRIORITY)

    category = db.query(Category).filter(
        Category.id == category_id,
        Category.is_active.is_(True),
    ).first()
    if not category:
        raise NotFoundError("Category not found")

    pending = _get_status_by_name(db, STATUS_PENDING)

    grievance = Grievance(
        student_id=actor.id,
        category_id=category.id,
        status_id=pending.id,
        assigned_to=None,
        title=clean_title,
        description=clean_description,
        priority=clean_priority,
        attachment_path=attachment_path,
    )
    db.add(grievance)
    db.commit()
    db.refresh(grievance)

    logger.info("grievance.submitted id=%s student=%s", grievance.id, actor.id)
    return grievance


def assign_grievance_use_case(
    *,
    db: Session,
    actor: Actor,
    grievance_id: int,
    faculty_id: int,
) -> Grievance:
    """Assign (or reassign) a grievance; status always becomes In Progress."""
    check_permission(actor.role, "canAssignGrievances")

    faculty = db.query(Faculty).filter(
        Faculty.id == faculty_id,
        Faculty.is_active.is_(True),
    ).first()
    if not faculty:
        raise NotFoundError("Faculty not found or inactive")

    grievance = get_grievance_or_404(db, grievance_id)
    in_progress = _get_status_by_name(db, STATUS_IN_PROGRESS)

    grievance.assigned_to = faculty.id
    grievance.status_id = in_progress.id

    notify(
        db,
        user_id=faculty.id,
        user_type="faculty",
        grievance_id=grievance.id,
        message=f'New grievance assigned to you: "{grievance.title}"',
    )
    notify(
        db,
        user_id=grievance.student_id,
        user_type="student",
        grievance_id=grievance.id,
        message=f'Your grievance "{grievance.title}" has been assigned to {faculty.name}',
    )
    db.commit()
    db.refresh(grievance)

    logger.info("grievance.assigned id=%s faculty=%s", grievance.id, faculty.id)
    return grievance


def update_grievance_use_case(
    *,
    db: Session,
    actor: Actor,
    grievance_id: int,
    changes: dict[str, Any],
) -> Grievance:
    """Apply a partial update; only the supplied columns are written."""
    check_permission(actor.role, "canUpdateGrievances")

    values = {key: value for key, value in changes.items() if key in UPDATABLE_FIELDS}
    if not values:
        raise ValidationError("No fields to update")

    grievance = get_grievance_or_404(db, grievance_id)
    if actor.role == "faculty" and grievance.assigned_to != actor.id:
        raise ForbiddenError("You can only update grievances assigned to you")

    new_status: Status | None = None
    if "status_id" in values:
        if values["status_id"] is None:
            raise ValidationError("status_id cannot be null")
        new_status = db.query(Status).filter(Status.id == values["status_id"]).first()
        if not new_status:
            raise NotFoundError("Status not found")
        if new_status.name == STATUS_PENDING and grievance.assigned_to is not None:
            raise ValidationError("An assigned grievance cannot be moved back to Pending")

    if "priority" in values:
        if values["priority"] is None:
            raise ValidationError("Priority cannot be null")
        values["priority"] = validate_priority(values["priority"])

    status_changed = new_status is not None and new_status.id != grievance.status_id
    for field, value in values.items():
        setattr(grievance, field, value)

    if new_status is not None:
        # resolved_at is stamped on entering Resolved and kept when leaving it.
        apply_resolution_timestamp(grievance, status_name=new_status.name)

    if status_changed:
        notify(
            db,
            user_id=grievance.student_id,
            user_type="student",
            grievance_id=grievance.id,
            message=f'Your grievance "{grievance.title}" status changed to {new_status.name}',
        )

    db.commit()
    db.refresh(grievance)

    logger.info(
        "grievance.updated id=%s by=%s:%s fields=%s",
        grievance.id,
        actor.role,
        actor.id,
        ",".join(sorted(values)),
    )
    return grievance


def delete_grievance_use_case(
    *,
    db: Session,
    actor: Actor,
    grievance_id: int,
    release: Callable[[str | None], None] = release_attachment,
) -> None:
    """Hard-delete a grievance with its messages and feedback."""
    check_permission(actor.role, "canDeleteGrievances")

    grievance = get_grievance_or_404(db, grievance_id)
    attachment_path = grievance.attachment_path

    # Keep notification rows but clear FK.
    db.query(Notification).filter(Notification.grievance_id == grievance.id).update(
        {"grievance_id": None},
        synchronize_session=False,
    )
    db.delete(grievance)
    db.commit()

    release(attachment_path)
    logger.info("grievance.deleted id=%s by=%s", grievance_id, actor.id)


def get_grievance_use_case(*, db: Session, actor: Actor, grievance_id: int) -> GrievanceResponse:
    grievance = get_grievance_or_404(db, grievance_id, with_relations=True)
    ensure_grievance_access(grievance, actor)
    return build_grievance_response(grievance)
