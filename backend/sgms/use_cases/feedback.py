"""Post-resolution feedback use-cases."""
from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..auth import Actor, check_permission
from ..domain_errors import ConflictError, ForbiddenError, ValidationError
from ..models import Feedback, Status
from ..security import ensure_grievance_access
from ..services.grievance_rules import is_resolved
from .grievance_queries import get_grievance_or_404

logger = logging.getLogger(__name__)

COMMENTS_MAX_LENGTH = 500


def submit_feedback_use_case(
    *,
    db: Session,
    actor: Actor,
    grievance_id: int,
    rating,
    comments: str | None = None,
) -> Feedback:
    """Record the single feedback a student may leave on a Resolved grievance."""
    check_permission(actor.role, "canSubmitFeedback")

    grievance = get_grievance_or_404(db, grievance_id)
    if grievance.student_id != actor.id:
        raise ForbiddenError("You can only give feedback on your own grievances")

    status = db.query(Status).filter(Status.id == grievance.status_id).first()
    if not is_resolved(status.name if status else None):
        raise ValidationError("Feedback can only be submitted for resolved grievances")

    if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
        raise ValidationError("Rating must be an integer between 1 and 5")

    clean_comments = comments.strip() if comments else None
    if clean_comments and len(clean_comments) > COMMENTS_MAX_LENGTH:
        raise ValidationError(f"Comments must be at most {COMMENTS_MAX_LENGTH} characters")

    existing = db.query(Feedback).filter(Feedback.grievance_id == grievance.id).first()
    if existing:
        raise ConflictError("Feedback already submitted for this grievance")

    feedback = Feedback(
        grievance_id=grievance.id,
        student_id=actor.id,
        rating=rating,
        comments=clean_comments or None,
    )
    db.add(feedback)
    try:
        db.commit()
    except IntegrityError:
        # Lost the race against a concurrent submission.
        db.rollback()
        raise ConflictError("Feedback already submitted for this grievance")
    db.refresh(feedback)

    logger.info("grievance.feedback id=%s rating=%s", grievance.id, rating)
    return feedback


def get_feedback_use_case(*, db: Session, actor: Actor, grievance_id: int) -> Feedback | None:
    grievance = get_grievance_or_404(db, grievance_id)
    ensure_grievance_access(grievance, actor)
    return db.query(Feedback).filter(Feedback.grievance_id == grievance.id).first()
