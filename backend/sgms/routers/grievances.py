"""Grievance endpoints (submission, detail, updates, thread and feedback)."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from ..auth import Actor, PermissionChecker, get_current_actor
from ..database import get_db
from ..domain_errors import NotFoundError
from ..envelope import success_envelope
from ..schemas import FeedbackCreate, FeedbackResponse, GrievanceUpdate, MessageCreate
from ..security import ensure_grievance_access
from ..services.attachment_store import (
    media_type_for,
    release_attachment,
    resolve_attachment_path,
    save_attachment,
)
from ..services.grievance_rules import DEFAULT_PRIORITY, validate_priority, validate_submission
from ..use_cases.feedback import get_feedback_use_case, submit_feedback_use_case
from ..use_cases.grievance_lifecycle import (
    delete_grievance_use_case,
    get_grievance_use_case,
    submit_grievance_use_case,
    update_grievance_use_case,
)
from ..use_cases.grievance_queries import GrievanceFilters, get_grievance_or_404, list_grievances_use_case
from ..use_cases.messaging import list_messages_use_case, send_message_use_case
from ..use_cases.statistics import student_statistics_use_case

router = APIRouter(prefix="/grievances", tags=["grievances"])
logger = logging.getLogger(__name__)


@router.post("", status_code=201)
async def submit_grievance(
    title: str = Form(...),
    description: str = Form(...),
    category_id: int = Form(...),
    priority: str = Form(DEFAULT_PRIORITY),
    attachment: Optional[UploadFile] = File(None),
    actor: Actor = Depends(PermissionChecker("canSubmitGrievances")),
    db: Session = Depends(get_db),
):
    """Submit a grievance with an optional attachment (multipart form)."""
    # Reject bad fields before any bytes hit the upload directory.
    validate_submission(title=title, description=description)
    validate_priority(priority, default=DEFAULT_PRIORITY)

    stored_name = None
    if attachment is not None and attachment.filename:
        stored_name = await save_attachment(attachment)

    try:
        grievance = submit_grievance_use_case(
            db=db,
            actor=actor,
            title=title,
            description=description,
            category_id=category_id,
            priority=priority,
            attachment_path=stored_name,
        )
    except Exception:
        release_attachment(stored_name)
        raise

    return success_envelope(
        get_grievance_use_case(db=db, actor=actor, grievance_id=grievance.id),
        message="Grievance submitted successfully",
    )


@router.get("/student")
def list_student_grievances(
    page: int = 1,
    limit: int = 10,
    status: Optional[str] = None,
    category: Optional[int] = None,
    priority: Optional[str] = None,
    search: Optional[str] = None,
    actor: Actor = Depends(PermissionChecker("canViewOwnGrievances")),
    db: Session = Depends(get_db),
):
    rows, pagination = list_grievances_use_case(
        db=db,
        actor=actor,
        filters=GrievanceFilters(status=status, category=category, priority=priority, search=search),
        page=page,
        limit=limit,
    )
    return success_envelope(rows, pagination=pagination.as_dict())


@router.get("/stats/student")
def student_stats(
    actor: Actor = Depends(PermissionChecker("canViewOwnGrievances")),
    db: Session = Depends(get_db),
):
    return success_envelope(student_statistics_use_case(db=db, actor=actor))


@router.get("/{grievance_id}")
def get_grievance(
    grievance_id: int,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    return success_envelope(get_grievance_use_case(db=db, actor=actor, grievance_id=grievance_id))


@router.put("/{grievance_id}")
def update_grievance(
    grievance_id: int,
    payload: GrievanceUpdate,
    actor: Actor = Depends(PermissionChecker("canUpdateGrievances")),
    db: Session = Depends(get_db),
):
    update_grievance_use_case(
        db=db,
        actor=actor,
        grievance_id=grievance_id,
        changes=payload.model_dump(exclude_unset=True),
    )
    return success_envelope(
        get_grievance_use_case(db=db, actor=actor, grievance_id=grievance_id),
        message="Grievance updated successfully",
    )


@router.delete("/{grievance_id}")
def delete_grievance(
    grievance_id: int,
    actor: Actor = Depends(PermissionChecker("canDeleteGrievances")),
    db: Session = Depends(get_db),
):
    delete_grievance_use_case(db=db, actor=actor, grievance_id=grievance_id)
    return success_envelope(message="Grievance deleted successfully")


@router.get("/{grievance_id}/attachment")
def download_attachment(
    grievance_id: int,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    grievance = get_grievance_or_404(db, grievance_id)
    ensure_grievance_access(grievance, actor)
    if not grievance.attachment_path:
        raise NotFoundError("Attachment not found")

    path = resolve_attachment_path(grievance.attachment_path)
    return FileResponse(
        path,
        media_type=media_type_for(grievance.attachment_path),
        filename=grievance.attachment_path,
    )


@router.get("/{grievance_id}/messages")
def list_messages(
    grievance_id: int,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    return success_envelope(list_messages_use_case(db=db, actor=actor, grievance_id=grievance_id))


@router.post("/{grievance_id}/messages", status_code=201)
def send_message(
    grievance_id: int,
    payload: MessageCreate,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    message = send_message_use_case(db=db, actor=actor, grievance_id=grievance_id, text=payload.message_text)
    return success_envelope(message, message="Message sent successfully")


@router.post("/{grievance_id}/feedback", status_code=201)
def submit_feedback(
    grievance_id: int,
    payload: FeedbackCreate,
    actor: Actor = Depends(PermissionChecker("canSubmitFeedback")),
    db: Session = Depends(get_db),
):
    feedback = submit_feedback_use_case(
        db=db,
        actor=actor,
        grievance_id=grievance_id,
        rating=payload.rating,
        comments=payload.comments,
    )
    return success_envelope(FeedbackResponse.model_validate(feedback), message="Feedback submitted successfully")


@router.get("/{grievance_id}/feedback")
def get_feedback(
    grievance_id: int,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    feedback = get_feedback_use_case(db=db, actor=actor, grievance_id=grievance_id)
    return success_envelope(
        FeedbackResponse.model_validate(feedback) if feedback else None,
        keep_null_data=True,
    )
