"""Grievance/message serialization helpers with batched relation loading."""
from __future__ import annotations

from collections import defaultdict

from sqlalchemy.orm import Session, joinedload

from ..models import Admin, Faculty, Grievance, Message, Student
from ..schemas import GrievanceResponse, MessageResponse, RecentGrievance

# Eager-load options for one round trip per grievance page.
GRIEVANCE_LOAD_OPTIONS = (
    joinedload(Grievance.student),
    joinedload(Grievance.category),
    joinedload(Grievance.status),
    joinedload(Grievance.assigned_faculty),
)

_SENDER_MODELS = {
    "student": Student,
    "faculty": Faculty,
    "admin": Admin,
}


def build_grievance_response(grievance: Grievance) -> GrievanceResponse:
    student = grievance.student
    category = grievance.category
    status = grievance.status
    faculty = grievance.assigned_faculty
    return GrievanceResponse(
        id=grievance.id,
        title=grievance.title,
        description=grievance.description,
        priority=grievance.priority,
        attachment_path=grievance.attachment_path,
        resolution_notes=grievance.resolution_notes,
        created_at=grievance.created_at,
        updated_at=grievance.updated_at,
        resolved_at=grievance.resolved_at,
        student_id=grievance.student_id,
        student_name=student.name if student else None,
        student_email=student.email if student else None,
        enrollment_no=student.enrollment_no if student else None,
        student_department=student.department if student else None,
        category_id=grievance.category_id,
        category_name=category.name if category else None,
        status_id=grievance.status_id,
        status_name=status.name if status else None,
        status_color=status.color_code if status else None,
        assigned_to=grievance.assigned_to,
        faculty_name=faculty.name if faculty else None,
        faculty_email=faculty.email if faculty else None,
    )


def build_grievance_list(grievances: list[Grievance]) -> list[GrievanceResponse]:
    return [build_grievance_response(grievance) for grievance in grievances]


def build_recent_grievance(grievance: Grievance) -> RecentGrievance:
    return RecentGrievance(
        id=grievance.id,
        title=grievance.title,
        priority=grievance.priority,
        created_at=grievance.created_at,
        student_name=grievance.student.name if grievance.student else None,
        status_name=grievance.status.name if grievance.status else None,
        status_color=grievance.status.color_code if grievance.status else None,
    )


def load_sender_names(db: Session, messages: list[Message]) -> dict[tuple[str, int], str]:
    """Resolve sender names with one query per sender role present on the page."""
    ids_by_type: dict[str, set[int]] = defaultdict(set)
    for message in messages:
        ids_by_type[message.sender_type].add(message.sender_id)

    names: dict[tuple[str, int], str] = {}
    for sender_type, ids in ids_by_type.items():
        model = _SENDER_MODELS.get(sender_type)
        if model is None or not ids:
            continue
        for account_id, name in db.query(model.id, model.name).filter(model.id.in_(ids)).all():
            names[(sender_type, account_id)] = name
    return names


def build_message_responses(db: Session, messages: list[Message]) -> list[MessageResponse]:
    names = load_sender_names(db, messages)
    return [
        MessageResponse(
            id=message.id,
            grievance_id=message.grievance_id,
            sender_id=message.sender_id,
            sender_type=message.sender_type,
            sender_name=names.get((message.sender_type, message.sender_id)),
            message_text=message.message_text,
            is_read=bool(message.is_read),
            created_at=message.created_at,
        )
        for message in messages
    ]
