"""Grievance message thread use-cases."""
from __future__ import annotations

from sqlalchemy.orm import Session

from ..auth import Actor
from ..domain_errors import ValidationError
from ..models import Message
from ..schemas import MessageResponse
from ..security import counterpart_sender_types, ensure_grievance_access
from ..services.grievance_response_builder import build_message_responses
from .grievance_queries import get_grievance_or_404

MESSAGE_MAX_LENGTH = 1000


def list_messages_use_case(*, db: Session, actor: Actor, grievance_id: int) -> list[MessageResponse]:
    """Return the thread oldest first, then mark the other side's messages read.

    The returned read flags are the ones observed before marking.
    """
    grievance = get_grievance_or_404(db, grievance_id)
    ensure_grievance_access(grievance, actor)

    messages = (
        db.query(Message)
        .filter(Message.grievance_id == grievance.id)
        .order_by(Message.created_at.asc(), Message.id.asc())
        .all()
    )
    responses = build_message_responses(db, messages)

    # Idempotent: concurrent readers issue the same UPDATE.
    db.query(Message).filter(
        Message.grievance_id == grievance.id,
        Message.sender_type.in_(counterpart_sender_types(actor.role)),
        Message.is_read.is_(False),
    ).update({"is_read": True}, synchronize_session=False)
    db.commit()

    return responses


def send_message_use_case(*, db: Session, actor: Actor, grievance_id: int, text: str | None) -> MessageResponse:
    grievance = get_grievance_or_404(db, grievance_id)
    ensure_grievance_access(grievance, actor)

    clean_text = (text or "").strip()
    if not clean_text or len(clean_text) > MESSAGE_MAX_LENGTH:
        raise ValidationError(f"Message must be between 1 and {MESSAGE_MAX_LENGTH} characters")

    message = Message(
        grievance_id=grievance.id,
        sender_id=actor.id,
        sender_type=actor.role,
        message_text=clean_text,
        is_read=False,
    )
    db.add(message)
    db.commit()
    db.refresh(message)

    return build_message_responses(db, [message])[0]
