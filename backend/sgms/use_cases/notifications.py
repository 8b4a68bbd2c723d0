"""Notification use-cases."""
from __future__ import annotations

from sqlalchemy.orm import Session

from ..auth import Actor
from ..domain_errors import NotFoundError, ValidationError
from ..models import Notification

MAX_NOTIFICATION_LIMIT = 100


def notify(
    db: Session,
    *,
    user_id: int,
    user_type: str,
    message: str,
    grievance_id: int | None = None,
) -> Notification:
    """Queue a notification on the current unit of work (caller commits)."""
    notification = Notification(
        user_id=user_id,
        user_type=user_type,
        grievance_id=grievance_id,
        message=message,
        is_read=False,
    )
    db.add(notification)
    return notification


def list_notifications_use_case(
    *,
    db: Session,
    actor: Actor,
    limit: int = 20,
    unread_only: bool = False,
) -> tuple[list[Notification], int]:
    """Return the actor's newest notifications and their unread count."""
    if limit < 1 or limit > MAX_NOTIFICATION_LIMIT:
        raise ValidationError(f"Limit must be between 1 and {MAX_NOTIFICATION_LIMIT}")

    base = db.query(Notification).filter(
        Notification.user_id == actor.id,
        Notification.user_type == actor.role,
    )
    unread_count = base.filter(Notification.is_read.is_(False)).count()

    query = base
    if unread_only:
        query = query.filter(Notification.is_read.is_(False))
    rows = query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit).all()
    return rows, int(unread_count)


def mark_notification_read_use_case(*, db: Session, actor: Actor, notification_id: int) -> Notification:
    notification = db.query(Notification).filter(
        Notification.id == notification_id,
        Notification.user_id == actor.id,
        Notification.user_type == actor.role,
    ).first()
    # Another account's notification is indistinguishable from a missing one.
    if not notification:
        raise NotFoundError("Notification not found")

    notification.is_read = True
    db.commit()
    return notification


def mark_all_notifications_read_use_case(*, db: Session, actor: Actor) -> int:
    updated = db.query(Notification).filter(
        Notification.user_id == actor.id,
        Notification.user_type == actor.role,
        Notification.is_read.is_(False),
    ).update({"is_read": True}, synchronize_session=False)
    db.commit()
    return int(updated or 0)
