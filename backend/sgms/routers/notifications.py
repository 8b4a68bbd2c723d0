"""Notification endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth import Actor, get_current_actor
from ..database import get_db
from ..envelope import success_envelope
from ..schemas import NotificationResponse
from ..use_cases.notifications import (
    list_notifications_use_case,
    mark_all_notifications_read_use_case,
    mark_notification_read_use_case,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("")
def list_notifications(
    limit: int = 20,
    unread_only: bool = False,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    rows, unread_count = list_notifications_use_case(db=db, actor=actor, limit=limit, unread_only=unread_only)
    return success_envelope({
        "notifications": [NotificationResponse.model_validate(row) for row in rows],
        "unread_count": unread_count,
    })


@router.put("/read-all")
def mark_all_read(actor: Actor = Depends(get_current_actor), db: Session = Depends(get_db)):
    updated = mark_all_notifications_read_use_case(db=db, actor=actor)
    return success_envelope({"updated": updated}, message="All notifications marked as read")


@router.put("/{notification_id}/read")
def mark_read(
    notification_id: int,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    notification = mark_notification_read_use_case(db=db, actor=actor, notification_id=notification_id)
    return success_envelope(NotificationResponse.model_validate(notification), message="Notification marked as read")
