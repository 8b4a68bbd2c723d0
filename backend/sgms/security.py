"""Security helpers (object-level access policy for grievances)."""

from __future__ import annotations

from .auth import Actor
from .domain_errors import ForbiddenError
from .models import Grievance

STAFF_ROLES = frozenset({"faculty", "admin"})


def can_view_grievance(grievance: Grievance, actor: Actor) -> bool:
    """Students see their own grievances, faculty see assigned ones, admins see all."""
    if actor.role == "admin":
        return True
    if actor.role == "student":
        return grievance.student_id == actor.id
    if actor.role == "faculty":
        return grievance.assigned_to == actor.id
    return False


def ensure_grievance_access(grievance: Grievance, actor: Actor) -> None:
    if not can_view_grievance(grievance, actor):
        raise ForbiddenError("Access denied")


def role_bucket(role: str) -> str:
    """Message read-marking buckets: students on one side, staff on the other."""
    return "staff" if role in STAFF_ROLES else "student"


def counterpart_sender_types(role: str) -> tuple[str, ...]:
    """Sender types whose messages count as unread for this role."""
    if role_bucket(role) == "staff":
        return ("student",)
    return tuple(sorted(STAFF_ROLES))
