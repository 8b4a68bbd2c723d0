"""Grievance lifecycle invariant helpers."""

from __future__ import annotations

from datetime import datetime, timezone

from ..domain_errors import ValidationError


STATUS_PENDING = "Pending"
STATUS_IN_PROGRESS = "In Progress"
STATUS_RESOLVED = "Resolved"
STATUS_CLOSED = "Closed"
STATUS_REOPENED = "Reopened"

# Closed and Reopened are recognised values; no transition rule produces them.
STATUS_NAMES: tuple[str, ...] = (
    STATUS_PENDING,
    STATUS_IN_PROGRESS,
    STATUS_RESOLVED,
    STATUS_CLOSED,
    STATUS_REOPENED,
)
STATUS_FILTER_VALUES: frozenset[str] = frozenset(name.lower() for name in STATUS_NAMES)

PRIORITIES: tuple[str, ...] = ("low", "medium", "high")
PRIORITY_RANK: dict[str, int] = {"high": 3, "medium": 2, "low": 1}
DEFAULT_PRIORITY = "medium"

TITLE_MIN_LENGTH = 5
TITLE_MAX_LENGTH = 200
DESCRIPTION_MIN_LENGTH = 20
MAX_PAGE_LIMIT = 100


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(dt: datetime | None) -> datetime | None:
    if dt is None:
        return None
    if dt.tzinfo is None or dt.tzinfo.utcoffset(dt) is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def normalize_status_filter(status: str | None) -> str | None:
    if status is None:
        return None
    value = status.strip().lower()
    if not value:
        return None
    if value not in STATUS_FILTER_VALUES:
        raise ValidationError(f"Invalid status filter: {status}")
    return value


def validate_priority(priority: str | None, *, default: str | None = None) -> str | None:
    if priority is None:
        return default
    value = priority.strip().lower()
    if value not in PRIORITIES:
        raise ValidationError("Priority must be one of: low, medium, high")
    return value


def validate_submission(*, title: str | None, description: str | None) -> tuple[str, str]:
    """Return trimmed (title, description) or raise ValidationError."""
    clean_title = (title or "").strip()
    clean_description = (description or "").strip()
    if not (TITLE_MIN_LENGTH <= len(clean_title) <= TITLE_MAX_LENGTH):
        raise ValidationError(
            f"Title must be between {TITLE_MIN_LENGTH} and {TITLE_MAX_LENGTH} characters"
        )
    if len(clean_description) < DESCRIPTION_MIN_LENGTH:
        raise ValidationError(f"Description must be at least {DESCRIPTION_MIN_LENGTH} characters")
    return clean_title, clean_description


def validate_page_window(*, page: int, limit: int) -> None:
    # Out-of-range values are rejected, never clamped.
    if page < 1:
        raise ValidationError("Page must be a positive integer")
    if limit < 1 or limit > MAX_PAGE_LIMIT:
        raise ValidationError(f"Limit must be between 1 and {MAX_PAGE_LIMIT}")


def is_resolved(status_name: str | None) -> bool:
    return status_name == STATUS_RESOLVED


def apply_resolution_timestamp(grievance, *, status_name: str, at: datetime | None = None) -> None:
    """Stamp resolved_at when entering Resolved.

    Leaving Resolved keeps the previous stamp.
    """
    if is_resolved(status_name):
        grievance.resolved_at = at or now_utc()
