from __future__ import annotations

import pytest

from sgms.domain_errors import ConflictError, NotFoundError, ValidationError
from sgms.models import Notification
from sgms.use_cases.categories import (
    create_category_use_case,
    list_categories_use_case,
    list_statuses_use_case,
    update_category_use_case,
)
from sgms.use_cases.notifications import (
    list_notifications_use_case,
    mark_all_notifications_read_use_case,
    mark_notification_read_use_case,
    notify,
)

from helpers import actor_for


def test_category_create_enforces_unique_case_insensitive_name(db_session) -> None:
    create_category_use_case(db=db_session, payload={"name": "Transport"})

    with pytest.raises(ConflictError):
        create_category_use_case(db=db_session, payload={"name": "transport"})
    with pytest.raises(ValidationError):
        create_category_use_case(db=db_session, payload={"name": "  ab "})


def test_deactivated_category_disappears_from_student_list(db_session, category) -> None:
    update_category_use_case(db=db_session, category_id=category.id, changes={"is_active": False})

    assert list_categories_use_case(db=db_session, active_only=True) == []
    assert [c.name for c in list_categories_use_case(db=db_session, active_only=False)] == ["Academic"]


def test_category_update_errors(db_session, category) -> None:
    with pytest.raises(NotFoundError):
        update_category_use_case(db=db_session, category_id=999, changes={"name": "Whatever"})
    with pytest.raises(ValidationError):
        update_category_use_case(db=db_session, category_id=category.id, changes={})


def test_statuses_listed_in_display_order(db_session, statuses) -> None:
    names = [status.name for status in list_statuses_use_case(db=db_session)]

    assert names == ["Pending", "In Progress", "Resolved", "Closed", "Reopened"]


def test_notifications_are_private_to_recipient(db_session, make_student, make_faculty) -> None:
    student = make_student()
    faculty = make_faculty()
    # Same numeric id in two tables must not leak across roles.
    assert student.id == faculty.id
    mine = notify(db_session, user_id=student.id, user_type="student", message="For the student")
    notify(db_session, user_id=faculty.id, user_type="faculty", message="For the faculty")
    db_session.commit()

    rows, unread = list_notifications_use_case(db=db_session, actor=actor_for(student, "student"))
    assert [row.message for row in rows] == ["For the student"]
    assert unread == 1

    with pytest.raises(NotFoundError):
        mark_notification_read_use_case(db=db_session, actor=actor_for(faculty, "faculty"), notification_id=mine.id)

    marked = mark_notification_read_use_case(db=db_session, actor=actor_for(student, "student"), notification_id=mine.id)
    assert marked.is_read is True


def test_mark_all_read_and_unread_only_listing(db_session, make_student) -> None:
    student = make_student()
    actor = actor_for(student, "student")
    for i in range(3):
        notify(db_session, user_id=student.id, user_type="student", message=f"note {i}")
    db_session.commit()

    assert mark_all_notifications_read_use_case(db=db_session, actor=actor) == 3
    rows, unread = list_notifications_use_case(db=db_session, actor=actor, unread_only=True)
    assert rows == []
    assert unread == 0
    assert db_session.query(Notification).filter(Notification.is_read.is_(True)).count() == 3


def test_notification_limit_is_validated(db_session, make_student) -> None:
    with pytest.raises(ValidationError):
        list_notifications_use_case(db=db_session, actor=actor_for(make_student(), "student"), limit=0)
