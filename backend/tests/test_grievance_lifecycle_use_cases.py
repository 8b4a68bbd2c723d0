from __future__ import annotations

from types import SimpleNamespace

import pytest

from sgms.auth import Actor
from sgms.domain_errors import (
    DomainError,
    ForbiddenError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from sgms.models import Category, Faculty, Grievance, Notification, Status
from sgms.use_cases.grievance_lifecycle import (
    assign_grievance_use_case,
    delete_grievance_use_case,
    submit_grievance_use_case,
    update_grievance_use_case,
)


class _QueryStub:
    def __init__(self, *, first_result=None):
        self._first_result = first_result
        self.updates = []

    def filter(self, *_args, **_kwargs):
        return self

    def options(self, *_args, **_kwargs):
        return self

    def first(self):
        return self._first_result

    def update(self, values, **_kwargs):
        self.updates.append(values)
        return 1


class _SessionStub:
    def __init__(self, *, results=None):
        self._results = results or {}
        self.queries: dict[type, _QueryStub] = {}
        self.added = []
        self.deleted = []
        self.commit_calls = 0

    def query(self, model):
        if model not in self._results:
            raise AssertionError(f"Unexpected query model: {model}")
        query = _QueryStub(first_result=self._results[model])
        self.queries[model] = query
        return query

    def add(self, obj):
        self.added.append(obj)

    def delete(self, obj):
        self.deleted.append(obj)

    def commit(self):
        self.commit_calls += 1

    def refresh(self, _obj):
        return None


def _actor(role: str, account_id: int = 1) -> Actor:
    return Actor(id=account_id, role=role, email=f"{role}@example.edu", name=role.title())


def _grievance(**overrides):
    values = {
        "id": 10,
        "student_id": 1,
        "assigned_to": None,
        "status_id": 1,
        "title": "Broken projector in lab",
        "priority": "medium",
        "resolution_notes": None,
        "resolved_at": None,
        "attachment_path": None,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def _submit(db, actor, **overrides):
    values = {
        "title": "Broken projector in lab",
        "description": "The projector in lab 3 has not worked for two weeks.",
        "category_id": 5,
    }
    values.update(overrides)
    return submit_grievance_use_case(db=db, actor=actor, **values)


def test_submit_rejects_non_student_before_touching_store() -> None:
    db = _SessionStub()

    with pytest.raises(ForbiddenError):
        _submit(db, _actor("faculty"))

    assert db.added == []


def test_submit_validates_fields_before_loading_category() -> None:
    db = _SessionStub()

    with pytest.raises(ValidationError):
        _submit(db, _actor("student"), title="abc")

    with pytest.raises(ValidationError):
        _submit(db, _actor("student"), priority="urgent")


def test_submit_rejects_missing_or_inactive_category() -> None:
    db = _SessionStub(results={Category: None})

    with pytest.raises(NotFoundError) as exc:
        _submit(db, _actor("student"))

    assert exc.value.http_status == 404
    assert db.commit_calls == 0


def test_submit_raises_internal_error_when_pending_status_is_missing() -> None:
    db = _SessionStub(results={Category: SimpleNamespace(id=5), Status: None})

    with pytest.raises(InternalError) as exc:
        _submit(db, _actor("student"))

    assert exc.value.http_status == 500
    assert db.added == []


def test_submit_creates_pending_unassigned_grievance_owned_by_actor() -> None:
    db = _SessionStub(results={Category: SimpleNamespace(id=5), Status: SimpleNamespace(id=1, name="Pending")})

    grievance = _submit(db, _actor("student", account_id=42), title="  Broken projector in lab  ")

    assert isinstance(grievance, Grievance)
    assert grievance.student_id == 42
    assert grievance.status_id == 1
    assert grievance.assigned_to is None
    assert grievance.priority == "medium"
    assert grievance.title == "Broken projector in lab"
    assert db.commit_calls == 1


def test_assign_requires_admin() -> None:
    with pytest.raises(ForbiddenError):
        assign_grievance_use_case(db=_SessionStub(), actor=_actor("faculty"), grievance_id=10, faculty_id=3)


def test_assign_rejects_unknown_or_inactive_faculty() -> None:
    db = _SessionStub(results={Faculty: None})

    with pytest.raises(NotFoundError):
        assign_grievance_use_case(db=db, actor=_actor("admin"), grievance_id=10, faculty_id=3)

    assert db.commit_calls == 0


def test_assign_sets_in_progress_and_notifies_both_parties() -> None:
    grievance = _grievance(status_id=3)
    db = _SessionStub(results={
        Faculty: SimpleNamespace(id=3, name="Dr. Rao"),
        Grievance: grievance,
        Status: SimpleNamespace(id=2, name="In Progress"),
    })

    assign_grievance_use_case(db=db, actor=_actor("admin"), grievance_id=10, faculty_id=3)

    assert grievance.assigned_to == 3
    assert grievance.status_id == 2
    notified = {(n.user_type, n.user_id) for n in db.added if isinstance(n, Notification)}
    assert notified == {("faculty", 3), ("student", 1)}
    assert db.commit_calls == 1


def test_update_with_no_fields_is_validation_error() -> None:
    with pytest.raises(ValidationError) as exc:
        update_grievance_use_case(db=_SessionStub(), actor=_actor("admin"), grievance_id=10, changes={})

    assert exc.value.message == "No fields to update"


def test_update_rejects_student_actor() -> None:
    with pytest.raises(ForbiddenError):
        update_grievance_use_case(
            db=_SessionStub(),
            actor=_actor("student"),
            grievance_id=10,
            changes={"priority": "high"},
        )


def test_update_by_unassigned_faculty_is_forbidden() -> None:
    grievance = _grievance(assigned_to=99)
    db = _SessionStub(results={Grievance: grievance})

    with pytest.raises(ForbiddenError):
        update_grievance_use_case(
            db=db,
            actor=_actor("faculty", account_id=3),
            grievance_id=10,
            changes={"priority": "high"},
        )

    assert grievance.priority == "medium"
    assert db.commit_calls == 0


def test_update_unknown_status_is_not_found() -> None:
    db = _SessionStub(results={Grievance: _grievance(), Status: None})

    with pytest.raises(NotFoundError):
        update_grievance_use_case(db=db, actor=_actor("admin"), grievance_id=10, changes={"status_id": 77})


def test_update_to_resolved_stamps_resolved_at_and_notifies_student() -> None:
    grievance = _grievance(assigned_to=3, status_id=2)
    db = _SessionStub(results={Grievance: grievance, Status: SimpleNamespace(id=3, name="Resolved")})

    update_grievance_use_case(
        db=db,
        actor=_actor("faculty", account_id=3),
        grievance_id=10,
        changes={"status_id": 3, "resolution_notes": "Projector replaced"},
    )

    assert grievance.status_id == 3
    assert grievance.resolution_notes == "Projector replaced"
    assert grievance.resolved_at is not None
    notifications = [n for n in db.added if isinstance(n, Notification)]
    assert len(notifications) == 1
    assert notifications[0].user_type == "student"
    assert "Resolved" in notifications[0].message


def test_update_priority_only_leaves_other_fields_untouched() -> None:
    grievance = _grievance(assigned_to=3, status_id=2, resolution_notes="keep me")
    db = _SessionStub(results={Grievance: grievance})

    update_grievance_use_case(db=db, actor=_actor("admin"), grievance_id=10, changes={"priority": "high"})

    assert grievance.priority == "high"
    assert grievance.status_id == 2
    assert grievance.assigned_to == 3
    assert grievance.resolution_notes == "keep me"
    assert db.added == []


def test_delete_detaches_notifications_and_releases_attachment() -> None:
    grievance = _grievance(attachment_path="grievance-file.pdf")
    db = _SessionStub(results={Grievance: grievance, Notification: None})
    released = []

    delete_grievance_use_case(db=db, actor=_actor("admin"), grievance_id=10, release=released.append)

    assert db.deleted == [grievance]
    assert db.queries[Notification].updates == [{"grievance_id": None}]
    assert released == ["grievance-file.pdf"]
    assert db.commit_calls == 1


def test_delete_missing_grievance_is_not_found() -> None:
    db = _SessionStub(results={Grievance: None})

    with pytest.raises(DomainError) as exc:
        delete_grievance_use_case(db=db, actor=_actor("admin"), grievance_id=10, release=lambda _: None)

    assert exc.value.code == "NOT_FOUND"


def test_delete_requires_admin() -> None:
    with pytest.raises(ForbiddenError):
        delete_grievance_use_case(db=_SessionStub(), actor=_actor("faculty"), grievance_id=10)
