from __future__ import annotations

from datetime import timedelta

import pytest
from jose import jwt

from sgms.auth import (
    ROLE_PERMISSIONS,
    create_access_token,
    get_password_hash,
    has_permission,
    validate_new_password,
    verify_identity_claim,
    verify_password,
)
from sgms.config import settings
from sgms.domain_errors import ForbiddenError, ValidationError


@pytest.mark.parametrize(
    ("role", "expected"),
    [
        (
            "student",
            {
                "canSubmitGrievances": True,
                "canViewOwnGrievances": True,
                "canViewAssignedGrievances": False,
                "canUpdateGrievances": False,
                "canAssignGrievances": False,
                "canDeleteGrievances": False,
                "canManageUsers": False,
                "canManageCategories": False,
                "canViewStatistics": False,
                "canSubmitFeedback": True,
            },
        ),
        (
            "faculty",
            {
                "canSubmitGrievances": False,
                "canViewOwnGrievances": False,
                "canViewAssignedGrievances": True,
                "canUpdateGrievances": True,
                "canAssignGrievances": False,
                "canDeleteGrievances": False,
                "canManageUsers": False,
                "canManageCategories": False,
                "canViewStatistics": False,
                "canSubmitFeedback": False,
            },
        ),
        (
            "admin",
            {
                "canSubmitGrievances": False,
                "canViewOwnGrievances": False,
                "canViewAssignedGrievances": True,
                "canUpdateGrievances": True,
                "canAssignGrievances": True,
                "canDeleteGrievances": True,
                "canManageUsers": True,
                "canManageCategories": True,
                "canViewStatistics": True,
                "canSubmitFeedback": False,
            },
        ),
    ],
)
def test_role_permission_matrix(role: str, expected: dict[str, bool]) -> None:
    assert ROLE_PERMISSIONS[role] == expected


def test_unknown_role_has_no_permissions() -> None:
    assert has_permission("guest", "canSubmitGrievances") is False


def test_identity_claim_round_trip_carries_role_and_name() -> None:
    token = create_access_token(account_id=7, role="faculty", email="rao@example.edu", name="Dr. Rao")

    actor = verify_identity_claim(token)

    assert (actor.id, actor.role, actor.email, actor.name) == (7, "faculty", "rao@example.edu", "Dr. Rao")


def test_expired_claim_is_forbidden() -> None:
    token = create_access_token(
        account_id=7,
        role="student",
        email="s@example.edu",
        name="S",
        expires_delta=timedelta(seconds=-10),
    )

    with pytest.raises(ForbiddenError):
        verify_identity_claim(token)


def test_claim_with_wrong_audience_or_signature_is_forbidden() -> None:
    foreign = jwt.encode(
        {"sub": "1", "role": "admin", "iss": settings.JWT_ISSUER, "aud": "someone-else", "exp": 9999999999},
        settings.JWT_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM,
    )
    forged = jwt.encode(
        {"sub": "1", "role": "admin", "iss": settings.JWT_ISSUER, "aud": settings.JWT_AUDIENCE, "exp": 9999999999},
        "not-the-secret",
        algorithm=settings.JWT_ALGORITHM,
    )

    for token in (foreign, forged, "not-a-token"):
        with pytest.raises(ForbiddenError):
            verify_identity_claim(token)


def test_claim_with_unknown_role_is_forbidden() -> None:
    token = jwt.encode(
        {"sub": "1", "role": "guest", "iss": settings.JWT_ISSUER, "aud": settings.JWT_AUDIENCE, "exp": 9999999999},
        settings.JWT_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM,
    )

    with pytest.raises(ForbiddenError):
        verify_identity_claim(token)


@pytest.mark.parametrize("password", ["Ab1", "alllower1", "ALLUPPER1", "NoDigitsHere"])
def test_password_policy_rejects_weak_passwords(password: str) -> None:
    with pytest.raises(ValidationError):
        validate_new_password(new_password=password)


def test_password_policy_accepts_mixed_password() -> None:
    validate_new_password(new_password="Secure123")


def test_verify_password_handles_corrupted_hash() -> None:
    assert verify_password("Secure123", get_password_hash("Secure123")) is True
    assert verify_password("Secure123", "not-a-bcrypt-hash") is False
