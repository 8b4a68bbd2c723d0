"""Authentication and authorization."""
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional
import logging
import time
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from .config import settings
from .database import get_db
from .domain_errors import ForbiddenError, UnauthorizedError, ValidationError
from .models import Admin, Faculty, Student

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
logger = logging.getLogger(__name__)

# Bearer token scheme; a missing header is reported as 401 by get_current_actor.
security = HTTPBearer(auto_error=False)

# Role -> account table. Each role has its own id space.
ACCOUNT_MODELS = {
    "student": Student,
    "faculty": Faculty,
    "admin": Admin,
}


@dataclass(frozen=True)
class Actor:
    """Authenticated caller resolved from the identity claim."""

    id: int
    role: str
    email: str
    name: str


def validate_new_password(*, new_password: str) -> None:
    """Server-side password policy validation."""
    if new_password is None:
        raise ValidationError("New password is required")

    pwd = new_password.strip("\n")
    if len(pwd) < settings.PASSWORD_MIN_LENGTH:
        raise ValidationError(f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters")
    if len(pwd) > settings.PASSWORD_MAX_LENGTH:
        raise ValidationError(f"Password must be at most {settings.PASSWORD_MAX_LENGTH} characters")
    if not any(ch.isupper() for ch in pwd) or not any(ch.islower() for ch in pwd) or not any(ch.isdigit() for ch in pwd):
        raise ValidationError("Password must contain uppercase, lowercase and a number")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against hash."""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        # Invalid/corrupted hash should not crash login flow.
        logger.exception("Password verification failed due to invalid hash format")
        return False


def get_password_hash(password: str) -> str:
    """Hash password."""
    return pwd_context.hash(password)


def create_access_token(
    *,
    account_id: int,
    role: str,
    email: str,
    name: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Issue a signed identity claim for an account."""
    now = int(time.time())
    if expires_delta:
        exp = now + int(expires_delta.total_seconds())
    else:
        exp = now + int(settings.JWT_ACCESS_TOKEN_EXPIRE_DAYS) * 86400
    to_encode = {
        "sub": str(account_id),
        "email": email,
        "role": role,
        "name": name,
        "iss": settings.JWT_ISSUER,
        "aud": settings.JWT_AUDIENCE,
        "iat": now,
        "exp": exp,
    }
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def verify_identity_claim(token: str) -> Actor:
    """Decode and validate a claim; any defect is reported as 403."""
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            issuer=settings.JWT_ISSUER,
        )
    except JWTError:
        raise ForbiddenError("Invalid or expired token")

    role = payload.get("role")
    if role not in ACCOUNT_MODELS:
        raise ForbiddenError("Invalid or expired token")
    try:
        account_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise ForbiddenError("Invalid or expired token")

    return Actor(
        id=account_id,
        role=role,
        email=payload.get("email") or "",
        name=payload.get("name") or "",
    )


def get_current_actor(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Actor:
    """Get current authenticated actor."""
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Access denied. No token provided.")

    actor = verify_identity_claim(credentials.credentials)

    model = ACCOUNT_MODELS[actor.role]
    account = db.query(model).filter(model.id == actor.id).first()
    if account is None or not account.is_active:
        raise UnauthorizedError("Account not found or inactive")

    return actor


# Permission checks
class PermissionChecker:
    """Check actor permissions based on role."""

    def __init__(self, required_permission: str):
        self.required_permission = required_permission

    def __call__(self, actor: Actor = Depends(get_current_actor)) -> Actor:
        """Check if actor has required permission."""
        check_permission(actor.role, self.required_permission)
        return actor


def check_permission(role: str, permission: str) -> None:
    if not has_permission(role, permission):
        raise ForbiddenError(f"Permission denied: {permission} required")


def has_permission(role: str, permission: str) -> bool:
    return ROLE_PERMISSIONS.get(role, {}).get(permission, False)


# Role permissions matrix
ROLE_PERMISSIONS = {
    "student": {
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
    "faculty": {
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
    "admin": {
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
}
