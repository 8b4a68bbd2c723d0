"""Auth endpoints."""
import logging
import ipaddress

import redis
from redis.exceptions import RedisError
from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from ..auth import Actor, create_access_token, get_current_actor
from ..config import settings
from ..database import get_db
from ..domain_errors import TooManyRequestsError, UnauthorizedError
from ..envelope import success_envelope
from ..schemas import (
    AdminResponse,
    ChangePasswordRequest,
    FacultyResponse,
    LoginRequest,
    ProfileUpdate,
    StudentCreate,
    StudentResponse,
)
from ..use_cases.accounts import (
    authenticate_use_case,
    change_password_use_case,
    get_account_or_404,
    normalize_email,
    register_student_use_case,
    update_profile_use_case,
)

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)

RESPONSE_MODELS = {
    "student": StudentResponse,
    "faculty": FacultyResponse,
    "admin": AdminResponse,
}


_redis_client = None


def serialize_account(role: str, account) -> dict:
    data = RESPONSE_MODELS[role].model_validate(account).model_dump()
    data["role"] = role
    return data


def _issue_token(role: str, account) -> str:
    return create_access_token(
        account_id=account.id,
        role=role,
        email=account.email,
        name=account.name,
    )


def _get_redis():
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(settings.REDIS_URL, decode_responses=True)
    return _redis_client


def _get_client_ip(request: Request) -> str:
    if settings.TRUST_PROXY_HEADERS:
        real_ip = request.headers.get("x-real-ip")
        if real_ip:
            try:
                ipaddress.ip_address(real_ip)
                return real_ip
            except ValueError:
                pass

        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            # X-Forwarded-For may contain a list: client, proxy1, proxy2
            candidate = forwarded.split(",")[0].strip()
            try:
                ipaddress.ip_address(candidate)
                return candidate
            except ValueError:
                pass

    if request.client:
        return request.client.host
    return "unknown"


def _set_no_store(response: Response) -> None:
    response.headers["Cache-Control"] = "no-store"
    response.headers["Pragma"] = "no-cache"


def _login_key(role: str, email: str) -> str:
    return f"{role}:{email}"


def _incr_with_ttl(key: str, ttl_seconds: int) -> tuple[int, int]:
    """
    Increment a Redis counter and ensure it has an expiry.
    Returns (value, ttl_remaining_seconds).
    """
    r = _get_redis()
    value = r.incr(key)
    if value == 1:
        r.expire(key, ttl_seconds)
    ttl = r.ttl(key)
    if ttl is None or ttl < 0:
        ttl = ttl_seconds
    return int(value), int(ttl)


def _enforce_login_rate_limits(*, request: Request, login_key: str | None) -> None:
    if not settings.AUTH_RATE_LIMIT_ENABLED:
        return
    ip = _get_client_ip(request)
    try:
        attempts, _ = _incr_with_ttl(f"sgms:rl:login:ip:{ip}", 60)
        if attempts > settings.AUTH_LOGIN_IP_LIMIT_PER_MINUTE:
            raise TooManyRequestsError("Too many login attempts. Try again later.")

        if login_key:
            lock_ttl = _get_redis().ttl(f"sgms:lock:login:{login_key}")
            if lock_ttl and lock_ttl > 0:
                raise TooManyRequestsError("Account temporarily locked due to failed logins. Try again later.")
    except RedisError:
        # Fail open if Redis is down to avoid total auth outage.
        logger.exception("Redis error during login rate limiting (fail-open)")


def _register_login_failure(*, login_key: str | None) -> None:
    if not settings.AUTH_RATE_LIMIT_ENABLED or not login_key:
        return
    try:
        fails, _ = _incr_with_ttl(
            f"sgms:fail:login:{login_key}",
            settings.AUTH_LOGIN_USER_LOCK_SECONDS,
        )
        if fails >= settings.AUTH_LOGIN_USER_FAIL_THRESHOLD:
            _get_redis().set(
                f"sgms:lock:login:{login_key}",
                "1",
                ex=settings.AUTH_LOGIN_USER_LOCK_SECONDS,
            )
    except RedisError:
        logger.exception("Redis error during login failure tracking (fail-open)")


def _clear_login_failures(*, login_key: str | None) -> None:
    if not settings.AUTH_RATE_LIMIT_ENABLED or not login_key:
        return
    try:
        r = _get_redis()
        r.delete(f"sgms:fail:login:{login_key}")
        r.delete(f"sgms:lock:login:{login_key}")
    except RedisError:
        logger.exception("Redis error during login failure cleanup (ignored)")


@router.post("/register/student", status_code=201)
def register_student(payload: StudentCreate, response: Response, db: Session = Depends(get_db)):
    """Public student self-registration; returns a token for the new account."""
    _set_no_store(response)
    student = register_student_use_case(db=db, payload=payload.model_dump())
    return success_envelope(
        {"token": _issue_token("student", student), "user": serialize_account("student", student)},
        message="Registration successful",
    )


@router.post("/login")
def login(payload: LoginRequest, request: Request, response: Response, db: Session = Depends(get_db)):
    """Login with email, password and role."""
    _set_no_store(response)
    email = normalize_email(payload.email)
    login_key = _login_key(payload.role, email) if email else None

    # Rate limits / lockouts (fail-open if Redis is unavailable).
    _enforce_login_rate_limits(request=request, login_key=login_key)

    account = authenticate_use_case(db=db, email=email, password=payload.password, role=payload.role)
    if account is None:
        _register_login_failure(login_key=login_key)
        raise UnauthorizedError("Invalid credentials")

    _clear_login_failures(login_key=login_key)
    logger.info("auth.login role=%s id=%s", payload.role, account.id)
    return success_envelope(
        {
            "token": _issue_token(payload.role, account),
            "role": payload.role,
            "user": serialize_account(payload.role, account),
        },
        message="Login successful",
    )


@router.get("/me")
def me(actor: Actor = Depends(get_current_actor), db: Session = Depends(get_db)):
    account = get_account_or_404(db, role=actor.role, account_id=actor.id)
    return success_envelope(serialize_account(actor.role, account))


@router.put("/profile")
def update_profile(
    payload: ProfileUpdate,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    account = update_profile_use_case(db=db, actor=actor, changes=payload.model_dump(exclude_unset=True))
    return success_envelope(serialize_account(actor.role, account), message="Profile updated successfully")


@router.put("/change-password")
def change_password(
    payload: ChangePasswordRequest,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    change_password_use_case(
        db=db,
        actor=actor,
        current_password=payload.current_password,
        new_password=payload.new_password,
    )
    return success_envelope(message="Password changed successfully")
