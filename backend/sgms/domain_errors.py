"""Domain-level exception primitives with stable machine-readable codes."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(eq=False)
class DomainError(Exception):
    """Use-case level error with stable code and HTTP mapping."""

    code: str
    http_status: int
    message: str
    details: dict[str, Any] | None = None

    def __str__(self) -> str:
        return self.message


class ValidationError(DomainError):
    """Malformed or out-of-range input (always client-correctable)."""

    def __init__(self, message: str = "Validation failed", details: dict[str, Any] | None = None) -> None:
        super().__init__(code="VALIDATION_ERROR", http_status=400, message=message, details=details)


class UnauthorizedError(DomainError):
    """Missing or unusable identity claim."""

    def __init__(self, message: str = "Authentication required", details: dict[str, Any] | None = None) -> None:
        super().__init__(code="UNAUTHORIZED", http_status=401, message=message, details=details)


class ForbiddenError(DomainError):
    """Authenticated but not entitled."""

    def __init__(self, message: str = "Access denied", details: dict[str, Any] | None = None) -> None:
        super().__init__(code="FORBIDDEN", http_status=403, message=message, details=details)


class NotFoundError(DomainError):
    def __init__(self, message: str = "Resource not found", details: dict[str, Any] | None = None) -> None:
        super().__init__(code="NOT_FOUND", http_status=404, message=message, details=details)


class ConflictError(DomainError):
    """Uniqueness or at-most-one violation."""

    def __init__(self, message: str = "Resource already exists", details: dict[str, Any] | None = None) -> None:
        super().__init__(code="CONFLICT", http_status=409, message=message, details=details)


class InternalError(DomainError):
    def __init__(self, message: str = "Internal server error", details: dict[str, Any] | None = None) -> None:
        super().__init__(code="INTERNAL_ERROR", http_status=500, message=message, details=details)


class ServiceUnavailableError(DomainError):
    """Connection pool exhausted past its checkout timeout."""

    def __init__(
        self,
        message: str = "Service temporarily unavailable",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(code="SERVICE_UNAVAILABLE", http_status=503, message=message, details=details)


class TooManyRequestsError(DomainError):
    """Login attempts over the per-IP or per-account limit."""

    def __init__(self, message: str = "Too many requests", details: dict[str, Any] | None = None) -> None:
        super().__init__(code="TOO_MANY_REQUESTS", http_status=429, message=message, details=details)
