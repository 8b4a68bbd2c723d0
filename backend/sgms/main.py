"""FastAPI application."""
import logging

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .config import DEFAULT_JWT_SECRET, settings
from .database import get_db
from .domain_errors import ServiceUnavailableError
from .envelope import register_exception_handlers, success_envelope
from .routers import admin, auth, faculty, grievances, notifications, student

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Create app
app = FastAPI(
    title="Student Grievance Management System",
    version="1.0.0",
    description="Backend API for submitting, assigning and resolving student grievances"
)

# Production safety checks (fail closed on insecure config).
if settings.is_production and not settings.cors_origins:
    raise RuntimeError("ALLOWED_ORIGINS must be set in production (explicit frontend origin required).")
if settings.is_production and any(origin.strip() == "*" for origin in settings.cors_origins):
    raise RuntimeError("ALLOWED_ORIGINS must be explicit in production (no wildcard when using credentials).")
if settings.is_production and settings.JWT_SECRET_KEY == DEFAULT_JWT_SECRET:
    raise RuntimeError("JWT_SECRET_KEY must be changed in production.")

# CORS
cors_methods = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
cors_headers = ["Authorization", "Content-Type"]
if not settings.is_production:
    cors_headers = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=cors_methods,
    allow_headers=cors_headers,
)

register_exception_handlers(app)

# Include routers
app.include_router(auth.router, prefix="/api/v1")
app.include_router(grievances.router, prefix="/api/v1")
app.include_router(faculty.router, prefix="/api/v1")
app.include_router(student.router, prefix="/api/v1")
app.include_router(notifications.router, prefix="/api/v1")
app.include_router(admin.router, prefix="/api/v1")


@app.get("/api/v1/system/health")
def health_check(db: Session = Depends(get_db)):
    """Health check endpoint (pings the database)."""
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("Health check database ping failed")
        raise ServiceUnavailableError("Database unavailable")
    return success_envelope({"status": "ok", "version": "1.0.0", "database": "ok"})


@app.get("/")
def root():
    """Root endpoint."""
    return {
        "message": "Student Grievance Management System API",
        "version": "1.0.0",
        "docs": "/docs"
    }
