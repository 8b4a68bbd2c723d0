"""Database engine, session factory and request-scoped session dependency."""
from collections.abc import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .config import settings

Base = declarative_base()


def _build_engine(url: str):
    if url.startswith("sqlite"):
        # SQLite connections are shared across the request threadpool.
        return create_engine(url, connect_args={"check_same_thread": False})
    # Bounded pool: excess requests queue for DATABASE_POOL_TIMEOUT seconds, then fail.
    return create_engine(
        url,
        pool_size=settings.DATABASE_POOL_SIZE,
        max_overflow=settings.DATABASE_MAX_OVERFLOW,
        pool_timeout=settings.DATABASE_POOL_TIMEOUT,
        pool_pre_ping=True,
    )


engine = _build_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Iterator[Session]:
    """Yield a short-lived session for one request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
