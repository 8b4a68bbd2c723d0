"""Category and status reference-data use-cases."""
from __future__ import annotations

from typing import Any

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..domain_errors import ConflictError, NotFoundError, ValidationError
from ..models import Category, Status

CATEGORY_FIELDS = ("name", "description", "department", "is_active")


def list_categories_use_case(*, db: Session, active_only: bool = True) -> list[Category]:
    query = db.query(Category)
    if active_only:
        query = query.filter(Category.is_active.is_(True))
    return query.order_by(Category.name.asc()).all()


def list_statuses_use_case(*, db: Session) -> list[Status]:
    return db.query(Status).order_by(Status.display_order.asc(), Status.id.asc()).all()


def _name_taken(db: Session, name: str, *, exclude_id: int | None = None) -> bool:
    query = db.query(Category.id).filter(func.lower(Category.name) == name.lower())
    if exclude_id is not None:
        query = query.filter(Category.id != exclude_id)
    return query.first() is not None


def _clean_name(name: str | None) -> str:
    clean = (name or "").strip()
    if not 3 <= len(clean) <= 100:
        raise ValidationError("Category name must be between 3 and 100 characters")
    return clean


def create_category_use_case(*, db: Session, payload: dict[str, Any]) -> Category:
    name = _clean_name(payload.get("name"))
    if _name_taken(db, name):
        raise ConflictError("Category already exists")

    category = Category(
        name=name,
        description=payload.get("description"),
        department=payload.get("department"),
        is_active=True,
    )
    db.add(category)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Category already exists")
    db.refresh(category)
    return category


def update_category_use_case(*, db: Session, category_id: int, changes: dict[str, Any]) -> Category:
    values = {key: value for key, value in changes.items() if key in CATEGORY_FIELDS}
    if not values:
        raise ValidationError("No fields to update")

    category = db.query(Category).filter(Category.id == category_id).first()
    if not category:
        raise NotFoundError("Category not found")

    if "name" in values:
        values["name"] = _clean_name(values["name"])
        if _name_taken(db, values["name"], exclude_id=category.id):
            raise ConflictError("Category already exists")
    if "is_active" in values and values["is_active"] is None:
        raise ValidationError("is_active cannot be null")

    for field, value in values.items():
        setattr(category, field, value)
    db.commit()
    db.refresh(category)
    return category
