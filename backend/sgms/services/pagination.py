"""Offset pagination over a single filtered query."""
from __future__ import annotations

import math
from dataclasses import asdict, dataclass

from .grievance_rules import validate_page_window


@dataclass(frozen=True)
class Pagination:
    page: int
    limit: int
    total: int
    pages: int

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


def page_count(total: int, limit: int) -> int:
    return math.ceil(total / limit) if total else 0


def paginate_query(query, *, page: int, limit: int, order_by=(), options=()):
    """Return (rows, Pagination) where count and rows share one predicate set."""
    validate_page_window(page=page, limit=limit)

    total = query.order_by(None).count()

    data_query = query
    if options:
        data_query = data_query.options(*options)
    if order_by:
        data_query = data_query.order_by(*order_by)
    rows = data_query.offset((page - 1) * limit).limit(limit).all()

    return rows, Pagination(page=page, limit=limit, total=int(total), pages=page_count(int(total), limit))


LIKE_ESCAPE = "\\"


def contains_pattern(term: str) -> str:
    """Substring LIKE pattern with ``%`` and ``_`` matched literally."""
    escaped = (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"
