from datetime import datetime
from sqlalchemy import and_, func, or_
from sqlmodel import select

from app.errors import ValidationError


def paginate(
    *,
    session,
    query,
    page: int = 1,
    limit: int = 10,
):
    if page < 1:
        page = 1

    if limit < 1:
        limit = 10

    offset = (page - 1) * limit

    total = session.exec(
        select(func.count()).select_from(query.subquery())
    ).one()

    results = session.exec(
        query.offset(offset).limit(limit)
    ).all()

    return {
        "items": results,
        "page": page,
        "limit": limit,
        "total": total,
        "total_pages": (total + limit - 1) // limit,
        "has_more": offset + len(results) < total,
    }


def encode_cursor(created_at: datetime, row_id: int) -> str:
    return f"{created_at.isoformat()}|{row_id}"


def decode_cursor(cursor: str) -> tuple[datetime, int]:
    try:
        raw_ts, raw_id = cursor.rsplit("|", 1)
        return datetime.fromisoformat(raw_ts), int(raw_id)
    except ValueError:
        raise ValidationError("Malformed cursor", reason="invalid_cursor")


def after_cursor(query, created_col, id_col, cursor: str):
    """Restrict a ``created desc, id desc`` query to rows strictly after ``cursor``."""
    created_at, row_id = decode_cursor(cursor)
    return query.where(
        or_(
            created_col < created_at,
            and_(created_col == created_at, id_col < row_id),
        )
    )
