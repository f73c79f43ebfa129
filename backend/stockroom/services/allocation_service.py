# Overview: Primary key allocation for every entity table.

"""
Identifier Allocation

Ids are derived as max(id) + 1 over the table (an empty table counts as 0),
so gaps are never reused below the current maximum and a table holding
{3, 7} allocates 8 next.

Two requests can compute the same max+1 concurrently. The database's
primary key constraint turns that into an IntegrityError on insert; the
insert runs inside a SAVEPOINT so the collision can be rolled back and
retried with a fresh id without discarding the caller's transaction.
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError
from ..extensions import db


def _pk_column(model):
    return model.__mapper__.primary_key[0]


def next_id(model) -> int:
    """Return max(id) + 1 for the model's table."""
    current = db.session.query(func.max(_pk_column(model))).scalar()
    if current is None:
        current = 0
    return current + 1


def _id_taken(model, row_id: int) -> bool:
    pk = _pk_column(model)
    return db.session.query(pk).filter(pk == row_id).first() is not None


def insert_with_next_id(model, **fields):
    """
    Insert a new row with an allocated id, retrying on id collisions.

    The row is flushed but not committed. Raises ConflictError when every
    attempt collides, or when the insert violates a constraint other than
    the primary key (the id is free, so a retry would fail the same way).
    """
    attempts = current_app.config.get("ID_ALLOCATION_ATTEMPTS", 3)

    for attempt in range(attempts):
        row_id = next_id(model)
        row = model(id=row_id, **fields)
        try:
            with db.session.begin_nested():
                db.session.add(row)
            return row
        except IntegrityError as exc:
            if not _id_taken(model, row_id):
                raise ConflictError(
                    f"{model.__tablename__} insert violates a uniqueness constraint",
                    detail=str(exc.orig),
                ) from exc
            current_app.logger.warning(
                "Id %s already taken in %s (attempt %s/%s), retrying",
                row_id, model.__tablename__, attempt + 1, attempts,
            )

    raise ConflictError(f"Could not allocate an id in {model.__tablename__}")
