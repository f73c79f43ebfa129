# Overview: Transaction scoping, row locking and retry helpers shared by services.

from __future__ import annotations

import time
from contextlib import contextmanager

from flask import current_app
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db

# Errors worth another attempt: lock timeouts, deadlocks, stale rows
RETRYABLE_ERRORS = (OperationalError, StaleDataError)


def lock_for_update(query):
    """
    SELECT ... FOR UPDATE on the rows the query returns.

    Serializes writers of the same owner or order on PostgreSQL and MySQL.
    SQLite has no row locks and runs the plain SELECT.
    """
    return query.with_for_update()


@contextmanager
def transaction():
    """
    All-or-nothing scope for multi-statement operations.

    Commits once on normal exit; rolls back on any exception and re-raises.
    """
    try:
        yield db.session
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise


def run_with_retry(operation, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Call `operation` until it succeeds or `attempts` is used up.

    Only RETRYABLE_ERRORS trigger another attempt, after a rollback and an
    exponential pause (0.1s, 0.2s, ...). `operation` must open its own
    transaction so every attempt starts clean.
    """
    for attempt in range(1, attempts + 1):
        try:
            return operation()
        except RETRYABLE_ERRORS as exc:
            db.session.rollback()
            if attempt == attempts:
                raise
            current_app.logger.warning(
                "Transient database error (attempt %s/%s): %s", attempt, attempts, exc
            )
            time.sleep(backoff_base * (2 ** (attempt - 1)))
