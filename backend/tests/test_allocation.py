"""
Identifier allocation tests.

Verifies:
- max+1 over the table, empty table -> 1
- gaps below the maximum are never reused
- an id collision is retried with a fresh id
- exhausted retries and non-key uniqueness violations surface as conflicts
"""

import pytest

from stockroom.errors import ConflictError
from stockroom.extensions import db
from stockroom.models import Brand, User
from stockroom.services import allocation_service
from stockroom.services.allocation_service import insert_with_next_id, next_id


class TestNextId:
    def test_empty_table_starts_at_one(self, app):
        assert next_id(Brand) == 1

    def test_max_plus_one_skips_gaps(self, app):
        db.session.add_all([Brand(id=3, name="Three"), Brand(id=7, name="Seven")])
        db.session.commit()

        assert next_id(Brand) == 8

    def test_insert_uses_next_id(self, app):
        first = insert_with_next_id(Brand, name="First")
        second = insert_with_next_id(Brand, name="Second")
        db.session.commit()

        assert (first.id, second.id) == (1, 2)


class TestCollisions:
    def test_collision_is_retried_with_fresh_id(self, app, monkeypatch):
        db.session.add(Brand(id=1, name="Existing"))
        db.session.commit()
        db.session.expunge_all()

        real_next_id = allocation_service.next_id
        calls = []

        def stale_then_real(model):
            calls.append(model)
            # First call behaves like a racer that read max(id) before the insert
            return 1 if len(calls) == 1 else real_next_id(model)

        monkeypatch.setattr(allocation_service, "next_id", stale_then_real)

        brand = insert_with_next_id(Brand, name="Racer")
        db.session.commit()

        assert brand.id == 2
        assert len(calls) == 2
        assert db.session.query(Brand).count() == 2

    def test_exhausted_retries_raise_conflict(self, app, monkeypatch):
        db.session.add(Brand(id=1, name="Existing"))
        db.session.commit()
        db.session.expunge_all()

        monkeypatch.setattr(allocation_service, "next_id", lambda model: 1)

        with pytest.raises(ConflictError):
            insert_with_next_id(Brand, name="Loser")
        db.session.rollback()

        assert db.session.query(Brand).count() == 1

    def test_non_key_uniqueness_violation_is_conflict(self, app):
        db.session.add(User(id=1, name="taken", email="", password="x"))
        db.session.commit()
        db.session.expunge_all()

        with pytest.raises(ConflictError):
            insert_with_next_id(User, name="taken", email="", password="y")
        db.session.rollback()

        assert db.session.query(User).count() == 1
