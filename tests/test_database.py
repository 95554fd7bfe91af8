"""
Tests for database.py - SQLite schema for job postings.
"""

import pytest
from datetime import datetime, timedelta
from sqlalchemy.exc import IntegrityError

from talentflow.database import Job, init_database, get_session


class TestDatabaseInit:
    """Test database initialization."""

    def test_init_creates_database_file(self, tmp_path):
        """Test that init_database creates the database file."""
        db_path = tmp_path / "test.db"
        assert not db_path.exists()

        init_database(db_path)

        assert db_path.exists()

    def test_init_creates_tables(self, tmp_path):
        """Test that init_database creates the jobs table."""
        db_path = tmp_path / "test.db"
        init_database(db_path)

        session = get_session(db_path)
        result = session.query(Job).count()
        assert result == 0
        session.close()

    def test_init_creates_parent_directories(self, tmp_path):
        """Test that init_database creates parent directories if missing."""
        db_path = tmp_path / "nested" / "dir" / "test.db"
        assert not db_path.parent.exists()

        init_database(db_path)

        assert db_path.exists()

    def test_init_is_idempotent(self, tmp_path):
        db_path = tmp_path / "test.db"
        init_database(db_path)
        init_database(db_path)


class TestJobModel:
    """Test constraints and defaults on the Job model."""

    @pytest.fixture
    def db_session(self, tmp_path):
        """Create a temporary database and return a session."""
        db_path = tmp_path / "test.db"
        init_database(db_path)
        session = get_session(db_path)
        yield session
        session.close()

    def test_defaults(self, db_session):
        before = datetime.now()
        job = Job(title="Frontend Engineer", slug="frontend-engineer", order=1)
        db_session.add(job)
        db_session.commit()
        after = datetime.now()

        saved = db_session.query(Job).filter_by(slug="frontend-engineer").first()
        assert saved.id is not None
        assert saved.status == "active"
        assert saved.tags == []
        assert before <= saved.created_at <= after
        assert abs((saved.created_at - saved.updated_at).total_seconds()) < 1

    def test_tags_round_trip_as_json(self, db_session):
        db_session.add(Job(title="QA", slug="qa", order=1, tags=["remote", "senior"]))
        db_session.commit()

        assert db_session.query(Job).filter_by(slug="qa").first().tags == ["remote", "senior"]

    def test_duplicate_slug_fails(self, db_session):
        db_session.add(Job(title="QA", slug="qa", order=1))
        db_session.commit()

        db_session.add(Job(title="QA", slug="qa", order=2))
        with pytest.raises(IntegrityError):
            db_session.commit()

    def test_missing_order_fails(self, db_session):
        db_session.add(Job(title="QA", slug="qa"))
        with pytest.raises(IntegrityError):
            db_session.commit()

    def test_order_index_is_not_unique(self, db_session):
        """Two rows may share an order mid-shift; the engine keeps them apart."""
        db_session.add(Job(title="A", slug="a", order=1))
        db_session.add(Job(title="B", slug="b", order=1))
        db_session.commit()

        assert db_session.query(Job).filter_by(order=1).count() == 2

    def test_query_by_order_range(self, db_session):
        for i in range(1, 6):
            db_session.add(Job(title=f"Job {i}", slug=f"job-{i}", order=i))
        db_session.commit()

        rows = db_session.query(Job).filter(Job.order.between(2, 4)).order_by(Job.order).all()
        assert [row.order for row in rows] == [2, 3, 4]

    def test_to_dict(self, db_session):
        created = datetime.now() - timedelta(days=1)
        job = Job(title="QA", slug="qa", order=3, tags=["remote"], created_at=created, updated_at=created)
        db_session.add(job)
        db_session.commit()

        data = job.to_dict()
        assert data["order"] == 3
        assert data["tags"] == ["remote"]
        assert data["created_at"] == created.isoformat()
