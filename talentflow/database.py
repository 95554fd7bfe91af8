"""
Database schema and connection management.

Uses SQLite with SQLAlchemy for job posting storage.
"""

from datetime import datetime
from pathlib import Path
from typing import Any, Dict

from sqlalchemy import JSON, Column, DateTime, Index, Integer, String, create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()

JOB_STATUSES = ("active", "archived")


class Job(Base):
    """Job posting model."""

    __tablename__ = "jobs"
    # Not unique: rows hold duplicate orders mid-shift until the unit commits.
    __table_args__ = (Index("ix_jobs_order", "order"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(100), nullable=False)
    slug = Column(String, nullable=False, unique=True)
    status = Column(String, nullable=False, default="active")  # active, archived
    tags = Column(JSON, nullable=False, default=list)
    order = Column(Integer, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "slug": self.slug,
            "status": self.status,
            "tags": list(self.tags or []),
            "order": self.order,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self) -> str:
        return f"<Job id={self.id} order={self.order} slug={self.slug!r}>"


def _engine(db_path: Path):
    engine = create_engine(f"sqlite:///{db_path}")

    # pysqlite defers BEGIN until the first write; issue it ourselves so the
    # reads of a unit of work share its transaction.
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


def init_database(db_path: Path) -> None:
    """
    Initialize database and create tables.

    Args:
        db_path: Path to SQLite database file
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = _engine(db_path)
    Base.metadata.create_all(engine)
    engine.dispose()


def get_session_factory(db_path: Path) -> sessionmaker:
    """
    Build a session factory bound to the database file.

    Args:
        db_path: Path to SQLite database file

    Returns:
        SQLAlchemy sessionmaker
    """
    return sessionmaker(bind=_engine(db_path), expire_on_commit=False)


def get_session(db_path: Path):
    """
    Get database session.

    Args:
        db_path: Path to SQLite database file

    Returns:
        SQLAlchemy session
    """
    Session = get_session_factory(db_path)
    return Session()
