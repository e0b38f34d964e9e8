"""Database engine and helpers.

This module configures the SQLModel/SQLAlchemy engine from
`settings.DATABASE_URL` (a local SQLite file by default) and provides
small helpers used by the application, the CLI scripts and tests.
"""

import copy
from sqlmodel import SQLModel, create_engine, Session, select
from .config import settings
from . import models
from .utils.catalog import DEFAULT_ASSESSMENTS

_connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(settings.DATABASE_URL, echo=False, connect_args=_connect_args)


def create_db_and_tables():
    """Create database tables using SQLModel metadata and seed defaults.

    Intended for local development and lightweight deployments; a real
    migration tool (alembic) should own schema changes in production.
    """
    SQLModel.metadata.create_all(engine)
    seed_default_assessments()


def seed_default_assessments() -> int:
    """Insert the default assessment catalog when the table is empty.

    Returns the number of rows inserted. Existing catalogs are left
    untouched so admin edits survive restarts.
    """
    with Session(engine) as session:
        if session.exec(select(models.Assessment.id)).first() is not None:
            return 0
        for item in DEFAULT_ASSESSMENTS:
            session.add(models.Assessment(**copy.deepcopy(item)))
        session.commit()
        return len(DEFAULT_ASSESSMENTS)


def get_session():
    """Yield a database `Session` for FastAPI dependency injection.

    The generator yields a session and ensures it is closed when the
    request scope finishes.
    """
    with Session(engine) as session:
        yield session
