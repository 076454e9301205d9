from sqlmodel import SQLModel, create_engine, Session
from sqlalchemy import inspect
from sqlalchemy.engine import Engine
from algespace.core.config import settings
import logging

logger = logging.getLogger(__name__)


def build_engine(db_url: str) -> Engine:
    """Create an engine; SQLite connections may be shared across request threads."""
    connect_args = {"check_same_thread": False} if db_url.startswith("sqlite") else {}
    logger.info(f"Connecting to database: {db_url[:30]}...")  # Log partial URL for debugging
    return create_engine(
        db_url,
        echo=False,
        pool_pre_ping=True,
        connect_args=connect_args,
    )


# Exercise definitions (algespace.db) and study tracking data (studies.db)
engine = build_engine(settings.database_url)
study_engine = build_engine(settings.studies_database_url)


def get_session():
    """Dependency for getting exercise database sessions."""
    with Session(engine) as session:
        yield session


def get_study_session():
    """Dependency for getting study database sessions."""
    with Session(study_engine) as session:
        yield session


def init_db(exercise_engine: Engine = engine, studies_engine: Engine = study_engine):
    """Create the exercise tables and the study tables in their own databases."""
    from algespace.models import EXERCISE_TABLES, STUDY_TABLES

    SQLModel.metadata.create_all(exercise_engine, tables=[model.__table__ for model in EXERCISE_TABLES])
    SQLModel.metadata.create_all(studies_engine, tables=[model.__table__ for model in STUDY_TABLES])


def count_tables(target: Engine) -> int:
    """Number of tables in a database, used by the health check."""
    return len(inspect(target).get_table_names())
