from alembic import context
from sqlmodel import SQLModel
from algespace.core.config import settings
from algespace.core.database import engine, study_engine

# Import all models here so Alembic can detect them
from algespace.models import EXERCISE_TABLES, STUDY_TABLES

# this is the Alembic Config object
config = context.config

# Exercises and studies live in separate databases; pick one with `-x db=studies`
target_db = context.get_x_argument(as_dictionary=True).get("db", "exercises")
if target_db not in ("exercises", "studies"):
    raise ValueError(f"Unknown database '{target_db}', expected 'exercises' or 'studies'")

if target_db == "studies":
    db_url, connectable, tables = settings.studies_database_url, study_engine, STUDY_TABLES
else:
    db_url, connectable, tables = settings.database_url, engine, EXERCISE_TABLES
config.set_main_option("sqlalchemy.url", db_url)

# Import metadata for autogenerate
target_metadata = SQLModel.metadata
table_names = {model.__tablename__ for model in tables}


def include_object(obj, name, type_, reflected, compare_to):
    """Only compare the tables that belong to the selected database."""
    if type_ == "table":
        return name in table_names
    return True


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        include_object=include_object,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=True,
    )

    with context.begin_transaction():
        context.run_migrations(db=target_db)


def run_migrations_online() -> None:
    """Run migrations in 'online' mode."""
    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            include_object=include_object,
            render_as_batch=True,
        )

        with context.begin_transaction():
            context.run_migrations(db=target_db)


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
