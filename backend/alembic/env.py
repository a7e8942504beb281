"""Alembic environment for the Planboard schema.

The target database is ``sqlalchemy.url`` when the caller sets one on the
Alembic config, otherwise the app's DATABASE_URL setting.
"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlmodel import SQLModel, create_engine

from app.config import settings
from app.db.database import prepare_database_url
from app.models.task import Project, ProjectMember, Task  # noqa: F401
from app.models.user import User  # noqa: F401

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

target_metadata = SQLModel.metadata


def _database_url() -> str:
    return prepare_database_url(config.get_main_option("sqlalchemy.url") or settings.database_url)


def _configure(**kwargs) -> None:
    # SQLite cannot ALTER most constraints in place
    context.configure(target_metadata=target_metadata, render_as_batch=True, **kwargs)


def run_migrations_offline() -> None:
    """Emit the migration SQL without connecting."""
    _configure(url=_database_url(), literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    engine = create_engine(_database_url(), poolclass=pool.NullPool)
    try:
        with engine.connect() as connection:
            _configure(connection=connection)
            with context.begin_transaction():
                context.run_migrations()
    finally:
        engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
