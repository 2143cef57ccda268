"""Alembic entry point for the survey_responses / survey_answers schema.

The database URL always comes from the environment (see
``survey_db.config``); whatever ``alembic.ini`` says is overwritten.
"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from survey_db.config import get_sync_url
from survey_db.models.base import Base

# Registers the tables on Base.metadata for autogenerate.
import survey_db.models.answer  # noqa: F401
import survey_db.models.response  # noqa: F401

alembic_cfg = context.config
alembic_cfg.set_main_option("sqlalchemy.url", get_sync_url())

if alembic_cfg.config_file_name is not None:
    fileConfig(alembic_cfg.config_file_name)


def _configure(**kwargs) -> None:
    context.configure(target_metadata=Base.metadata, compare_type=True, **kwargs)
    with context.begin_transaction():
        context.run_migrations()


def migrate_offline() -> None:
    """Print the migration SQL instead of executing it."""
    _configure(
        url=alembic_cfg.get_main_option("sqlalchemy.url"),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )


def migrate_online() -> None:
    section = alembic_cfg.get_section(alembic_cfg.config_ini_section, {})
    migrator = engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)
    with migrator.connect() as connection:
        _configure(connection=connection)


if context.is_offline_mode():
    migrate_offline()
else:
    migrate_online()
