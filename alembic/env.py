from __future__ import annotations

import os
from logging.config import fileConfig

from sqlalchemy import engine_from_config, pool
from sqlalchemy.engine import Connection
from alembic import context

# Alembic Config object
config = context.config

# Logging; callers that already configured logging pass configure_logger=False
if config.config_file_name is not None and config.attributes.get("configure_logger", True):
    fileConfig(config.config_file_name, disable_existing_loggers=False)

# Import metadata
from app.db.base import Base  # noqa
from app.core.config import settings  # noqa
import app.db.models  # noqa: F401

target_metadata = Base.metadata


def get_url() -> str:
    """An explicit ``sqlalchemy.url`` wins, then DATABASE_DSN, then Settings."""
    return config.get_main_option("sqlalchemy.url") or os.getenv("DATABASE_DSN") or settings.DATABASE_DSN


def _configure(**kwargs) -> None:
    url = kwargs.get("url")
    dialect = kwargs["connection"].dialect.name if "connection" in kwargs else url.split(":", 1)[0]
    context.configure(
        target_metadata=target_metadata,
        compare_type=True,
        # SQLite cannot ALTER most columns in place
        render_as_batch=dialect.startswith("sqlite"),
        **kwargs,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_offline() -> None:
    _configure(url=get_url(), literal_binds=True, dialect_opts={"paramstyle": "named"})


def run_migrations_online() -> None:
    connection: Connection | None = config.attributes.get("connection")
    if connection is not None:
        _configure(connection=connection)
        return

    configuration = config.get_section(config.config_ini_section) or {}
    configuration["sqlalchemy.url"] = get_url()
    connectable = engine_from_config(
        configuration,
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
        future=True,
    )
    with connectable.connect() as connection:
        _configure(connection=connection)


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
