#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Alembic environment for Wicked.

The database URL comes from ``wicked.core.config.Settings`` (DATABASE_URL or
.env), never from alembic.ini.  Migrations run through the async engine;
SQLite gets batch mode so column changes can be rendered as table copies.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import asyncio
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.ext.asyncio import async_engine_from_config

from alembic import context

from wicked.core.config import get_settings
from wicked.core.database import Base
import wicked.models  # noqa: F401  populates Base.metadata


config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

DATABASE_URL = get_settings().database_url
config.set_main_option("sqlalchemy.url", DATABASE_URL)

OPTIONS = {
    "target_metadata": Base.metadata,
    "compare_type": True,
    "render_as_batch": DATABASE_URL.startswith("sqlite"),
}


# -----------------------------------------------------------------------------

def _run(connection=None) -> None:
    if connection is None:
        context.configure(url=DATABASE_URL, literal_binds=True,
                          dialect_opts={"paramstyle": "named"}, **OPTIONS)
    else:
        context.configure(connection=connection, **OPTIONS)
    with context.begin_transaction():
        context.run_migrations()


async def _run_online() -> None:
    engine = async_engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_run)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    _run()
else:
    asyncio.run(_run_online())
