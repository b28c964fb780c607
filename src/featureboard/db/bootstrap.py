"""Schema bootstrap for the feature store.

Alembic owns the schema. Startup migrates to head (creating the database
first if the server lacks it) and then refuses to serve if the feature
table is still missing.
"""

from __future__ import annotations

import logging
import os
import re
import subprocess
import sys
from pathlib import Path
from typing import TYPE_CHECKING
from urllib.parse import urlsplit, urlunsplit

import psycopg
import psycopg.sql
from sqlalchemy import inspect
from sqlmodel import SQLModel

from featureboard.config import get_settings

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)

# src/featureboard/db/bootstrap.py -> project root holding alembic.ini
_PROJECT_ROOT = Path(__file__).resolve().parents[3]

_DB_NAME = re.compile(r"^[A-Za-z0-9_]+$")


def _maintenance_url(url: str) -> str:
    """``url`` retargeted at the ``postgres`` database for sync psycopg."""
    parts = urlsplit(url)
    scheme = parts.scheme.split("+", 1)[0]
    return urlunsplit((scheme, parts.netloc, "/postgres", parts.query, ""))


def ensure_database_exists(url: str | None) -> bool:
    """Create the database named in ``url`` if the server lacks it.

    Returns:
        True if the database was created.

    Raises:
        ValueError: If the database name is not a plain identifier.
    """
    if not url:
        return False
    name = urlsplit(url).path.lstrip("/")
    if not name:
        return False
    if not _DB_NAME.match(name):
        msg = f"Invalid database name: {name!r}"
        raise ValueError(msg)

    # CREATE DATABASE cannot run inside a transaction
    with psycopg.connect(_maintenance_url(url), autocommit=True) as conn:
        exists = conn.execute(
            "SELECT 1 FROM pg_database WHERE datname = %s", (name,)
        ).fetchone()
        if exists:
            return False
        conn.execute(
            psycopg.sql.SQL("CREATE DATABASE {}").format(psycopg.sql.Identifier(name))
        )
    logger.info("Created database %s", name)
    return True


def is_db_configured() -> bool:
    return bool(get_settings().database.url)


def run_alembic_upgrade() -> None:
    """Migrate the configured database to head.

    Alembic runs in a subprocess so its own event loop never collides
    with the caller's.

    Raises:
        RuntimeError: If no DATABASE__URL is set or the migration fails.
    """
    url = get_settings().database.url
    if not url:
        raise RuntimeError("DATABASE__URL not configured; cannot run migrations")

    ensure_database_exists(url)
    result = subprocess.run(
        [sys.executable, "-m", "alembic", "upgrade", "head"],
        capture_output=True,
        encoding="utf-8",
        check=False,
        cwd=_PROJECT_ROOT,
        env=dict(os.environ),
    )
    if result.returncode != 0:
        raise RuntimeError(
            f"alembic upgrade head failed for {_mask_password(url)}:\n"
            f"{result.stdout}\n{result.stderr}"
        )
    logger.info("Schema at head for %s", _mask_password(url))


def get_expected_tables() -> set[str]:
    import featureboard.db.models  # noqa: F401, PLC0415 - registers tables

    return set(SQLModel.metadata.tables)


async def verify_schema(engine: AsyncEngine | None) -> None:
    """Fail fast if any model table is missing from the database.

    Raises:
        RuntimeError: If ``engine`` is None or tables are missing.
    """
    if engine is None:
        raise RuntimeError("Database engine is not initialized")

    async with engine.connect() as connection:
        present = await connection.run_sync(
            lambda sync_conn: set(inspect(sync_conn).get_table_names())
        )

    missing = get_expected_tables() - present
    if missing:
        raise RuntimeError(
            f"Missing tables {', '.join(sorted(missing))} in "
            f"{_mask_password(get_settings().database.url or '<unset>')}; "
            "run 'alembic upgrade head'."
        )


def _mask_password(url: str) -> str:
    """``url`` with any password replaced by ``***``."""
    parts = urlsplit(url)
    if parts.password is None:
        return url
    netloc = parts.netloc.replace(f":{parts.password}@", ":***@", 1)
    return urlunsplit(parts._replace(netloc=netloc))
