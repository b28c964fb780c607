"""Integration test configuration.

Points the application at DEV__TEST_DATABASE_URL, migrates it once per
session, and gives every test its own engine bound to its event loop.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
import pytest_asyncio

from featureboard.config import get_settings

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Generator


@pytest.fixture(scope="session")
def migrated_database() -> Generator[str]:
    """Migrate the test database to head and expose it as DATABASE__URL."""
    from featureboard.db.bootstrap import run_alembic_upgrade

    test_url = get_settings().dev.test_database_url
    if not test_url:
        pytest.skip("DEV__TEST_DATABASE_URL not configured")

    previous = os.environ.get("DATABASE__URL")
    os.environ["DATABASE__URL"] = test_url
    get_settings.cache_clear()
    run_alembic_upgrade()
    yield test_url

    if previous is None:
        os.environ.pop("DATABASE__URL", None)
    else:
        os.environ["DATABASE__URL"] = previous
    get_settings.cache_clear()


@pytest_asyncio.fixture
async def database(migrated_database: str) -> AsyncIterator[None]:
    """Fresh engine per test; asyncpg connections cannot cross event loops."""
    from featureboard.db.engine import close_db, init_db

    await init_db(migrated_database)
    yield
    await close_db()
