"""Shared pytest fixtures for featureboard tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from dotenv import load_dotenv

from featureboard.factory import clear_store_cache

if TYPE_CHECKING:
    from collections.abc import Generator

load_dotenv()


@pytest.fixture
def fresh_settings() -> Generator[None]:
    """Reset the cached Settings and card store around a test."""
    clear_store_cache()
    yield
    clear_store_cache()
