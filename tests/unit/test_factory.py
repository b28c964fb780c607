"""Tests for the card store factory."""

from __future__ import annotations

import os

import pytest

from featureboard.board.ordering import density_violations
from featureboard.board.store import InMemoryCardStore
from featureboard.config import DEMO_OWNER_ID, Settings
from featureboard.db.store import DatabaseCardStore
from featureboard.factory import get_card_store, seed_demo_board
from tests.unit.conftest import SAMPLE_OWNER_ID


def _clear_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.startswith(("DATABASE__", "DEV__", "APP__")):
            monkeypatch.delenv(key, raising=False)
    # keep a developer's .env from leaking into the factory
    monkeypatch.setattr(
        Settings, "model_config", {**Settings.model_config, "env_file": None}
    )


@pytest.mark.usefixtures("fresh_settings")
class TestGetCardStore:
    def test_memory_store_without_database(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        _clear_env(monkeypatch)
        store = get_card_store()
        assert isinstance(store, InMemoryCardStore)
        assert DEMO_OWNER_ID in store.cards

    def test_database_store_when_configured(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        _clear_env(monkeypatch)
        monkeypatch.setenv("DATABASE__URL", "postgresql+asyncpg://u:p@localhost/fb")
        assert isinstance(get_card_store(), DatabaseCardStore)

    def test_memory_store_flag_wins(self, monkeypatch: pytest.MonkeyPatch) -> None:
        _clear_env(monkeypatch)
        monkeypatch.setenv("DATABASE__URL", "postgresql+asyncpg://u:p@localhost/fb")
        monkeypatch.setenv("DEV__MEMORY_STORE", "true")
        assert isinstance(get_card_store(), InMemoryCardStore)

    def test_instance_is_shared(self, monkeypatch: pytest.MonkeyPatch) -> None:
        _clear_env(monkeypatch)
        assert get_card_store() is get_card_store()


class TestSeedDemoBoard:
    def test_demo_board_is_dense(self) -> None:
        store = InMemoryCardStore()
        seed_demo_board(store, SAMPLE_OWNER_ID)
        cards = store.cards[SAMPLE_OWNER_ID].values()
        assert len(cards) > 0
        assert density_violations(cards) == {}
