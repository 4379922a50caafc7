"""
Tests for the memory and SQL game stores.
"""

import pytest
import pytest_asyncio

from monopoly_core.storage import MemoryGameStorage, SqlGameStorage, create_storage

from conftest import act


@pytest_asyncio.fixture
async def sql_storage(tmp_path):
    storage = SqlGameStorage.from_url(f"sqlite+aiosqlite:///{tmp_path / 'games.db'}")
    await storage.create_tables()
    yield storage
    await storage.close()


async def _exercise_store(storage, engine, dice, two_players):
    first = engine.new_game("first", two_players)
    second = engine.new_game("second", two_players)

    assert await storage.get_game("first") is None
    await storage.save_game(first)
    await storage.save_game(second)

    dice.queue((4, 6))
    moved = act(engine, first, "ROLL_DICE", "alice")
    await storage.save_game(moved)

    loaded = await storage.get_game("first")
    assert loaded == moved
    assert loaded.version == 1
    assert await storage.list_games() == ["first", "second"]

    loaded.players[0].cash = 0
    assert (await storage.get_game("first")).players[0].cash == 1500

    assert await storage.delete_game("second")
    assert not await storage.delete_game("second")
    assert await storage.list_games() == ["first"]


@pytest.mark.asyncio
async def test_memory_storage(engine, dice, two_players):
    await _exercise_store(MemoryGameStorage(), engine, dice, two_players)


@pytest.mark.asyncio
async def test_sql_storage(sql_storage, engine, dice, two_players):
    await _exercise_store(sql_storage, engine, dice, two_players)


def test_create_storage_picks_backend(tmp_path):
    assert isinstance(create_storage("memory://"), MemoryGameStorage)
    assert isinstance(create_storage(f"sqlite+aiosqlite:///{tmp_path / 'x.db'}"), SqlGameStorage)
