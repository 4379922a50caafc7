"""
Tests for game configuration and process settings.
"""

import pytest
from pydantic import ValidationError

from monopoly_core import GameConfig
from monopoly_core.settings import MonopolySettings


def test_game_config_defaults():
    config = GameConfig()

    assert config.starting_cash == 1500
    assert config.go_salary == 200
    assert config.jail_fee == 50
    assert not config.auction_enabled


def test_game_config_is_immutable():
    config = GameConfig()

    with pytest.raises(ValidationError):
        config.starting_cash = 10


def test_game_config_validation():
    with pytest.raises(ValidationError):
        GameConfig(jail_position=40)
    with pytest.raises(ValidationError):
        GameConfig(min_players=5, max_players=4)
    with pytest.raises(ValidationError):
        GameConfig(unknown_rule=True)


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("MONOPOLY_STARTING_CASH", "2000")
    monkeypatch.setenv("MONOPOLY_AUCTION_ENABLED", "true")
    monkeypatch.setenv("MONOPOLY_LOG_LEVEL", "debug")

    settings = MonopolySettings(_env_file=None)

    assert settings.log_level == "DEBUG"
    config = settings.game_config()
    assert config.starting_cash == 2000
    assert config.auction_enabled


def test_database_url_needs_async_driver():
    settings = MonopolySettings(_env_file=None, database_url="postgresql://u:p@db/monopoly")
    assert settings.database_url == "postgresql+asyncpg://u:p@db/monopoly"

    with pytest.raises(ValidationError):
        MonopolySettings(_env_file=None, database_url="mysql://u:p@db/monopoly")
    with pytest.raises(ValidationError):
        MonopolySettings(_env_file=None, log_level="LOUD")
