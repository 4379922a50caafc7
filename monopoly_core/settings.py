"""
Central application configuration using pydantic-settings.

Environment variables (prefix: MONOPOLY_), also read from ``.env``:
    MONOPOLY_STARTING_CASH      - cash each player starts with (default: 1500)
    MONOPOLY_GO_SALARY          - salary for passing GO (default: 200)
    MONOPOLY_JAIL_FEE           - fee to leave jail (default: 50)
    MONOPOLY_AUCTION_ENABLED    - auction declined properties (default: false)
    MONOPOLY_FREE_PARKING_POOL  - collect fees on Free Parking (default: false)
    MONOPOLY_DATABASE_URL       - memory:// or an async SQLAlchemy URL
    MONOPOLY_HOST / MONOPOLY_PORT - HTTP server bind address
    MONOPOLY_LOG_LEVEL          - root logging level (default: INFO)
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from monopoly_core.config import GameConfig


class MonopolySettings(BaseSettings):
    """Process-level configuration for the game server."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_prefix="MONOPOLY_",
    )

    # Game rules
    starting_cash: int = Field(default=1500, ge=0)
    go_salary: int = Field(default=200, ge=0)
    board_size: int = Field(default=40, ge=1)
    jail_position: int = Field(default=10, ge=0)
    max_players: int = Field(default=8, ge=2, le=8)
    min_players: int = Field(default=2, ge=1)
    max_consecutive_doubles: int = Field(default=3, ge=1)
    max_jail_turns: int = Field(default=3, ge=1)
    jail_fee: int = Field(default=50, ge=0)
    auction_enabled: bool = False
    free_parking_pool: bool = False
    free_parking_starting_amount: int = Field(default=0, ge=0)
    auto_pay_rent: bool = True
    seed: Optional[int] = Field(default=None, description="Seed for dice and shuffles; random when unset.")

    # Persistence
    database_url: str = Field(
        default="memory://",
        description="memory:// for an in-process store, or an async SQLAlchemy URL.",
    )
    db_echo: bool = Field(default=False)

    # Server
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8000, ge=1, le=65535)
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        value = value.upper()
        if value not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level {value!r}")
        return value

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, value: str) -> str:
        """Only async drivers can back the store."""
        if value.startswith("memory://"):
            return value
        if value.startswith("postgresql://"):
            return value.replace("postgresql://", "postgresql+asyncpg://", 1)
        if "+asyncpg://" not in value and "+aiosqlite://" not in value:
            raise ValueError("DATABASE_URL must be memory:// or use an async driver (asyncpg, aiosqlite)")
        return value

    def game_config(self) -> GameConfig:
        """Build the immutable rule configuration handed to the engine."""
        return GameConfig(
            starting_cash=self.starting_cash,
            go_salary=self.go_salary,
            board_size=self.board_size,
            jail_position=self.jail_position,
            max_players=self.max_players,
            min_players=self.min_players,
            max_consecutive_doubles=self.max_consecutive_doubles,
            max_jail_turns=self.max_jail_turns,
            jail_fee=self.jail_fee,
            auction_enabled=self.auction_enabled,
            free_parking_pool=self.free_parking_pool,
            free_parking_starting_amount=self.free_parking_starting_amount,
            auto_pay_rent=self.auto_pay_rent,
        )

    def get_engine_kwargs(self) -> dict:
        """Return SQLAlchemy engine configuration."""
        return {"echo": self.db_echo, "pool_pre_ping": True}


@lru_cache
def get_settings() -> MonopolySettings:
    """
    Cached settings singleton.

    Returns the same MonopolySettings instance across the application.
    """
    return MonopolySettings()
