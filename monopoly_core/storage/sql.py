"""
SQLAlchemy async game store.

Works with any async driver SQLAlchemy supports: asyncpg for PostgreSQL
in deployment, aiosqlite for tests and local runs.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from monopoly_core.exceptions import StorageError
from monopoly_core.serialization import state_from_document, state_to_document
from monopoly_core.state import GameState
from monopoly_core.storage.base import GameStorage
from monopoly_core.storage.models import Base, GameRecord

logger = logging.getLogger(__name__)


class SqlGameStorage(GameStorage):
    """
    Game store backed by the ``game_states`` table.

    Usage:
        storage = SqlGameStorage.from_url("sqlite+aiosqlite:///games.db")
        await storage.create_tables()
        ...
        await storage.close()
    """

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self._session_factory = async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_url(cls, database_url: str, **engine_kwargs: Any) -> "SqlGameStorage":
        logger.info(f"Initializing database connection: {database_url.split('@')[-1]}")
        return cls(create_async_engine(database_url, **engine_kwargs))

    @asynccontextmanager
    async def session_scope(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Async context manager for database sessions.

        Auto-commits on success, rolls back on exception. Driver errors
        surface as StorageError.
        """
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except SQLAlchemyError as exc:
                await session.rollback()
                logger.exception("Database operation failed")
                raise StorageError(f"Database operation failed: {exc}") from exc
            except BaseException:
                await session.rollback()
                raise

    async def create_tables(self) -> None:
        """Create the game_states table if missing."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Tables created successfully")

    async def get_game(self, game_id: str) -> Optional[GameState]:
        async with self.session_scope() as session:
            result = await session.execute(select(GameRecord.document).where(GameRecord.game_id == game_id))
            document: Optional[Dict[str, Any]] = result.scalar_one_or_none()
        if document is None:
            return None
        return state_from_document(document)

    async def save_game(self, state: GameState) -> None:
        document = state_to_document(state)
        async with self.session_scope() as session:
            result = await session.execute(select(GameRecord).where(GameRecord.game_id == state.game_id))
            record = result.scalar_one_or_none()
            if record is None:
                session.add(
                    GameRecord(
                        game_id=state.game_id,
                        version=state.version,
                        phase=state.phase.value,
                        document=document,
                    )
                )
            else:
                record.version = state.version
                record.phase = state.phase.value
                record.document = document
        logger.debug(f"Saved game {state.game_id} at version {state.version}")

    async def list_games(self) -> List[str]:
        async with self.session_scope() as session:
            result = await session.execute(select(GameRecord.game_id).order_by(GameRecord.id))
            return list(result.scalars().all())

    async def delete_game(self, game_id: str) -> bool:
        async with self.session_scope() as session:
            result = await session.execute(delete(GameRecord).where(GameRecord.game_id == game_id))
            return result.rowcount > 0

    async def close(self) -> None:
        logger.info("Closing database connection")
        await self.engine.dispose()
