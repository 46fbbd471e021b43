# yt_commenter/infrastructure/database/connection.py
"""
Database Connection Management
Async SQLAlchemy engine, session factory and table lifecycle
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

from yt_commenter.app.config import get_config

logger = logging.getLogger(__name__)

# Base class for models
Base = declarative_base()


class DatabaseManager:
    """
    Owns one async engine and its session factory

    Usage:
        async with db_manager.session() as session:
            ...  # committed on success, rolled back on error
    """

    def __init__(self, url: Optional[str] = None, echo: Optional[bool] = None, **engine_kwargs):
        config = get_config()
        self.url = url or config.database.url
        self.echo = config.database.echo if echo is None else echo
        self._engine_kwargs = engine_kwargs
        self._engine: Optional[AsyncEngine] = None
        self._sessionmaker: Optional[async_sessionmaker] = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            self._engine = create_async_engine(
                self.url, echo=self.echo, **self._engine_kwargs
            )
            logger.info(f"🗄️ Database engine created: {self.url.split('/')[-1]}")
        return self._engine

    @property
    def sessionmaker(self) -> async_sessionmaker:
        if self._sessionmaker is None:
            self._sessionmaker = async_sessionmaker(
                bind=self.engine,
                class_=AsyncSession,
                expire_on_commit=False,
                autoflush=False,
            )
        return self._sessionmaker

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Transactional session scope"""
        session = self.sessionmaker()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def create_tables(self) -> None:
        """Create all tables defined by models"""
        # Register ORM classes on Base.metadata
        from yt_commenter.infrastructure.database import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("✅ Database tables created successfully")

    async def drop_tables(self) -> None:
        """Drop all tables (development/testing only)"""
        from yt_commenter.infrastructure.database import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        logger.warning("⚠️  All tables dropped")

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._sessionmaker = None
            logger.info("🔌 Database engine disposed")


db_manager = DatabaseManager()
