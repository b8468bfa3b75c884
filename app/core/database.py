"""
Database configuration and session management
"""

from typing import AsyncGenerator, Optional
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    AsyncEngine,
    async_sessionmaker,
    create_async_engine
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool
from sqlalchemy import text
import logging
from contextlib import asynccontextmanager

from app.config import settings

logger = logging.getLogger(__name__)

# Create declarative base
Base = declarative_base()


class DatabaseManager:
    """
    Owns the engine and session factory; opened at startup, disposed at shutdown
    """

    def __init__(self, url: Optional[str] = None):
        self.url = url or settings.DATABASE_URL
        self.engine: Optional[AsyncEngine] = None
        self.session_factory: Optional[async_sessionmaker] = None
        self.logger = logging.getLogger(__name__)

    def _create_engine(self) -> AsyncEngine:
        if settings.is_testing or self.url.startswith("sqlite"):
            # NullPool doesn't accept pool parameters
            return create_async_engine(
                self.url,
                echo=settings.DB_ECHO,
                poolclass=NullPool,
            )
        return create_async_engine(
            self.url,
            echo=settings.DB_ECHO,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_timeout=settings.DB_POOL_TIMEOUT,
            pool_recycle=settings.DB_POOL_RECYCLE,
            pool_pre_ping=True,
        )

    def open(self) -> None:
        if self.engine is not None:
            return
        self.engine = self._create_engine()
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    async def close(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()
            self.engine = None
            self.session_factory = None

    async def create_all(self) -> None:
        self.open()
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def ping(self) -> bool:
        self.open()
        async with self.engine.connect() as conn:
            result = await conn.execute(text("SELECT 1"))
            return result.scalar() == 1

    def session(self) -> AsyncSession:
        self.open()
        return self.session_factory()

    @asynccontextmanager
    async def transaction(self, session: AsyncSession):
        """
        Commit on success, roll back and re-raise on any error.

        Works whether or not the session already auto-began a transaction,
        so reads made earlier in the request share the same unit of work.
        """
        try:
            yield session
            await session.commit()
        except Exception as e:
            await session.rollback()
            self.logger.error(f"Transaction rolled back: {type(e).__name__}: {e}")
            raise


# Create global database manager
db_manager = DatabaseManager()


async def init_db():
    """
    Initialize database connections
    """
    try:
        await db_manager.create_all()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise


async def close_db():
    """
    Close database connections
    """
    await db_manager.close()
    logger.info("Database connections closed")


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency to get database session
    Services open their own transaction boundaries through db_manager.transaction
    """
    async with db_manager.session() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
