"""Database engine, session dependency and lifecycle helpers.

This module centralizes the async SQLAlchemy session dependency in the
core layer so it can be reused across the application.
"""

from collections.abc import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from plancoach.core.config import settings
from plancoach.utils.logging import get_logger

LOGGER = get_logger(__name__)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


def _engine_kwargs() -> dict:
    kwargs = {
        "echo": settings.database_echo,
        "future": True,
    }
    if settings.database_url.startswith("postgresql+asyncpg"):
        kwargs.update(
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            # Disable prepared statement cache for PgBouncer compatibility
            connect_args={"statement_cache_size": 0},
        )
    return kwargs


# Create async engine
engine = create_async_engine(settings.database_url, **_engine_kwargs())

# Create async session factory
async_session_maker = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for getting async database session.

    Yields:
        AsyncSession: Database session
    """
    async with async_session_maker() as session:
        try:
            yield session
        finally:
            await session.close()


class DatabaseClient:
    """PostgreSQL database client with connection and migration management."""

    def __init__(self, engine: AsyncEngine):
        """Initialize database client.

        Args:
            engine: SQLAlchemy async engine
        """
        self.engine = engine
        self._connected = False

    async def connect(self) -> bool:
        """Test database connection."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
                await conn.commit()

            self._connected = True
            LOGGER.info("Database connection successful")
            return True

        except Exception:
            self._connected = False
            LOGGER.error("Database connection failed", exc_info=True)
            raise

    async def disconnect(self) -> None:
        """Close database connection."""
        try:
            await self.engine.dispose()
            self._connected = False
            LOGGER.info("Database connection closed")
        except Exception as e:
            LOGGER.error(
                "Error closing database connection",
                exc_info=True,
                extra={"error": str(e)}
            )

    async def create_tables(self) -> None:
        """Create missing tables from the SQLAlchemy models."""
        # Import models so they register on Base.metadata
        from plancoach.database import models  # noqa: F401

        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)

            LOGGER.info("Database tables created/verified successfully")

        except Exception as e:
            LOGGER.error(
                "Failed to create database tables",
                exc_info=True,
                extra={"error": str(e)}
            )
            raise

    async def health_check(self) -> dict:
        """Check database health."""
        try:
            async with self.engine.connect() as conn:
                val = await conn.scalar(text("SELECT 1"))

            self._connected = True

            return {
                "status": "healthy",
                "connected": True,
                "latency_test": "passed" if val == 1 else "failed"
            }

        except Exception as e:
            self._connected = False
            LOGGER.error("Database health check failed", extra={"error": str(e)})
            return {
                "status": "unhealthy",
                "connected": False,
                "error": str(e),
            }

    @property
    def is_connected(self) -> bool:
        """Check if database is connected."""
        return self._connected


# Global database client instance
db_client = DatabaseClient(engine)


async def init_database(auto_migrate: bool = True) -> None:
    """Initialize database connection and optionally create tables.

    Args:
        auto_migrate: Whether to create missing tables on startup
    """
    try:
        LOGGER.info("Initializing database connection...")
        await db_client.connect()

        if auto_migrate:
            await db_client.create_tables()

        LOGGER.info("Database initialization completed")

    except Exception as e:
        LOGGER.error(
            "Database initialization failed",
            exc_info=True,
            extra={"error": str(e)}
        )
        raise


async def close_database() -> None:
    """Close database connection."""
    LOGGER.info("Closing database connection...")
    await db_client.disconnect()
