from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, AsyncEngine, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool
from sqlalchemy import text
from typing import AsyncGenerator, Optional
import logging

from app.core.config import settings

logger = logging.getLogger(__name__)

# Declarative base for all tables
Base = declarative_base()

# Global engine and session factory
engine: Optional[AsyncEngine] = None
async_session_maker: Optional[async_sessionmaker] = None


async def init_database() -> None:
    """Create the engine and session factory"""
    global engine, async_session_maker

    try:
        engine_options = {
            "echo": settings.debug,
            "pool_pre_ping": True,
        }
        if settings.is_testing:
            engine_options["poolclass"] = NullPool
        else:
            engine_options["pool_recycle"] = 3600

        engine = create_async_engine(settings.database_url_computed, **engine_options)

        async_session_maker = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False
        )

        logger.info("Database connection initialised")

    except Exception as e:
        logger.error(f"Database initialisation failed: {e}")
        raise


async def close_database() -> None:
    """Dispose of the engine"""
    global engine

    if engine:
        await engine.dispose()
        logger.info("Database connection closed")


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding a session committed on success"""
    if not async_session_maker:
        raise RuntimeError("Database not initialised, call init_database() first")

    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


class DatabaseService:
    """Database health helpers"""

    @property
    def engine(self):
        return engine

    async def health_check(self) -> dict:
        """Run SELECT 1 against the database"""
        try:
            if not self.engine:
                return {"status": "error", "message": "Database engine not initialised"}

            async with self.engine.begin() as conn:
                result = await conn.execute(text("SELECT 1"))
                row = result.fetchone()

            return {
                "status": "healthy",
                "message": "Database connection OK",
                "test_query_result": row[0] if row else None
            }

        except Exception as e:
            return {
                "status": "error",
                "message": f"Database connection failed: {str(e)}"
            }


# Global database service instance
database_service = DatabaseService()
