import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import MetaData, event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession
from sqlalchemy.orm import sessionmaker, declarative_base

from app.config import DATABASE_URL, DB_SCHEMA, DB_ECHO
from app.integrity.errors import StoreError

logger = logging.getLogger(__name__)


def enable_sqlite_foreign_keys(async_engine: AsyncEngine) -> None:
    """SQLite ignores declared foreign keys unless every connection opts in."""
    if async_engine.dialect.name != "sqlite":
        return

    @event.listens_for(async_engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = create_async_engine(DATABASE_URL, echo=DB_ECHO, future=True)
enable_sqlite_foreign_keys(engine)

AsyncSessionLocal = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
Base = declarative_base(metadata=MetaData(schema=DB_SCHEMA))


# Dependency for FastAPI routes
async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session


@asynccontextmanager
async def atomic(session: AsyncSession, operation: str = "operation"):
    """
    One unit of work: commit when the block finishes, roll back on any error.

    Store failures are logged with full detail and re-raised as StoreError so
    callers only ever see the generic message.
    """
    try:
        yield session
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.exception("#%s# DB return error -> %s", operation, e)
        raise StoreError(f"Error {operation}") from e
    except Exception:
        await session.rollback()
        raise
