import logging
from datetime import datetime, timezone
from typing import AsyncGenerator

from sqlalchemy import MetaData, event
from sqlalchemy.orm import declarative_base
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, async_sessionmaker, AsyncSession

from settings.config import get_settings

# Alembic-friendly naming convention to ensure stable constraint names
naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=naming_convention)
Base = declarative_base(metadata=metadata)

logger = logging.getLogger(__name__)


def make_engine(url: str) -> AsyncEngine:
    """
    Create a SQLAlchemy ASYNC engine. PostgreSQL goes through psycopg3;
    SQLite (aiosqlite) is accepted for local runs and tests.
    """
    engine = create_async_engine(
        url,
        pool_pre_ping=True,  # Validate connections before use
        future=True,
    )
    if engine.dialect.name == "sqlite":
        @event.listens_for(engine.sync_engine, "connect")
        def _enable_sqlite_fks(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    logger.info("SQLAlchemy async engine created (%s)", engine.dialect.name)
    return engine


def _make_engine() -> AsyncEngine:
    settings = get_settings()
    return make_engine(settings.DATABASE_URL or settings.build_database_url())


# Session factory and engine are module-level singletons
engine = _make_engine()
SessionLocal = async_sessionmaker(bind=engine, autocommit=False, autoflush=False, class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that yields an Async SQLAlchemy session and ensures it's closed.
    """
    async with SessionLocal() as db:
        yield db


def utcnow() -> datetime:
    """
    Python-side timestamp default so the value is known without a refresh.
    """
    return datetime.now(timezone.utc)
