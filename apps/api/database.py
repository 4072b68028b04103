"""
Async database engine, session factory, and FastAPI session dependency.
"""

from typing import AsyncGenerator

from sqlalchemy.engine import make_url
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from config import settings


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


def get_async_database_url(raw_url: str) -> str:
    """Return the configured URL with an async driver for the ORM engine."""
    url = make_url(raw_url)
    if url.drivername in ("postgresql", "postgresql+psycopg", "postgresql+psycopg2"):
        url = url.set(drivername="postgresql+asyncpg")
    elif url.drivername == "sqlite":
        url = url.set(drivername="sqlite+aiosqlite")
    return url.render_as_string(hide_password=False)


DATABASE_URL = get_async_database_url(settings.DATABASE_URL)

if DATABASE_URL.startswith("sqlite"):
    engine = create_async_engine(DATABASE_URL, connect_args={"check_same_thread": False})
else:
    engine = create_async_engine(
        DATABASE_URL,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
        pool_recycle=3600,
    )

async_session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

# Driver-level failures that mean the backend could not be reached.
STORAGE_UNAVAILABLE_ERRORS = (OperationalError, InterfaceError, OSError)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency to get a request-scoped database session."""
    async with async_session_maker() as session:
        yield session
