"""Database connection and session management with async SQLAlchemy."""

from typing import AsyncGenerator, Any, Dict
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.orm.exc import StaleDataError

from reviewflow.config import settings
from reviewflow.core.errors import ConcurrencyConflict


def build_engine(url: str, **kwargs: Any) -> AsyncEngine:
    """Create an async engine, sizing the pool only for server databases."""
    options: Dict[str, Any] = {"pool_pre_ping": True}
    if not url.startswith("sqlite"):
        options.update(pool_size=5, max_overflow=10)
    options.update(kwargs)
    return create_async_engine(url, **options)


# Create async engine
engine = build_engine(
    settings.DATABASE_URL,
    echo=settings.ENVIRONMENT == "development",
)

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


# Base class for all models
class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


async def init_db(bind: AsyncEngine = engine) -> None:
    """Create all tables that do not exist yet."""
    # Import models so they register on Base.metadata
    import reviewflow.models  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def commit_or_conflict(db: AsyncSession) -> None:
    """
    Commit the unit of work, turning lost optimistic-concurrency races into ConcurrencyConflict.

    A stale row_version or a duplicate key written by a concurrent request
    rolls the whole transaction back; nothing from it is persisted.
    """
    try:
        await db.commit()
    except (StaleDataError, IntegrityError) as exc:
        await db.rollback()
        raise ConcurrencyConflict() from exc


async def flush_or_conflict(db: AsyncSession) -> None:
    """Flush pending changes mid-transaction with the same conflict handling as commit."""
    try:
        await db.flush()
    except (StaleDataError, IntegrityError) as exc:
        await db.rollback()
        raise ConcurrencyConflict() from exc


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency function that yields database sessions.

    Usage in FastAPI routes:
        @router.get("/")
        async def route(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
