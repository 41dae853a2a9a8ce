from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from libs.common.config import get_settings

settings = get_settings()


def engine_kwargs(url: str) -> dict:
    """Engine options for ``url``; SQLite (local runs, tests) takes no pool sizing."""
    kwargs = {"echo": settings.DB_ECHO, "future": True}
    if url.startswith("sqlite"):
        return kwargs
    kwargs.update(
        pool_pre_ping=True,  # Test connections before using
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=settings.DB_POOL_RECYCLE,
    )
    return kwargs


# Create async engine
engine = create_async_engine(settings.DATABASE_URL, **engine_kwargs(settings.DATABASE_URL))

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)
