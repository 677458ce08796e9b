from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.config import Settings, get_settings

SQLITE_MEMORY_URL = "sqlite+aiosqlite:///:memory:"


def build_engine(settings: Settings) -> AsyncEngine:
    url = settings.database_url or SQLITE_MEMORY_URL
    if url.startswith("sqlite") and ":memory:" in url:
        # A single shared connection keeps an in-memory database alive across sessions
        return create_async_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    if url.startswith("sqlite"):
        return create_async_engine(url, connect_args={"check_same_thread": False})
    return create_async_engine(
        url,
        pool_pre_ping=True,
        pool_recycle=3600,
    )


def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


engine = build_engine(get_settings())
AsyncSessionLocal = build_sessionmaker(engine)
