from typing import AsyncIterator, Optional
import ssl

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

Base = declarative_base()


class Database:
    """
    Storage context: one engine plus its session factory.

    Instances are passed around explicitly (the app keeps its own on
    ``app.state.database``) so several isolated databases can coexist,
    e.g. one in-memory database per test.
    """

    def __init__(self, url: str, echo: bool = False, engine: Optional[AsyncEngine] = None):
        self.url = url
        self.engine = engine or create_async_engine(
            url,
            echo=echo,
            future=True,
            **_engine_options(url),
        )
        self.sessionmaker = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autocommit=False,
            autoflush=False,
        )

    def session(self) -> AsyncSession:
        return self.sessionmaker()

    async def create_all(self) -> None:
        """Create every table directly. Production schemas go through Alembic."""
        # Import models so they register on Base.metadata
        import yqwork.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self.engine.dispose()


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        # A single shared connection keeps ":memory:" databases alive across sessions
        return {
            "connect_args": {"check_same_thread": False},
            "poolclass": StaticPool,
        }
    if "supabase" in url.lower():
        # Supabase requires SSL connections
        ssl_context = ssl.create_default_context()
        ssl_context.check_hostname = False
        ssl_context.verify_mode = ssl.CERT_NONE
        return {"connect_args": {"ssl": ssl_context}}
    return {}


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    database: Database = request.app.state.database
    async with database.session() as session:
        try:
            yield session
        finally:
            await session.close()
