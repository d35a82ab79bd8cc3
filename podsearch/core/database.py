import logging
import ssl
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from podsearch.models.orm import Base

logger = logging.getLogger(__name__)


def prepare_database_url(url: str) -> tuple[str, dict]:
    """
    Prepare database URL for asyncpg compatibility.
    asyncpg doesn't support 'sslmode' parameter, need to convert to 'ssl' context.
    """
    if not url:
        return url, {}

    parsed = make_url(url)
    sslmode = parsed.query.get("sslmode")
    if sslmode is None:
        return url, {}
    if isinstance(sslmode, tuple):
        sslmode = sslmode[0]

    connect_args = {}
    if sslmode == "require":
        ssl_context = ssl.create_default_context()
        ssl_context.check_hostname = False
        ssl_context.verify_mode = ssl.CERT_NONE
        connect_args["ssl"] = ssl_context
    elif sslmode in ("verify-ca", "verify-full"):
        connect_args["ssl"] = ssl.create_default_context()
    elif sslmode == "disable":
        connect_args["ssl"] = False

    cleaned = parsed.difference_update_query(["sslmode"])
    return cleaned.render_as_string(hide_password=False), connect_args


class Database:
    def __init__(self, db_url: str, echo: bool = False) -> None:
        cleaned_url, connect_args = prepare_database_url(db_url)

        engine_kwargs = {"echo": echo, "connect_args": connect_args}
        if cleaned_url.startswith("sqlite"):
            # in-memory sqlite must share one connection across sessions
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            engine_kwargs["poolclass"] = StaticPool
        else:
            engine_kwargs["pool_pre_ping"] = True

        self._engine = create_async_engine(cleaned_url, **engine_kwargs)
        self._session_factory = async_sessionmaker(
            bind=self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @property
    def engine(self):
        return self._engine

    async def create_database(self) -> None:
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_database(self) -> None:
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self) -> None:
        await self._engine.dispose()

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        session: AsyncSession = self._session_factory()
        try:
            yield session
        except Exception as e:
            logger.debug(f"Session rollback: {type(e).__name__}")
            await session.rollback()
            raise
        finally:
            await session.close()
