from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any
import logging

from sqlalchemy import event, Engine, create_engine, Result, CursorResult
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import sessionmaker, Session

import config
# Importing the models package registers every table on Base.metadata
from models import Base

logger = logging.getLogger(__name__)

# SQLAlchemy logging configuration
# HARD DISABLE SQL echo - statements are never written to the logs
sql_echo = False

url = make_url(config.DB_URL)
IS_ASYNC = url.get_dialect().is_async

if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
    # sqlite creates the file but not its folder
    Path(url.database).parent.mkdir(parents=True, exist_ok=True)

engine = None
session_maker = None
if IS_ASYNC:
    engine = create_async_engine(url, echo=sql_echo)
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
else:
    engine = create_engine(url, echo=sql_echo)
    session_maker = sessionmaker(engine, expire_on_commit=False)


@asynccontextmanager
async def get_db_session() -> AsyncSession | Session:
    session = None
    try:
        if IS_ASYNC:
            async with session_maker() as async_session:
                session = async_session
                yield session
        else:
            with session_maker() as sync_session:
                session = sync_session
                yield session
    finally:
        if isinstance(session, AsyncSession):
            await session.close()
        elif isinstance(session, Session):
            session.close()


async def session_execute(stmt, session: AsyncSession | Session) -> Result[Any] | CursorResult[Any]:
    if isinstance(session, AsyncSession):
        query_result = await session.execute(stmt)
        return query_result
    else:
        query_result = session.execute(stmt)
        return query_result


async def session_flush(session: AsyncSession | Session) -> None:
    if isinstance(session, AsyncSession):
        await session.flush()
    else:
        session.flush()


async def session_commit(session: AsyncSession | Session) -> None:
    if isinstance(session, AsyncSession):
        await session.commit()
    else:
        session.commit()


async def session_rollback(session: AsyncSession | Session) -> None:
    if isinstance(session, AsyncSession):
        await session.rollback()
    else:
        session.rollback()


@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_connection, connection_record):
    # Only sqlite drivers understand PRAGMA (sqlite3 / aiosqlite adapters)
    if "sqlite" not in type(dbapi_connection).__module__:
        return
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


async def create_db_and_tables():
    """Create missing tables. Existing tables and data are never dropped."""
    if IS_ASYNC:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    else:
        Base.metadata.create_all(bind=engine)
    logger.info(f"✅ Database ready ({url.get_backend_name()})")
