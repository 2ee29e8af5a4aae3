from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from core.config import settings


class Base(DeclarativeBase):
    pass


def _install_sqlite_locking(engine: AsyncEngine) -> None:
    """Take the SQLite write lock at BEGIN so writers serialize before reading stock."""

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # stop the driver from issuing its own deferred BEGIN / COMMIT
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(database_url: str = settings.database_url, echo: bool = settings.database_echo) -> AsyncEngine:
    connect_args = {}
    is_sqlite = database_url.startswith("sqlite")
    if is_sqlite:
        connect_args["timeout"] = settings.sqlite_busy_timeout
    engine = create_async_engine(database_url, echo=echo, connect_args=connect_args)
    if is_sqlite:
        _install_sqlite_locking(engine)
    return engine


def build_session_maker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind, expire_on_commit=False)


engine = build_engine()
async_session_maker = build_session_maker(engine)


async def create_db_and_tables(bind: AsyncEngine = engine):
    import db.models  # noqa: F401  registers every table on Base.metadata

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


def get_session_maker() -> async_sessionmaker[AsyncSession]:
    return async_session_maker

