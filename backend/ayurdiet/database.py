from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool
from ayurdiet.config import get_settings

settings = get_settings()

_is_sqlite = settings.database_url.startswith("sqlite")

# aiosqlite connections are cheap and tied to the loop that opened them; don't pool.
engine = create_async_engine(
    settings.database_url,
    echo=settings.sql_echo,
    **({"poolclass": NullPool} if _is_sqlite else {}),
)

if _is_sqlite:
    # pysqlite defers BEGIN, which breaks SAVEPOINT; take over transaction control.
    @event.listens_for(engine.sync_engine, "connect")
    def _sqlite_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _sqlite_begin(conn):
        conn.exec_driver_sql("BEGIN")


async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

Base = declarative_base()


async def get_db():
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
