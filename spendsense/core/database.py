from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base

from spendsense.core.config import settings

SQLITE_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=NORMAL",
    "PRAGMA foreign_keys=ON",
    "PRAGMA busy_timeout=5000",
)

# Base class for models
Base = declarative_base()


def create_engine_for(url: str, *, echo: bool = False):
    """Create an async engine, applying SQLite pragmas when relevant."""
    engine = create_async_engine(url, echo=echo, future=True)

    if make_url(url).get_backend_name() == "sqlite":

        @event.listens_for(engine.sync_engine, "connect")
        def _set_sqlite_pragma(dbapi_connection, connection_record):  # type: ignore[arg-type]
            cursor = dbapi_connection.cursor()
            for pragma in SQLITE_PRAGMAS:
                cursor.execute(pragma)
                if pragma.startswith("PRAGMA journal_mode"):
                    cursor.fetchone()
            cursor.close()

    return engine


def create_session_factory(bind) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


engine = create_engine_for(settings.DATABASE_URL, echo=settings.DEBUG)

# Create async session factory
AsyncSessionLocal = create_session_factory(engine)


async def get_db():
    """Dependency for getting database sessions."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_db(bind=None):
    """Initialize database - create all tables."""
    # Register every mapped table on the metadata before create_all.
    from spendsense.domain.budgets import models as _budgets  # noqa: F401
    from spendsense.domain.insights import models as _insights  # noqa: F401
    from spendsense.domain.records import models as _records  # noqa: F401
    from spendsense.domain.users import models as _users  # noqa: F401

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
