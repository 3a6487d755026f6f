import os
from logging.config import fileConfig

from alembic import context
from dotenv import load_dotenv
from sqlalchemy import engine_from_config, pool
from sqlalchemy.engine.url import make_url

# 1) Load variables from .env
load_dotenv()

# 2) Alembic config (reads alembic.ini)
config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# 3) Import Base and every model so the metadata is complete
from spendsense.core.database import Base  # noqa: E402
from spendsense.domain.users.models import User  # noqa: F401,E402
from spendsense.domain.records.models import FinancialRecord  # noqa: F401,E402
from spendsense.domain.insights.models import Insight  # noqa: F401,E402
from spendsense.domain.budgets.models import Budget  # noqa: F401,E402

target_metadata = Base.metadata

# ------------------------------------------
# Helpers
# ------------------------------------------

SYNC_DRIVERS = {
    "sqlite+aiosqlite": "sqlite+pysqlite",
    "postgresql+asyncpg": "postgresql+psycopg2",
}


def _sync_url_from_env() -> str:
    """Swap the async driver of DATABASE_URL for its sync counterpart."""
    db_url = os.getenv("DATABASE_URL") or "sqlite+aiosqlite:///./spendsense.db"
    url = make_url(db_url)

    sync_driver = SYNC_DRIVERS.get(url.drivername)
    if sync_driver:
        url = url.set(drivername=sync_driver)

    return url.render_as_string(hide_password=False)


def _configure_sqlalchemy_url():
    config.set_main_option("sqlalchemy.url", _sync_url_from_env())


# ------------------------------------------
# Alembic configuration (offline/online)
# ------------------------------------------

def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode."""
    _configure_sqlalchemy_url()
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
        render_as_batch=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode."""
    _configure_sqlalchemy_url()
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
        future=True,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            render_as_batch=True,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
