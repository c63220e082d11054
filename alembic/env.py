import os
from logging.config import fileConfig

from dotenv import load_dotenv
from sqlalchemy import create_engine, pool

from alembic import context

# NOTE: migrations always run on plain sqlite3. SQLCipher databases must be
# created unencrypted and keyed afterwards (pysqlcipher3 has no SQLAlchemy
# dialect we can rely on).

load_dotenv()

# this is the Alembic Config object, which provides
# access to the values within the .ini file in use.
config = context.config

# Callers (CLI, tests) set sqlalchemy.url explicitly; otherwise use DB_PATH
sqlalchemy_url = config.get_main_option("sqlalchemy.url")
if not sqlalchemy_url:
    db_path = os.getenv("DB_PATH", "data/portfolio.db")
    sqlalchemy_url = f"sqlite:///{os.path.abspath(db_path)}"
    config.set_main_option("sqlalchemy.url", sqlalchemy_url)

# Interpret the config file for Python logging.
if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

# Schema is written by hand in the revisions; no autogenerate metadata
target_metadata = None


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode (emit SQL without a connection)."""
    context.configure(
        url=sqlalchemy_url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode against the SQLite file."""
    connectable = create_engine(
        sqlalchemy_url,
        poolclass=pool.NullPool,
        connect_args={"check_same_thread": False},
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=True,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
