# alembic/env.py
import os
import sys
from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

# Add project root to sys.path so we can import smartq.backend.app
sys.path.append(os.path.dirname(os.path.abspath(os.path.join(__file__, ".."))))

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

from smartq.backend.app.config import DATABASE_URL  # noqa: E402
from smartq.backend.app.db import Base  # noqa: E402
import smartq.backend.app.models  # noqa: E402,F401  (registers the tables)

target_metadata = Base.metadata

# SQLite cannot ALTER most things in place
RENDER_AS_BATCH = DATABASE_URL.startswith("sqlite")


def run_migrations_offline():
    context.configure(
        url=DATABASE_URL,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=RENDER_AS_BATCH,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    # DATABASE_URL from the environment / .env, same as the app
    connectable = create_engine(DATABASE_URL, poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=RENDER_AS_BATCH,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
