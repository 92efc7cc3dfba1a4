from __future__ import annotations
from logging.config import fileConfig
from sqlalchemy import engine_from_config, pool
from alembic import context
import os, sys

# Allow importing repairtrack models
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from repairtrack.models.authz import Base  # noqa: E402
# Register every table on Base.metadata
import repairtrack.models.repair_ticket  # noqa: E402,F401
import repairtrack.models.kva  # noqa: E402,F401
import repairtrack.models.history  # noqa: E402,F401
import repairtrack.models.notification  # noqa: E402,F401

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

def get_url():
    return os.getenv('DATABASE_URL', 'sqlite:///dev.db')

config.set_main_option('sqlalchemy.url', get_url())

target_metadata = Base.metadata

def run_migrations_offline():
    url = config.get_main_option("sqlalchemy.url")
    context.configure(url=url, target_metadata=target_metadata, literal_binds=True)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    connectable = engine_from_config(
        config.get_section(config.config_ini_section),
        prefix='sqlalchemy.',
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)
        with context.begin_transaction():
            context.run_migrations()

if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
