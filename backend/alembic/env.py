# alembic/env.py
from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

import checkin_api.models  # noqa: F401  registers every table on Base.metadata
from checkin_api import config as app_config
from checkin_api.db import Base

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def _options(url: str) -> dict:
    # SQLite cannot ALTER most constraints in place.
    return {
        "target_metadata": Base.metadata,
        "compare_type": True,
        "render_as_batch": url.startswith("sqlite"),
    }


def migrate() -> None:
    url = app_config.database_url() or config.get_main_option("sqlalchemy.url")
    if context.is_offline_mode():
        context.configure(url=url, literal_binds=True, **_options(url))
        with context.begin_transaction():
            context.run_migrations()
        return

    engine = create_engine(url, poolclass=pool.NullPool)
    with engine.connect() as connection:
        context.configure(connection=connection, **_options(url))
        with context.begin_transaction():
            context.run_migrations()


migrate()
