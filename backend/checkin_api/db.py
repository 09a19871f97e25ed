import re

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

from checkin_api import config

DATABASE_URL = config.database_url()


def _engine_kwargs(url: str) -> dict:
    kwargs = {"echo": config.sql_echo(), "future": True}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        # In-memory SQLite lives on one connection; share it across sessions.
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_pre_ping"] = True
    return kwargs


engine = create_engine(DATABASE_URL, **_engine_kwargs(DATABASE_URL))


def _sqlite_regexp_replace(value, pattern, repl, flags=None):
    if value is None:
        return None
    count = 0 if flags and "g" in flags else 1
    return re.sub(pattern, repl, str(value), count=count)


if engine.dialect.name == "sqlite":
    # PostgreSQL ships regexp_replace; give SQLite the same function so
    # digit-only phone matching is written once.
    @event.listens_for(engine, "connect")
    def _register_sqlite_functions(dbapi_conn, _record):
        dbapi_conn.create_function("regexp_replace", 3, _sqlite_regexp_replace)
        dbapi_conn.create_function("regexp_replace", 4, _sqlite_regexp_replace)
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


# Dependency to inject DB session
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
