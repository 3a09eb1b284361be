from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from snapdrop.core.config import get_settings

settings = get_settings()


def enable_sqlite_foreign_keys(engine: Engine) -> None:
    # SQLite ignores ON DELETE CASCADE unless the pragma is set per connection.
    @event.listens_for(engine, "connect")
    def _set_pragma(dbapi_connection, _record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


if settings.database_url.startswith("sqlite"):
    _engine = create_engine(
        settings.database_url,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_foreign_keys(_engine)
else:
    _engine = create_engine(settings.database_url, pool_pre_ping=True)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_engine)


def get_engine() -> Engine:
    return _engine


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
