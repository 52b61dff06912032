import os

from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker

from vfxhub.config import config

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
DB_PATH = os.path.join(PROJECT_ROOT, "vfxhub.db")
SQLALCHEMY_DATABASE_URL = config.get("storage", "database_url") or f"sqlite:///{DB_PATH}"

Base = declarative_base()


def create_db_engine(url: str = SQLALCHEMY_DATABASE_URL):
    """Engine for the local document store. SQLite gets WAL and a shared-thread connection."""
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)

    engine = create_engine(url, connect_args={"check_same_thread": False})

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA synchronous=NORMAL")
        cursor.close()

    return engine


def create_session_factory(engine):
    # Import models so their tables are registered on Base.metadata
    from vfxhub.api import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)
