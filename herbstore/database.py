"""
Database engine, session factory and declarative base
"""

from datetime import datetime, timezone

from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker

from herbstore.config import settings

Base = declarative_base()


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every datetime column stores"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def normalize_database_url(url: str) -> str:
    """Route plain postgres URLs to the psycopg (v3) driver"""
    if url.startswith("postgres://"):
        return "postgresql+psycopg://" + url[len("postgres://"):]
    if url.startswith("postgresql://"):
        return "postgresql+psycopg://" + url[len("postgresql://"):]
    return url


def create_db_engine(url: str, **engine_kwargs):
    """Create an engine for the given URL.

    SQLite connections get foreign key enforcement and an explicit BEGIN so
    SAVEPOINTs work through pysqlite. Other backends get a bounded pool.
    """
    url = normalize_database_url(url)

    if url.startswith("sqlite"):
        engine = create_engine(
            url,
            connect_args={"check_same_thread": False},
            **engine_kwargs,
        )

        @event.listens_for(engine, "connect")
        def _on_connect(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        @event.listens_for(engine, "begin")
        def _on_begin(conn):
            conn.exec_driver_sql("BEGIN")

        return engine

    engine_kwargs.setdefault("pool_size", 10)
    engine_kwargs.setdefault("max_overflow", 0)
    engine_kwargs.setdefault("pool_pre_ping", True)
    engine_kwargs.setdefault("pool_recycle", 1800)
    return create_engine(url, **engine_kwargs)


engine = create_db_engine(settings.database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """FastAPI dependency yielding a request-scoped session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
