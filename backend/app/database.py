from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from app.config import settings


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    url = settings.DATABASE_URL
    if not url:
        raise RuntimeError("DATABASE_URL is required (Postgres).")
    if url.startswith("sqlite"):
        raise RuntimeError("SQLite is not supported: queries rely on Postgres JSON aggregation.")
    if url.startswith("postgresql://") or url.startswith("postgres://"):
        url = "postgresql+psycopg://" + url.split("://", 1)[1]

    # Pool size plus overflow never exceeds DB_MAX_CONNECTIONS.
    max_conns = max(settings.DB_MAX_CONNECTIONS, 2)
    pool_size = max_conns // 2
    return create_engine(
        url,
        connect_args={
            "connect_timeout": 10,
            "options": f"-c statement_timeout={settings.DB_STATEMENT_TIMEOUT_MS}",
        },
        pool_pre_ping=True,
        pool_size=pool_size,
        max_overflow=max_conns - pool_size,
        pool_recycle=3600,
        pool_timeout=30,
        echo=False,
    )


@lru_cache(maxsize=1)
def get_sessionmaker() -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=get_engine())


def get_db():
    db: Session = get_sessionmaker()()
    try:
        yield db
    finally:
        db.close()
