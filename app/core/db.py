from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from .config import get_settings

_engine: Engine | None = None
_SessionLocal: sessionmaker[Session] | None = None


def engine_options(database_url: str) -> dict:
    """SQLite sessions are handed across the request threadpool."""

    if database_url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        database_url = get_settings().DATABASE_URL
        _engine = create_engine(database_url, **engine_options(database_url))
    return _engine


def get_session_factory() -> sessionmaker[Session]:
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(bind=get_engine(), autoflush=False, expire_on_commit=False)
    return _SessionLocal


def get_db_session():
    """One session per request, closed when the response is done."""

    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()
