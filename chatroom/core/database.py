"""
Database engine, session factory and declarative base.
"""
from typing import Any, Dict, Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from chatroom.core.config import settings


def engine_options(url: str) -> Dict[str, Any]:
    """Driver-level timeouts so no store call can block indefinitely."""
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False, "timeout": settings.DB_TIMEOUT_SECONDS}}
    return {
        "pool_pre_ping": True,
        "pool_timeout": settings.DB_TIMEOUT_SECONDS,
        "connect_args": {
            "connect_timeout": settings.DB_TIMEOUT_SECONDS,
            "options": f"-c statement_timeout={settings.DB_TIMEOUT_SECONDS * 1000}",
        },
    }


engine = create_engine(settings.database_url, **engine_options(settings.database_url))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
