import logging
from pathlib import Path
from typing import Any, Dict, Generator

from fastapi import Request
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from blog.db.base import Base

logger = logging.getLogger(__name__)


def get_connect_args(database_url: str) -> Dict[str, Any]:
    """Get database-specific connection arguments"""
    if database_url.startswith("sqlite"):
        # SQLite needs check_same_thread=False for FastAPI
        return {"check_same_thread": False}
    return {}


def create_db_engine(database_url: str) -> Engine:
    """Create an engine, making sure a SQLite file's directory exists."""
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite" and url.database not in (None, "", ":memory:"):
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    return create_engine(database_url, connect_args=get_connect_args(database_url))


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def get_db(request: Request) -> Generator[Session, None, None]:
    """Dependency for getting DB session"""
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def init_database(engine: Engine) -> None:
    """Create all tables with proper schema"""
    # Register models with the metadata before create_all
    from blog.db import models as _models  # noqa: F401

    try:
        logger.info("Creating database tables...")
        Base.metadata.create_all(bind=engine)
        table_names = [table.name for table in Base.metadata.sorted_tables]
        logger.info("Database initialized", extra={
            "table_count": len(table_names),
            "tables": table_names,
        })
    except SQLAlchemyError as e:
        logger.error(f"Error initializing database: {e}", extra={
            "error_type": type(e).__name__,
        })
        raise


def check_database_health(engine: Engine) -> Dict[str, Any]:
    """
    Perform database health check.

    Returns:
        Dict with status, database type, connectivity and table count
    """
    health: Dict[str, Any] = {
        "status": "unhealthy",
        "database_type": engine.dialect.name,
        "connected": False,
        "table_count": 0,
        "last_error": None,
    }
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
            health["connected"] = True
        health["table_count"] = len(inspect(engine).get_table_names())
        health["status"] = "healthy"
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        health["last_error"] = str(e)
    return health
