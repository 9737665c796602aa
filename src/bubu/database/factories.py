"""Database factory functions for creating database instances."""

import os
from pathlib import Path
from typing import Optional

from loguru import logger

from bubu.database.sqlalchemy_db import SQLAlchemyDatabase


def sqlite_url(database_path: Optional[str] = None) -> str:
    """Build the SQLite URL for a database file.

    Args:
        database_path: Path to SQLite database file. If None, checks BUBU_DB_PATH
            environment variable, then defaults to ~/.bubu/bubu.db

    Returns:
        SQLAlchemy URL for the file
    """
    if database_path is None:
        database_path = os.environ.get("BUBU_DB_PATH")

    if database_path is None:
        db_dir = Path.home() / ".bubu"
        db_dir.mkdir(exist_ok=True)
        database_path = str(db_dir / "bubu.db")

    return f"sqlite:///{database_path}"


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite database instance (see sqlite_url for path resolution)."""
    return SQLAlchemyDatabase(sqlite_url(database_path))


def create_database(database_url: str) -> SQLAlchemyDatabase:
    """Create a database instance for any SQLAlchemy URL."""
    return SQLAlchemyDatabase(database_url)


def open_database(
    database_url: Optional[str] = None, database_path: Optional[str] = None
) -> SQLAlchemyDatabase:
    """Create, connect and initialize a database.

    A full URL wins over a SQLite file path.

    Returns:
        Connected database with every table created
    """
    if database_url:
        db = create_database(database_url)
    else:
        db = create_sqlite_database(database_path)
    db.connect()
    db.initialize_schema()
    logger.debug("Opened database {}", db.database_url)
    return db
