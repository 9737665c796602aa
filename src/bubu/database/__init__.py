"""Database layer for bubu application."""

from bubu.database.base import Database
from bubu.database.factories import create_database, create_sqlite_database, open_database

__all__ = ["Database", "create_database", "create_sqlite_database", "open_database"]
