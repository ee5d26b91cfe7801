"""Database layer for bilanz."""

from bilanz.database.base import Database
from bilanz.database.factories import create_sqlite_database

__all__ = ["Database", "create_sqlite_database"]
