"""Shared repository plumbing."""

from typing import Optional

from ..connection import Database, get_database


class BaseRepository:
    """Resolves the database lazily so the singleton can be swapped at runtime."""

    def __init__(self, db: Optional[Database] = None):
        self._db = db

    @property
    def db(self) -> Database:
        return self._db or get_database()

    @db.setter
    def db(self, value: Database):
        self._db = value
