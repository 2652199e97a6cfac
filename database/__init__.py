"""Database package public API."""

from .connection import SQLitePool, init_db_pool
from .migrations import run_migrations
from .seed import seed_roster

__all__ = [
    "SQLitePool",
    "init_db_pool",
    "run_migrations",
    "seed_roster",
]
