"""vectordesk local database layer."""

from vectordesk.db.connection import Database
from vectordesk.db.migrations import MIGRATIONS, run_migrations
from vectordesk.db.repository import Repository

__all__ = [
    "Database",
    "Repository",
    "run_migrations",
    "MIGRATIONS",
]
