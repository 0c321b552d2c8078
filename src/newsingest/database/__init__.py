"""Database layer."""

from newsingest.database.connection import DatabaseConnection, init_database
from newsingest.database.repository import ArticleRepository

__all__ = [
    "DatabaseConnection",
    "init_database",
    "ArticleRepository",
]
