# Database infrastructure package
"""
Record Store adapters.

- SqliteBookRepository: BookRepository port backed by an SQLite file
"""

from .sqlite_book_repository import SqliteBookRepository

__all__ = ["SqliteBookRepository"]
