"""
Domain error taxonomy for the bookshop catalog.

Each error maps to exactly one external status in the API layer:

    ValidationError  -> 400
    NotFound         -> 404
    StoreError       -> 500 (raised by the Record Store)
    OperationError   -> 500 (raised by the Query/Command layers)

The exceptions also derive from the matching builtin (ValueError,
LookupError, RuntimeError), so callers written against plain builtins
keep working.
"""

from typing import Optional
from uuid import UUID


class BookshopError(Exception):
    """Base class for every error raised by the catalog."""

    status_code: int = 500


class ValidationError(BookshopError, ValueError):
    """
    Bad or missing input.

    The message is safe to return to callers and names the offending field.
    """

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field


class NotFound(BookshopError, LookupError):
    """No book exists with the requested id."""

    status_code = 404

    def __init__(self, book_id: UUID) -> None:
        super().__init__(f"Book with id '{book_id}' not found")
        self.book_id = book_id


class StoreError(BookshopError, RuntimeError):
    """Persistence fault in the Record Store (disk, connection, driver)."""


class OperationError(BookshopError, RuntimeError):
    """
    Internal failure surfaced by a service operation.

    Only the generic message leaves the server; the cause stays chained
    on ``__cause__`` and in the server log.
    """

    def __init__(self, message: str = "Internal server error") -> None:
        super().__init__(message)
        self.message = message
