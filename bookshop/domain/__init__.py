"""
Domain layer - Core business logic and entities.

This layer contains the Book entity, the read-request value objects, the
error taxonomy and the ports (interfaces) that the infrastructure layer
implements.

It has NO dependencies on web frameworks or databases.
"""

from .entities import Book
from .errors import BookshopError, NotFound, OperationError, StoreError, ValidationError
from .value_objects import BookFilter, BookPage, ListOptions, Predicate, SortKey

__all__ = [
    # Entities
    "Book",
    # Value Objects
    "BookFilter",
    "BookPage",
    "ListOptions",
    "Predicate",
    "SortKey",
    # Errors
    "BookshopError",
    "NotFound",
    "OperationError",
    "StoreError",
    "ValidationError",
]
