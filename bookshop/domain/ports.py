"""
Port interfaces (protocols) for the domain layer.

The services depend only on these protocols; the SQLite adapter in
``bookshop.infrastructure.db`` is one implementation and tests provide
others.
"""

from typing import Iterator, Optional, Protocol, Sequence
from uuid import UUID

from .entities import Book
from .value_objects import BookFilter, SortKey


class BookRepository(Protocol):
    """
    Port for persisting and retrieving books (the Record Store).

    Implementations must guarantee that each insert is atomic and that ids
    stay unique under concurrent callers.
    """

    def insert(self, book: Book) -> UUID:
        """
        Persist a new book with all its fields and audit metadata.

        Args:
            book: The book entity to persist; its id is already assigned

        Returns:
            The id of the stored book

        Raises:
            ValidationError: If the book violates store constraints
            StoreError: If persistence fails; no row is written
        """
        ...

    def get_by_id(self, book_id: UUID) -> Optional[Book]:
        """
        Retrieve a book by its id.

        Returns:
            The Book entity if found, None otherwise

        Raises:
            StoreError: If the read fails
        """
        ...

    def query(
        self,
        book_filter: Optional[BookFilter] = None,
        order_by: Sequence[SortKey] = (),
        offset: int = 0,
        limit: Optional[int] = None,
        search: Optional[str] = None,
    ) -> Iterator[Book]:
        """
        Retrieve the books matching a filter and an optional free-text search.

        Args:
            book_filter: Conjunction of field predicates; None matches all
            order_by: Sort keys applied before the id tie breaker
            offset: Number of matching books to skip
            limit: Maximum number of books to return; None means no limit
            search: Case-insensitive substring over the text fields

        Returns:
            A single-pass iterator of books in id-stable order; empty when
            nothing matches

        Raises:
            StoreError: If the read fails
        """
        ...

    def count(
        self,
        book_filter: Optional[BookFilter] = None,
        search: Optional[str] = None,
    ) -> int:
        """
        Count the books matching a filter and an optional search.

        Raises:
            StoreError: If the read fails
        """
        ...

    def update(self, book: Book) -> bool:
        """
        Overwrite the stored fields of an existing book.

        Returns:
            True if a row was updated, False if the id is unknown

        Raises:
            ValidationError: If the book violates store constraints
            StoreError: If persistence fails
        """
        ...

    def delete(self, book_id: UUID) -> bool:
        """
        Delete a book.

        Returns:
            True if the book was deleted, False if not found

        Raises:
            StoreError: If persistence fails
        """
        ...
