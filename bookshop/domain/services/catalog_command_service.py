"""
Domain service for catalog mutations (the Command Layer).

Two create entry points exist on purpose:

- ``create`` is the generic insert. It applies the schema constraints
  carried by the Book entity (title not null, length limits, price
  precision) and nothing else.
- ``create_book`` adds a business rule on top: the title must be
  non-empty. The rule runs as a ``before`` hook on the ``createBook``
  event, so a rejected request never reaches the store.

Store faults are logged with their cause and surfaced as OperationError
with a generic message.
"""

import logging
from decimal import Decimal
from typing import Any, Mapping, Optional
from uuid import UUID

from bookshop.domain.entities import ANONYMOUS, Book
from bookshop.domain.errors import NotFound, OperationError, StoreError, ValidationError
from bookshop.domain.hooks import HookChain, OperationRequest
from bookshop.domain.ports import BookRepository


def require_title(request: OperationRequest) -> None:
    """Reject a request whose title is missing, empty or blank."""
    title = request.data.get("title")
    if title is None or not str(title).strip():
        raise ValidationError("title is required and cannot be empty", field="title")


class CatalogCommandService:
    """
    Write use cases over the book catalog.

    Every method re-reads the stored record before returning it, so the
    caller sees the server-assigned id and audit fields rather than an echo
    of its own input.
    """

    def __init__(
        self,
        repository: BookRepository,
        hooks: Optional[HookChain] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._repository = repository
        self._logger = logger or logging.getLogger(__name__)
        self.hooks = hooks or HookChain()
        self.hooks.before("createBook", require_title)

    def create_book(
        self,
        title: Optional[str],
        author: Optional[str] = None,
        genre: Optional[str] = None,
        price: Optional[Decimal] = None,
        stock: Optional[int] = None,
        *,
        user: str = ANONYMOUS,
    ) -> Book:
        """
        Validated create.

        Returns:
            The stored book, re-read after the insert

        Raises:
            ValidationError: If the title is missing/empty or a schema
                constraint is violated
            OperationError: If the store fails; no record is left behind
        """
        request = OperationRequest(
            event="createBook",
            data={
                "title": title,
                "author": author,
                "genre": genre,
                "price": price,
                "stock": stock,
            },
            user=user,
        )
        return self.hooks.run("createBook", request, self._create_book)

    def _create_book(self, request: OperationRequest) -> Book:
        data = request.data
        self._logger.info("Creating new book: %s by %s", data["title"], data["author"])

        book = Book.create_new(user=request.user, **data)
        book_id = self._insert(book, failure="Failed to create book")

        self._logger.info("Successfully created book with ID: %s", book_id)
        return self._fetch_created(book_id)

    def create(self, data: Mapping[str, Any], *, user: str = ANONYMOUS) -> Book:
        """
        Generic create: schema constraints only.

        Args:
            data: Writable book fields; audit fields and ids are not accepted

        Raises:
            ValidationError: If a schema constraint is violated
            OperationError: If the store fails
        """
        request = OperationRequest(event="CREATE", data=dict(data), user=user)
        return self.hooks.run("CREATE", request, self._create)

    def _create(self, request: OperationRequest) -> Book:
        fields = dict(request.data)
        title = fields.pop("title", None)

        book = Book.create_new(title=title, user=request.user, **fields)
        book_id = self._insert(book, failure="Failed to create book")

        self._logger.debug("Inserted book %s", book_id)
        return self._fetch_created(book_id)

    def update(self, book_id: UUID, changes: Mapping[str, Any], *, user: str = ANONYMOUS) -> Book:
        """
        Partial update of the writable fields; refreshes modifiedAt/modifiedBy.

        Raises:
            NotFound: If no book has this id
            ValidationError: On read-only fields or violated constraints
            OperationError: If the store fails
        """
        request = OperationRequest(
            event="UPDATE", data={"id": book_id, "changes": dict(changes)}, user=user
        )
        return self.hooks.run("UPDATE", request, self._update)

    def _update(self, request: OperationRequest) -> Book:
        book_id = request.data["id"]
        current = self._reread(book_id, failure="Failed to update book")
        updated = current.with_changes(request.data["changes"], user=request.user)

        try:
            found = self._repository.update(updated)
        except StoreError as e:
            self._logger.exception("Error updating book %s: %s", book_id, e)
            raise OperationError("Failed to update book") from e

        if not found:
            raise NotFound(book_id)
        return self._reread(book_id, failure="Failed to update book")

    def delete(self, book_id: UUID, *, user: str = ANONYMOUS) -> None:
        """
        Remove a book from the store.

        Raises:
            NotFound: If no book has this id
            OperationError: If the store fails
        """
        request = OperationRequest(event="DELETE", data={"id": book_id}, user=user)
        self.hooks.run("DELETE", request, self._delete)

    def _delete(self, request: OperationRequest) -> None:
        book_id = request.data["id"]
        try:
            deleted = self._repository.delete(book_id)
        except StoreError as e:
            self._logger.exception("Error deleting book %s: %s", book_id, e)
            raise OperationError("Failed to delete book") from e

        if not deleted:
            raise NotFound(book_id)
        self._logger.info("Deleted book %s", book_id)

    def _insert(self, book: Book, failure: str) -> UUID:
        try:
            return self._repository.insert(book)
        except StoreError as e:
            self._logger.exception("Error creating book: %s", e)
            raise OperationError(failure) from e

    def _reread(self, book_id: UUID, failure: str) -> Book:
        try:
            book = self._repository.get_by_id(book_id)
        except StoreError as e:
            self._logger.exception("Error reading book %s: %s", book_id, e)
            raise OperationError(failure) from e

        if book is None:
            raise NotFound(book_id)
        return book

    def _fetch_created(self, book_id: UUID) -> Book:
        try:
            return self._reread(book_id, failure="Failed to create book")
        except NotFound as e:
            self._logger.error("Book %s vanished right after insert", book_id)
            raise OperationError("Failed to create book") from e
