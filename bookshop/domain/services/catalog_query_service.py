"""
Domain service for read access to the catalog (the Query Layer).

Every read runs through the service's HookChain under the ``READ`` event
(or ``getBooksByGenre`` for the genre operation). Store faults are logged
with their cause and re-raised as a generic OperationError.
"""

import logging
from typing import List, Optional
from uuid import UUID

from bookshop.domain.entities import ANONYMOUS, Book
from bookshop.domain.errors import NotFound, StoreError, OperationError
from bookshop.domain.hooks import HookChain, OperationRequest
from bookshop.domain.ports import BookRepository
from bookshop.domain.value_objects import BookFilter, BookPage, ListOptions


class CatalogQueryService:
    """
    Read use cases over the book catalog.

    Usage:
        service = CatalogQueryService(repository=sqlite_repo)
        page = service.list_books(ListOptions(top=5, count=True))
        fantasy = service.get_books_by_genre("Fantasy")
    """

    def __init__(
        self,
        repository: BookRepository,
        hooks: Optional[HookChain] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        """
        Args:
            repository: Record Store port
            hooks: Interceptor chain; a new one with the default hooks if omitted
            logger: Logger for this layer; the module logger if omitted
        """
        self._repository = repository
        self._logger = logger or logging.getLogger(__name__)
        self.hooks = hooks or HookChain()
        self._register_default_hooks()

    def _register_default_hooks(self) -> None:
        self.hooks.before("READ", self._log_read_request)
        self.hooks.after("READ", self._log_read_result)

    def _log_read_request(self, request: OperationRequest) -> None:
        self._logger.info("Reading books with query: %s", request.data)

    def _log_read_result(self, result, request: OperationRequest) -> None:
        returned = len(result) if isinstance(result, BookPage) else 1
        self._logger.info("Returned %d book(s)", returned)

    def list_books(self, options: Optional[ListOptions] = None, user: str = ANONYMOUS) -> BookPage:
        """
        List books matching ``options``.

        Returns:
            BookPage with the requested window, plus the total count of
            matches when ``options.count`` is set

        Raises:
            OperationError: If the store fails
        """
        options = options or ListOptions()
        request = OperationRequest(
            event="READ",
            data={
                "filter": options.filter,
                "order_by": options.order_by,
                "top": options.top,
                "skip": options.skip,
                "search": options.search,
                "count": options.count,
            },
            user=user,
        )
        return self.hooks.run("READ", request, lambda _: self._list(options))

    def _list(self, options: ListOptions) -> BookPage:
        try:
            books = list(
                self._repository.query(
                    options.filter,
                    order_by=options.order_by,
                    offset=options.skip,
                    limit=options.top,
                    search=options.search,
                )
            )
            total = (
                self._repository.count(options.filter, search=options.search)
                if options.count
                else None
            )
        except StoreError as e:
            self._logger.exception("Error reading books: %s", e)
            raise OperationError("Failed to read books") from e

        return BookPage(books=books, count=total)

    def get_book(self, book_id: UUID, user: str = ANONYMOUS) -> Book:
        """
        Fetch one book by id.

        Raises:
            NotFound: If no book has this id
            OperationError: If the store fails
        """
        request = OperationRequest(event="READ", data={"id": book_id}, user=user)
        return self.hooks.run("READ", request, lambda _: self._get(book_id))

    def _get(self, book_id: UUID) -> Book:
        try:
            book = self._repository.get_by_id(book_id)
        except StoreError as e:
            self._logger.exception("Error reading book %s: %s", book_id, e)
            raise OperationError("Failed to read book") from e

        if book is None:
            raise NotFound(book_id)
        return book

    def get_books_by_genre(self, genre: Optional[str], user: str = ANONYMOUS) -> List[Book]:
        """
        All books whose genre equals ``genre`` exactly (case-sensitive).

        An unknown or missing genre yields an empty list, not an error.
        A missing genre does not match books whose genre is unset.

        Raises:
            OperationError: If the store fails
        """
        request = OperationRequest(event="getBooksByGenre", data={"genre": genre}, user=user)
        return self.hooks.run("getBooksByGenre", request, lambda _: self._by_genre(genre))

    def _by_genre(self, genre: Optional[str]) -> List[Book]:
        self._logger.info("Fetching books by genre: %s", genre)
        if genre is None:
            return []
        try:
            books = list(self._repository.query(BookFilter.where(genre=genre)))
        except StoreError as e:
            self._logger.exception("Error fetching books by genre: %s", e)
            raise OperationError("Failed to fetch books") from e

        self._logger.info("Found %d books in genre: %s", len(books), genre)
        return books
