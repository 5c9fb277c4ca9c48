"""
Shared fakes for the domain service tests.
"""

import operator
from typing import Dict, Iterator, Optional, Sequence
from uuid import UUID

import pytest

from bookshop.domain.entities import Book, TEXT_FIELDS
from bookshop.domain.errors import StoreError
from bookshop.domain.value_objects import BookFilter, SortKey

_OPS = {
    "eq": operator.eq,
    "ne": operator.ne,
    "gt": operator.gt,
    "ge": operator.ge,
    "lt": operator.lt,
    "le": operator.le,
}


class FakeBookRepository:
    """In-memory BookRepository with switchable failures."""

    def __init__(self) -> None:
        self.books: Dict[UUID, Book] = {}
        self.fail_reads = False
        self.fail_writes = False
        self.insert_calls = 0

    def _check(self, failing: bool) -> None:
        if failing:
            raise StoreError("disk on fire")

    def _matches(self, book: Book, book_filter: Optional[BookFilter], search: Optional[str]) -> bool:
        if book_filter is not None:
            for p in book_filter.predicates:
                value = getattr(book, p.field)
                if p.op == "contains":
                    if value is None or p.value not in value:
                        return False
                elif value is None or not _OPS[p.op](value, p.value):
                    if not (value is None and p.value is None and p.op == "eq"):
                        return False
        if search:
            needle = search.lower()
            if not any(needle in (getattr(book, f) or "").lower() for f in TEXT_FIELDS):
                return False
        return True

    def insert(self, book: Book) -> UUID:
        self.insert_calls += 1
        self._check(self.fail_writes)
        self.books[book.id] = book
        return book.id

    def get_by_id(self, book_id: UUID) -> Optional[Book]:
        self._check(self.fail_reads)
        return self.books.get(book_id)

    def query(
        self,
        book_filter: Optional[BookFilter] = None,
        order_by: Sequence[SortKey] = (),
        offset: int = 0,
        limit: Optional[int] = None,
        search: Optional[str] = None,
    ) -> Iterator[Book]:
        self._check(self.fail_reads)
        rows = sorted(
            (b for b in self.books.values() if self._matches(b, book_filter, search)),
            key=lambda b: str(b.id),
        )
        for key in reversed(order_by):
            rows.sort(key=lambda b: getattr(b, key.field), reverse=key.descending)
        end = None if limit is None else offset + limit
        return iter(rows[offset:end])

    def count(self, book_filter: Optional[BookFilter] = None, search: Optional[str] = None) -> int:
        self._check(self.fail_reads)
        return sum(1 for b in self.books.values() if self._matches(b, book_filter, search))

    def update(self, book: Book) -> bool:
        self._check(self.fail_writes)
        if book.id not in self.books:
            return False
        self.books[book.id] = book
        return True

    def delete(self, book_id: UUID) -> bool:
        self._check(self.fail_writes)
        return self.books.pop(book_id, None) is not None


@pytest.fixture
def fake_repo():
    return FakeBookRepository()
