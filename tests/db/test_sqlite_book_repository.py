"""
Tests for SqliteBookRepository.

Validates the SQLite implementation of the BookRepository protocol,
including CRUD operations, query building, constraint handling and
serialization.

Test Pattern: AAA (Arrange-Act-Assert)
"""

import sqlite3
from datetime import date
from decimal import Decimal
from types import GeneratorType

import pytest

from bookshop.domain.entities import Book
from bookshop.domain.errors import StoreError, ValidationError
from bookshop.domain.utils.uuid7 import uuid7
from bookshop.domain.value_objects import BookFilter, Predicate, SortKey
from bookshop.infrastructure.db import SqliteBookRepository


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def repo(tmp_path):
    """Repository over a fresh temporary database for each test."""
    return SqliteBookRepository(tmp_path / "test_bookshop.db")


@pytest.fixture
def sample_book():
    """A fully populated book, useful for serialization tests."""
    return Book.create_new(
        title="Dune",
        user="alice",
        author="Frank Herbert",
        genre="Sci-Fi",
        price=Decimal("15.50"),
        stock=20,
        description="Desert planet politics and spice.",
        published_at=date(1965, 8, 1),
    )


@pytest.fixture
def catalog(repo):
    """Repository holding a small mixed catalog."""
    rows = [
        ("The Hobbit", "J.R.R. Tolkien", "Fantasy", "12.99", 35),
        ("Dune", "Frank Herbert", "Sci-Fi", "15.50", 20),
        ("Earthsea", "Ursula K. Le Guin", "Fantasy", "9.99", 2),
        ("Emma", "Jane Austen", "Classic", None, 9),
        ("Neuromancer", "William Gibson", "Sci-Fi", "9.99", 7),
    ]
    for title, author, genre, price, stock in rows:
        repo.insert(Book.create_new(title=title, author=author, genre=genre, price=price, stock=stock))
    return repo


def titles(books):
    return [b.title for b in books]


# ============================================================================
# INITIALIZATION TESTS
# ============================================================================

class TestRepositoryInitialization:

    def test_creates_table_on_init(self, repo):
        """New repository should be empty but functional."""
        assert repo.count() == 0

    def test_creates_parent_directories(self, tmp_path):
        SqliteBookRepository(tmp_path / "nested" / "dir" / "books.db").count()
        assert (tmp_path / "nested" / "dir" / "books.db").exists()

    def test_reopening_keeps_data(self, tmp_path, sample_book):
        SqliteBookRepository(tmp_path / "books.db").insert(sample_book)

        reopened = SqliteBookRepository(tmp_path / "books.db")

        assert reopened.count() == 1


# ============================================================================
# INSERT / GET TESTS
# ============================================================================

class TestInsertAndGet:

    def test_insert_returns_id_and_increments_count(self, repo, sample_book):
        assert repo.insert(sample_book) == sample_book.id
        assert repo.count() == 1

    def test_round_trip_preserves_all_fields(self, repo, sample_book):
        repo.insert(sample_book)

        retrieved = repo.get_by_id(sample_book.id)

        assert retrieved is not None
        assert retrieved.to_dict() == sample_book.to_dict()
        assert str(retrieved.price) == "15.50"

    def test_optional_fields_round_trip_as_none(self, repo):
        book = Book.create_new(title="Bare")
        repo.insert(book)

        retrieved = repo.get_by_id(book.id)

        assert retrieved.price is None
        assert retrieved.published_at is None
        assert retrieved.stock == 0

    def test_get_unknown_returns_none(self, repo):
        assert repo.get_by_id(uuid7()) is None

    def test_duplicate_id_is_rejected_and_not_written(self, repo, sample_book):
        repo.insert(sample_book)

        with pytest.raises(ValidationError, match="constraints"):
            repo.insert(sample_book)

        assert repo.count() == 1

    def test_table_enforces_length_limits(self, repo, tmp_path):
        """Rows written around the entity are still held to the schema."""
        with sqlite3.connect(tmp_path / "test_bookshop.db") as conn:
            with pytest.raises(sqlite3.IntegrityError):
                conn.execute(
                    "INSERT INTO books (id, title, created_at, created_by, modified_at, modified_by)"
                    " VALUES ('x', ?, 'now', 'a', 'now', 'a')",
                    ("t" * 101,),
                )

    def test_unusable_database_raises_store_error(self, tmp_path):
        db_dir = tmp_path / "is_a_directory.db"
        db_dir.mkdir()

        with pytest.raises(StoreError):
            SqliteBookRepository(db_dir)


# ============================================================================
# QUERY TESTS
# ============================================================================

class TestQuery:

    def test_returns_iterator(self, catalog):
        assert isinstance(catalog.query(), GeneratorType)

    def test_no_filter_returns_everything_in_id_order(self, catalog):
        books = list(catalog.query())

        assert len(books) == 5
        assert [b.id for b in books] == sorted(b.id for b in books)

    def test_equality_is_case_sensitive(self, catalog):
        assert titles(catalog.query(BookFilter.where(genre="Fantasy"))) == ["The Hobbit", "Earthsea"]
        assert list(catalog.query(BookFilter.where(genre="fantasy"))) == []

    def test_price_comparison_uses_exact_cents(self, catalog):
        cheap = catalog.query(BookFilter((Predicate("price", "le", Decimal("9.99")),)))
        assert sorted(titles(cheap)) == ["Earthsea", "Neuromancer"]

        pricier = catalog.query(BookFilter((Predicate("price", "gt", 10),)))
        assert sorted(titles(pricier)) == ["Dune", "The Hobbit"]

    def test_conjunction(self, catalog):
        book_filter = BookFilter((
            Predicate("genre", "eq", "Sci-Fi"),
            Predicate("stock", "ge", 10),
        ))
        assert titles(catalog.query(book_filter)) == ["Dune"]

    def test_contains_is_case_sensitive_substring(self, catalog):
        assert titles(catalog.query(BookFilter((Predicate("title", "contains", "ea"),)))) == ["Earthsea"]
        assert list(catalog.query(BookFilter((Predicate("title", "contains", "EA"),)))) == []

    def test_null_comparison(self, catalog):
        assert titles(catalog.query(BookFilter.where(price=None))) == ["Emma"]
        assert len(list(catalog.query(BookFilter((Predicate("price", "ne", None),))))) == 4

    def test_search_is_case_insensitive_over_text_fields(self, catalog):
        assert titles(catalog.query(search="tolkien")) == ["The Hobbit"]
        assert sorted(titles(catalog.query(search="SCI"))) == ["Dune", "Neuromancer"]

    def test_search_escapes_like_wildcards(self, catalog):
        assert list(catalog.query(search="%")) == []

    def test_order_by_with_id_tie_breaker(self, catalog):
        books = list(catalog.query(order_by=[SortKey("price", descending=True)]))

        assert titles(books)[:2] == ["Dune", "The Hobbit"]
        tied = [b for b in books if b.price == Decimal("9.99")]
        assert [b.id for b in tied] == sorted(b.id for b in tied)

    def test_multi_field_order(self, catalog):
        books = catalog.query(order_by=[SortKey("genre"), SortKey("stock", descending=True)])
        assert titles(books) == ["Emma", "The Hobbit", "Earthsea", "Dune", "Neuromancer"]

    def test_limit_and_offset_partition(self, repo):
        for i in range(10):
            repo.insert(Book.create_new(title=f"Book {i}"))

        first = list(repo.query(limit=5))
        second = list(repo.query(offset=5, limit=5))

        assert len(first) == 5
        assert len(second) == 5
        assert {b.id for b in first}.isdisjoint({b.id for b in second})
        assert first + second == list(repo.query())

    def test_offset_without_limit(self, catalog):
        assert len(list(catalog.query(offset=3))) == 2

    def test_no_match_returns_empty(self, catalog):
        assert list(catalog.query(BookFilter.where(genre="Horror"))) == []

    def test_price_literal_finer_than_cents_is_compared_exactly(self, catalog):
        below = catalog.query(BookFilter((Predicate("price", "lt", Decimal("9.995")),)))
        assert sorted(titles(below)) == ["Earthsea", "Neuromancer"]

        assert list(catalog.query(BookFilter((Predicate("price", "eq", Decimal("9.991")),)))) == []

    def test_literals_beyond_integer_range(self, catalog):
        assert len(list(catalog.query(BookFilter((Predicate("stock", "lt", 2**70),))))) == 5
        assert list(catalog.query(BookFilter((Predicate("price", "gt", 10**30),)))) == []

    def test_window_beyond_integer_range_is_store_error(self, catalog):
        with pytest.raises(StoreError):
            list(catalog.query(limit=2**70))

    def test_count_with_filter_and_search(self, catalog):
        assert catalog.count(BookFilter.where(genre="Sci-Fi")) == 2
        assert catalog.count(search="austen") == 1


# ============================================================================
# UPDATE / DELETE TESTS
# ============================================================================

class TestUpdateAndDelete:

    def test_update_overwrites_fields(self, repo, sample_book):
        repo.insert(sample_book)
        changed = sample_book.with_changes({"stock": 0, "price": Decimal("1.00")}, user="bob")

        assert repo.update(changed) is True

        stored = repo.get_by_id(sample_book.id)
        assert stored.stock == 0
        assert stored.price == Decimal("1.00")
        assert stored.modified_by == "bob"
        assert stored.created_by == "alice"

    def test_update_unknown_returns_false(self, repo, sample_book):
        assert repo.update(sample_book) is False

    def test_delete_existing_returns_true(self, repo, sample_book):
        repo.insert(sample_book)

        assert repo.delete(sample_book.id) is True
        assert repo.get_by_id(sample_book.id) is None

    def test_delete_unknown_returns_false(self, repo):
        assert repo.delete(uuid7()) is False
