"""
Tests for the Book entity and its schema constraints.
"""

import pytest
from datetime import date, datetime, UTC
from decimal import Decimal
from uuid import UUID

from bookshop.domain.entities import ANONYMOUS, Book, normalize_price
from bookshop.domain.errors import ValidationError
from bookshop.domain.utils.uuid7 import uuid7


class TestBook:
    """Tests for the Book entity."""

    def test_create_book_with_minimum_data(self):
        """Only title and id are required."""
        book_id = uuid7()
        book = Book(id=book_id, title="Clean Code")

        assert book.id == book_id
        assert book.title == "Clean Code"
        assert book.author is None
        assert book.genre is None
        assert book.price is None
        assert book.stock == 0
        assert book.created_by == ANONYMOUS

    def test_create_new_assigns_id_and_audit_fields(self):
        """Factory sets a UUIDv7 id and identical create/modify audit data."""
        before = datetime.now(UTC)
        book = Book.create_new(title="Dune", user="alice", author="Frank Herbert")

        assert isinstance(book.id, UUID)
        assert book.id.version == 7
        assert book.created_at >= before
        assert book.created_at == book.modified_at
        assert book.created_by == "alice"
        assert book.modified_by == "alice"

    def test_create_new_rejects_audit_fields(self):
        """Callers cannot set audit metadata through the factory."""
        with pytest.raises(ValidationError) as exc_info:
            Book.create_new(title="Dune", created_by="mallory")

        assert exc_info.value.field == "created_by"

    def test_title_is_required(self):
        """A null title violates the schema."""
        with pytest.raises(ValidationError, match="title is required"):
            Book(id=uuid7(), title=None)

    def test_empty_title_passes_schema_constraints(self):
        """An empty title is only rejected by the createBook business rule."""
        book = Book(id=uuid7(), title="")
        assert book.title == ""

    @pytest.mark.parametrize(
        "field_name, limit",
        [("title", 100), ("author", 100), ("genre", 50), ("description", 500)],
    )
    def test_length_limits(self, field_name, limit):
        """Text fields are capped at their declared length."""
        kwargs = {"title": "T", field_name: "x" * limit}
        assert getattr(Book(id=uuid7(), **kwargs), field_name) == "x" * limit

        kwargs[field_name] = "x" * (limit + 1)
        with pytest.raises(ValidationError, match="maximum length") as exc_info:
            Book(id=uuid7(), **kwargs)
        assert exc_info.value.field == field_name

    def test_stock_must_be_integer(self):
        with pytest.raises(ValidationError, match="stock must be an integer"):
            Book(id=uuid7(), title="T", stock="many")

    def test_stock_must_fit_the_integer_column(self):
        assert Book(id=uuid7(), title="T", stock=2**31 - 1).stock == 2**31 - 1

        with pytest.raises(ValidationError, match="stock must be between") as exc_info:
            Book(id=uuid7(), title="T", stock=2**70)
        assert exc_info.value.field == "stock"

    def test_stock_none_defaults_to_zero(self):
        assert Book(id=uuid7(), title="T", stock=None).stock == 0

    def test_published_at_datetime_is_truncated_to_date(self):
        book = Book(id=uuid7(), title="T", published_at=datetime(2020, 5, 15, 10, 30))
        assert book.published_at == date(2020, 5, 15)

    def test_book_equality_is_by_id(self):
        """Books with the same id are equal whatever their fields."""
        book_id = uuid7()
        assert Book(id=book_id, title="A") == Book(id=book_id, title="B")
        assert Book(id=uuid7(), title="A") != Book(id=uuid7(), title="A")

    def test_with_changes_refreshes_modification_audit(self):
        """Updates keep creation data and stamp the modifier."""
        book = Book.create_new(title="Dune", user="alice")
        updated = book.with_changes({"stock": 3}, user="bob")

        assert updated.id == book.id
        assert updated.stock == 3
        assert updated.created_by == "alice"
        assert updated.created_at == book.created_at
        assert updated.modified_by == "bob"
        assert updated.modified_at >= book.modified_at

    def test_with_changes_rejects_read_only_fields(self):
        book = Book.create_new(title="Dune")
        with pytest.raises(ValidationError, match="cannot be modified"):
            book.with_changes({"id": uuid7()})

    def test_with_changes_revalidates(self):
        book = Book.create_new(title="Dune")
        with pytest.raises(ValidationError, match="title is required"):
            book.with_changes({"title": None})


class TestNormalizePrice:
    """Tests for price precision handling."""

    def test_float_is_converted_through_string(self):
        assert normalize_price(15.5) == Decimal("15.50")
        assert str(normalize_price(15.5)) == "15.50"

    def test_integer_price_gets_two_digits(self):
        assert str(normalize_price(20)) == "20.00"

    def test_none_stays_none(self):
        assert normalize_price(None) is None

    def test_more_than_two_fractional_digits_is_rejected(self):
        with pytest.raises(ValidationError, match="at most 2 fractional digits"):
            normalize_price(Decimal("1.999"))

    def test_non_numeric_is_rejected(self):
        with pytest.raises(ValidationError, match="decimal number"):
            normalize_price("cheap")

    def test_negative_price_is_allowed(self):
        """Non-negative prices are expected but not enforced."""
        assert normalize_price("-1.00") == Decimal("-1.00")

    def test_seven_integer_digits_is_the_maximum(self):
        assert normalize_price("9999999.99") == Decimal("9999999.99")

    @pytest.mark.parametrize("value", ["10000000", 1e20, 1e30, Decimal("1E+40")])
    def test_too_many_integer_digits_is_rejected(self, value):
        with pytest.raises(ValidationError, match="at most 7 integer digits") as exc_info:
            normalize_price(value)
        assert exc_info.value.field == "price"
