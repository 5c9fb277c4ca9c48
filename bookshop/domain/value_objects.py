"""
Value objects for the domain layer.

Value objects are immutable descriptions of a read request: which books
(filter, search), in which order, which window (skip/top), which fields.
"""

from dataclasses import dataclass, field, fields as dc_fields
from typing import Any, List, Optional, Tuple

from .entities import Book, TEXT_FIELDS
from .errors import ValidationError

BOOK_FIELDS = tuple(f.name for f in dc_fields(Book))
"""Every field a filter, sort key or projection may name"""

COMPARISON_OPERATORS = ("eq", "ne", "gt", "ge", "lt", "le")
OPERATORS = COMPARISON_OPERATORS + ("contains",)


@dataclass(frozen=True)
class Predicate:
    """
    A single condition on one book field, e.g. ``genre eq 'Fantasy'``.

    ``contains`` is a case-sensitive substring test and only applies to
    text fields. ``eq``/``ne`` against None test for null.
    """

    field: str
    op: str
    value: Any

    def __post_init__(self) -> None:
        if self.field not in BOOK_FIELDS:
            raise ValidationError(f"Unknown field '{self.field}' in filter", field=self.field)

        if self.op not in OPERATORS:
            raise ValidationError(f"Unsupported filter operator '{self.op}'", field=self.field)

        if self.op == "contains":
            if self.field not in TEXT_FIELDS:
                raise ValidationError(
                    f"contains() is only supported on text fields, not '{self.field}'",
                    field=self.field,
                )
            if not isinstance(self.value, str):
                raise ValidationError("contains() expects a string literal", field=self.field)

        if self.value is None and self.op not in ("eq", "ne"):
            raise ValidationError(
                f"null can only be compared with eq or ne, not '{self.op}'", field=self.field
            )


@dataclass(frozen=True)
class BookFilter:
    """
    Conjunction of predicates. An empty filter matches every book.
    """

    predicates: Tuple[Predicate, ...] = ()

    def is_empty(self) -> bool:
        return not self.predicates

    def and_(self, other: "BookFilter") -> "BookFilter":
        return BookFilter(self.predicates + other.predicates)

    @classmethod
    def where(cls, **equalities: Any) -> "BookFilter":
        """Shorthand for a filter of ``eq`` predicates."""
        return cls(tuple(Predicate(name, "eq", value) for name, value in equalities.items()))


@dataclass(frozen=True)
class SortKey:
    """Order results by ``field``, ascending unless ``descending``."""

    field: str
    descending: bool = False

    def __post_init__(self) -> None:
        if self.field not in BOOK_FIELDS:
            raise ValidationError(f"Unknown field '{self.field}' in orderby", field=self.field)


@dataclass(frozen=True)
class ListOptions:
    """
    Options for listing books.

    Results are ordered by ``order_by`` then by id ascending, which keeps
    ``skip``/``top`` windows stable between calls.
    """

    select: Optional[Tuple[str, ...]] = None
    """Fields to project; None means all fields. ``id`` is always kept."""

    filter: BookFilter = field(default_factory=BookFilter)

    order_by: Tuple[SortKey, ...] = ()

    top: Optional[int] = None
    """Maximum number of books to return"""

    skip: int = 0
    """Number of matching books to skip"""

    search: Optional[str] = None
    """Case-insensitive substring matched against the text fields"""

    count: bool = False
    """Whether to compute the total number of matches"""

    def __post_init__(self) -> None:
        if self.top is not None and self.top < 0:
            raise ValidationError(f"top must be >= 0, got {self.top}", field="$top")

        if self.skip < 0:
            raise ValidationError(f"skip must be >= 0, got {self.skip}", field="$skip")

        if self.select is not None:
            for name in self.select:
                if name not in BOOK_FIELDS:
                    raise ValidationError(f"Unknown field '{name}' in select", field=name)


@dataclass(frozen=True)
class BookPage:
    """A window of books plus the optional total count of matches."""

    books: List[Book]
    count: Optional[int] = None

    def __len__(self) -> int:
        return len(self.books)
