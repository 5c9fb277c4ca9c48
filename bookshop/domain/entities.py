"""
Domain entities for the bookshop catalog.

Book is the only entity. It carries its own schema constraints (required
title, length limits, price precision) so every write path enforces them,
whatever adapter sits behind the repository port.
"""

from dataclasses import dataclass, field, fields, replace
from datetime import date, datetime, UTC
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Mapping, Optional
from uuid import UUID

from .errors import ValidationError
from .utils.uuid7 import uuid7

ANONYMOUS = "anonymous"
"""Actor recorded in the audit fields when the caller is not identified"""

MAX_LENGTHS: Dict[str, int] = {
    "title": 100,
    "author": 100,
    "genre": 50,
    "description": 500,
}

TEXT_FIELDS = ("title", "author", "genre", "description")
"""Fields covered by free-text search"""

AUDIT_FIELDS = ("created_at", "created_by", "modified_at", "modified_by")

WRITABLE_FIELDS = (
    "title",
    "author",
    "genre",
    "price",
    "stock",
    "description",
    "published_at",
)
"""Fields a caller may set on create or update"""

PRICE_QUANTUM = Decimal("0.01")
PRICE_MAX_INTEGER_DIGITS = 7
"""Decimal(9, 2): seven digits before the point, two after"""

STOCK_MIN = -(2**31)
STOCK_MAX = 2**31 - 1


def _utcnow() -> datetime:
    return datetime.now(UTC)


def normalize_price(value: Any) -> Optional[Decimal]:
    """
    Coerce a price to a Decimal with exactly two fractional digits.

    Floats go through ``str`` first so that 15.5 becomes Decimal("15.50")
    rather than its binary expansion.

    Raises:
        ValidationError: If the value is not numeric, has more than two
            fractional digits or more than seven integer digits.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValidationError("price must be a decimal number", field="price")
    try:
        price = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValidationError(f"price must be a decimal number, got '{value}'", field="price") from e

    if not price.is_finite():
        raise ValidationError("price must be a finite number", field="price")
    if price.as_tuple().exponent < -2:
        raise ValidationError(
            f"price allows at most 2 fractional digits, got '{value}'", field="price"
        )
    if price.adjusted() >= PRICE_MAX_INTEGER_DIGITS:
        raise ValidationError(
            f"price allows at most {PRICE_MAX_INTEGER_DIGITS} integer digits, got '{value}'",
            field="price",
        )
    try:
        return price.quantize(PRICE_QUANTUM)
    except InvalidOperation as e:
        raise ValidationError(f"price is out of range, got '{value}'", field="price") from e


@dataclass
class Book:
    """
    Represents a book in the catalog.

    Identity is the server-assigned ``id``. Audit fields are maintained by
    the factory methods below and are never taken from caller input.
    """

    id: UUID
    """Unique identifier, assigned once at creation"""

    title: str
    """Book title (required, max 100 chars)"""

    author: Optional[str] = None
    """Author name (max 100 chars)"""

    genre: Optional[str] = None
    """Genre label, matched case-sensitively (max 50 chars)"""

    price: Optional[Decimal] = None
    """Price with two fractional digits"""

    stock: int = 0
    """Units in stock"""

    description: Optional[str] = None
    """Free text description (max 500 chars)"""

    published_at: Optional[date] = None
    """Publication date"""

    created_at: datetime = field(default_factory=_utcnow)
    created_by: str = ANONYMOUS
    modified_at: datetime = field(default_factory=_utcnow)
    modified_by: str = ANONYMOUS

    def __post_init__(self) -> None:
        """Enforce schema-level constraints."""
        if self.title is None:
            raise ValidationError("title is required", field="title")

        for name, limit in MAX_LENGTHS.items():
            value = getattr(self, name)
            if value is None:
                continue
            if not isinstance(value, str):
                raise ValidationError(f"{name} must be a string", field=name)
            if len(value) > limit:
                raise ValidationError(
                    f"{name} exceeds maximum length of {limit} characters", field=name
                )

        self.price = normalize_price(self.price)

        if self.stock is None:
            self.stock = 0
        if isinstance(self.stock, bool) or not isinstance(self.stock, int):
            raise ValidationError(f"stock must be an integer, got '{self.stock}'", field="stock")
        if not STOCK_MIN <= self.stock <= STOCK_MAX:
            raise ValidationError(
                f"stock must be between {STOCK_MIN} and {STOCK_MAX}, got {self.stock}",
                field="stock",
            )

        if isinstance(self.published_at, datetime):
            self.published_at = self.published_at.date()

    def __eq__(self, other: object) -> bool:
        """Two books are equal if they have the same ID."""
        if not isinstance(other, Book):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def to_dict(self) -> Dict[str, Any]:
        """Plain field mapping, in declaration order."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def with_changes(self, changes: Mapping[str, Any], user: str = ANONYMOUS) -> "Book":
        """
        Return a copy with ``changes`` applied and the modification audit
        fields refreshed. Only WRITABLE_FIELDS may change.

        Raises:
            ValidationError: On unknown/read-only fields or violated constraints.
        """
        for name in changes:
            if name not in WRITABLE_FIELDS:
                raise ValidationError(f"Field '{name}' cannot be modified", field=name)

        return replace(self, **changes, modified_at=_utcnow(), modified_by=user)

    @staticmethod
    def create_new(title: str, user: str = ANONYMOUS, **kwargs: Any) -> "Book":
        """
        Factory method to create a new book with a generated UUIDv7 id and
        fresh audit metadata.

        Args:
            title: Book title
            user: Actor recorded in createdBy/modifiedBy
            **kwargs: Any of the other WRITABLE_FIELDS

        Raises:
            ValidationError: On unknown fields or violated constraints.
        """
        for name in kwargs:
            if name not in WRITABLE_FIELDS:
                raise ValidationError(f"Unknown or read-only field '{name}'", field=name)

        now = _utcnow()
        return Book(
            id=uuid7(),
            title=title,
            created_at=now,
            created_by=user,
            modified_at=now,
            modified_by=user,
            **kwargs,
        )
