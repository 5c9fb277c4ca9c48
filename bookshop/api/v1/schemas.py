"""
API schemas for the bookshop service.

External names are camelCase (``publishedAt``, ``createdBy``); snake_case
names are accepted on input too. Prices travel as JSON numbers.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel

Price = Annotated[
    Decimal,
    PlainSerializer(lambda v: float(v), return_type=float, when_used="json"),
]


class _ApiModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class Book(_ApiModel):
    """
    API representation of a Book entity.
    """

    id: UUID = Field(description="Server-assigned unique identifier")
    title: str = Field(description="Book title")
    author: Optional[str] = Field(default=None, description="Author name")
    genre: Optional[str] = Field(default=None, description="Genre (case-sensitive)")
    price: Optional[Price] = Field(default=None, description="Price, two fractional digits")
    stock: int = Field(default=0, description="Units in stock")
    description: Optional[str] = Field(default=None, description="Free text description")
    published_at: Optional[date] = Field(default=None, description="Publication date")
    created_at: datetime = Field(description="When the book was created")
    created_by: str = Field(description="Who created the book")
    modified_at: datetime = Field(description="When the book was last modified")
    modified_by: str = Field(description="Who last modified the book")


# request body of POST /Books
class BookCreate(_ApiModel):
    """
    Body of the generic create. Only schema constraints apply; ``id`` and
    audit fields sent by the caller are ignored.
    """

    title: str = Field(max_length=100)
    author: Optional[str] = Field(default=None, max_length=100)
    genre: Optional[str] = Field(default=None, max_length=50)
    price: Optional[Decimal] = None
    stock: Optional[int] = None
    description: Optional[str] = Field(default=None, max_length=500)
    published_at: Optional[date] = None


# request body of PATCH /Books(id)
class BookUpdate(_ApiModel):
    """Partial update; only the fields present in the body are changed."""

    title: Optional[str] = Field(default=None, max_length=100)
    author: Optional[str] = Field(default=None, max_length=100)
    genre: Optional[str] = Field(default=None, max_length=50)
    price: Optional[Decimal] = None
    stock: Optional[int] = None
    description: Optional[str] = Field(default=None, max_length=500)
    published_at: Optional[date] = None


# request body of POST /createBook
class CreateBookRequest(_ApiModel):
    """
    Parameters of the validated create action.

    ``title`` is optional at this level so that a missing title is reported
    by the action's own validation with the same message as an empty one.
    """

    title: Optional[str] = None
    author: Optional[str] = None
    genre: Optional[str] = None
    price: Optional[Decimal] = None
    stock: Optional[int] = None


# request body of POST /getBooksByGenre
class GenreRequest(_ApiModel):
    genre: Optional[str] = None


class ErrorDetail(BaseModel):
    code: str = Field(description="HTTP status code as a string")
    message: str = Field(description="Human-readable description")
    target: Optional[str] = Field(default=None, description="Offending field, if any")


class ErrorResponse(BaseModel):
    """Body of every non-2xx response."""

    error: ErrorDetail
