"""
Converters between domain entities and API schemas.

This module centralizes field-name translation (domain snake_case vs.
external camelCase) and all conversions between the domain layer and the
API layer.
"""

from typing import Any, Dict, List, Optional, Sequence

from pydantic.alias_generators import to_camel

from bookshop.domain import entities as domain
from bookshop.domain.errors import ValidationError
from bookshop.domain.value_objects import BOOK_FIELDS, BookPage
from bookshop.api.v1 import schemas as api

EXTERNAL_FIELDS: Dict[str, str] = {to_camel(name): name for name in BOOK_FIELDS}
EXTERNAL_FIELDS["ID"] = "id"


def external_to_domain_field(name: str, option: str = "request") -> str:
    """
    Map an external field name (``publishedAt``, ``ID``) to its domain name.

    Raises:
        ValidationError: If the name is not a Book field
    """
    try:
        return EXTERNAL_FIELDS[name]
    except KeyError:
        if name in BOOK_FIELDS:
            return name
        raise ValidationError(f"Unknown field '{name}' in {option}", field=name) from None


def domain_book_to_api(book: domain.Book) -> api.Book:
    """
    Convert a domain Book entity to an API Book model.

    Args:
        book: Domain Book entity

    Returns:
        API Book model
    """
    return api.Book(**book.to_dict())


def project(book: domain.Book, select: Optional[Sequence[str]] = None) -> Dict[str, Any]:
    """
    JSON-ready dict of a book, restricted to ``select`` (domain names).

    The id is always included so the caller can address the record.
    """
    include = None
    if select is not None:
        include = {"id", *select}
    return domain_book_to_api(book).model_dump(mode="json", by_alias=True, include=include)


def book_page_to_api(page: BookPage, select: Optional[Sequence[str]] = None) -> Dict[str, Any]:
    """
    Convert a BookPage to the collection envelope ``{"value": [...]}``,
    adding ``@odata.count`` when a total was computed.
    """
    body: Dict[str, Any] = {}
    if page.count is not None:
        body["@odata.count"] = page.count
    body["value"] = [project(book, select) for book in page.books]
    return body


def books_to_api(books: List[domain.Book]) -> Dict[str, Any]:
    """Collection envelope for a plain list of books."""
    return {"value": [project(book) for book in books]}


def api_create_to_domain(body: api.BookCreate) -> Dict[str, Any]:
    """Writable domain fields of a generic create body."""
    return body.model_dump(exclude_none=True)


def api_update_to_domain(body: api.BookUpdate) -> Dict[str, Any]:
    """Only the fields the caller actually sent, explicit nulls included."""
    return body.model_dump(exclude_unset=True)
