"""
API endpoints of the bookshop catalog service.

This module defines the FastAPI routes mounted under the service path
(``/bookshop`` by default). It handles HTTP concerns only and delegates to
the Query and Command layers; domain errors are turned into responses by
the exception handlers registered in ``bookshop.main``.
"""

from typing import Any, Dict, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from bookshop.domain.entities import MAX_LENGTHS
from bookshop.domain.errors import ValidationError
from bookshop.domain.services import CatalogCommandService, CatalogQueryService
from bookshop.domain.value_objects import BOOK_FIELDS
from bookshop.api.v1 import schemas as api
from bookshop.api.v1.converters import (
    api_create_to_domain,
    api_update_to_domain,
    book_page_to_api,
    books_to_api,
    domain_book_to_api,
    EXTERNAL_FIELDS,
)
from bookshop.api.v1.dependencies import get_command_service, get_query_service, get_user
from bookshop.api.v1.query_options import build_list_options

router = APIRouter()

_ERROR_RESPONSES: Dict[int | str, Dict[str, Any]] = {
    400: {"model": api.ErrorResponse, "description": "Validation failure"},
    500: {"model": api.ErrorResponse, "description": "Internal failure"},
}
_NOT_FOUND = {404: {"model": api.ErrorResponse, "description": "Book not found"}}

_EDM_TYPES = {
    "id": "Edm.Guid",
    "price": "Edm.Decimal",
    "stock": "Edm.Int32",
    "published_at": "Edm.Date",
    "created_at": "Edm.DateTimeOffset",
    "modified_at": "Edm.DateTimeOffset",
}


def parse_book_key(key: str) -> UUID:
    """
    Parse the key segment of ``/Books(<key>)``.

    Accepts ``<uuid>``, ``'<uuid>'`` and ``ID=<uuid>``.

    Raises:
        ValidationError: If the key is not a UUID
    """
    raw = key.strip()
    if raw.upper().startswith("ID="):
        raw = raw[3:].strip()
    raw = raw.strip("'")
    try:
        return UUID(raw)
    except ValueError as e:
        raise ValidationError(f"Invalid book key '{key}'", field="id") from e


def build_metadata() -> Dict[str, Any]:
    """Describe the entity set and the two actions (CSDL JSON flavour)."""
    domain_to_external = {domain: external for external, domain in EXTERNAL_FIELDS.items() if external != "ID"}

    properties: Dict[str, Any] = {}
    for name in BOOK_FIELDS:
        prop: Dict[str, Any] = {"$Type": _EDM_TYPES.get(name, "Edm.String")}
        if name in MAX_LENGTHS:
            prop["$MaxLength"] = MAX_LENGTHS[name]
        if name == "price":
            prop["$Precision"] = 9
            prop["$Scale"] = 2
        if name in ("id", "title", "stock", "created_at", "created_by", "modified_at", "modified_by"):
            prop["$Nullable"] = False
        properties[domain_to_external[name]] = prop

    return {
        "$Version": "4.0",
        "$EntityContainer": "BookshopService",
        "BookshopService": {
            "Books": {
                "$Kind": "EntitySet",
                "$Key": ["id"],
                "properties": properties,
            },
            "createBook": {
                "$Kind": "Action",
                "$Parameter": ["title", "author", "genre", "price", "stock"],
                "$ReturnType": "Books",
            },
            "getBooksByGenre": {
                "$Kind": "Action",
                "$Parameter": ["genre"],
                "$ReturnType": "Collection(Books)",
            },
        },
    }


@router.get("/")
def service_document() -> Dict[str, Any]:
    """List the entity sets exposed by the service."""
    return {"value": [{"name": "Books", "url": "Books"}]}


@router.get("/$metadata")
def metadata() -> Dict[str, Any]:
    """Schema description of the service."""
    return build_metadata()


@router.get("/Books", responses=_ERROR_RESPONSES)
def list_books(
    select: Optional[str] = Query(default=None, alias="$select"),
    filter: Optional[str] = Query(default=None, alias="$filter"),
    orderby: Optional[str] = Query(default=None, alias="$orderby"),
    top: Optional[str] = Query(default=None, alias="$top"),
    skip: Optional[str] = Query(default=None, alias="$skip"),
    search: Optional[str] = Query(default=None, alias="$search"),
    count: Optional[str] = Query(default=None, alias="$count"),
    service: CatalogQueryService = Depends(get_query_service),
    user: str = Depends(get_user),
) -> Dict[str, Any]:
    """
    List books.

    Returns:
        ``{"value": [...]}``, with ``@odata.count`` when ``$count=true``
    """
    options = build_list_options(
        select=select,
        filter=filter,
        orderby=orderby,
        top=top,
        skip=skip,
        search=search,
        count=count,
    )
    page = service.list_books(options, user=user)
    return book_page_to_api(page, options.select)


@router.get("/Books({key})", response_model=api.Book, responses={**_ERROR_RESPONSES, **_NOT_FOUND})
def get_book(
    key: str,
    service: CatalogQueryService = Depends(get_query_service),
    user: str = Depends(get_user),
) -> api.Book:
    """
    Get a book by its unique identifier.

    Raises:
        404: Book not found
    """
    return domain_book_to_api(service.get_book(parse_book_key(key), user=user))


@router.post(
    "/Books",
    response_model=api.Book,
    status_code=status.HTTP_201_CREATED,
    responses=_ERROR_RESPONSES,
)
def create_book_entity(
    body: api.BookCreate,
    service: CatalogCommandService = Depends(get_command_service),
    user: str = Depends(get_user),
) -> api.Book:
    """Generic create: schema constraints only."""
    return domain_book_to_api(service.create(api_create_to_domain(body), user=user))


@router.patch("/Books({key})", response_model=api.Book, responses={**_ERROR_RESPONSES, **_NOT_FOUND})
def update_book(
    key: str,
    body: api.BookUpdate,
    service: CatalogCommandService = Depends(get_command_service),
    user: str = Depends(get_user),
) -> api.Book:
    """Partial update of a book."""
    book = service.update(parse_book_key(key), api_update_to_domain(body), user=user)
    return domain_book_to_api(book)


@router.delete(
    "/Books({key})",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={**_ERROR_RESPONSES, **_NOT_FOUND},
)
def delete_book(
    key: str,
    service: CatalogCommandService = Depends(get_command_service),
    user: str = Depends(get_user),
) -> Response:
    """Delete a book."""
    service.delete(parse_book_key(key), user=user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/createBook", response_model=api.Book, responses=_ERROR_RESPONSES)
def create_book(
    body: api.CreateBookRequest,
    service: CatalogCommandService = Depends(get_command_service),
    user: str = Depends(get_user),
) -> api.Book:
    """
    Validated create: the title must be present and non-empty.

    Returns:
        The stored book, including its server-assigned id and audit fields
    """
    book = service.create_book(
        title=body.title,
        author=body.author,
        genre=body.genre,
        price=body.price,
        stock=body.stock,
        user=user,
    )
    return domain_book_to_api(book)


@router.post("/getBooksByGenre", responses=_ERROR_RESPONSES)
def get_books_by_genre(
    body: api.GenreRequest,
    service: CatalogQueryService = Depends(get_query_service),
    user: str = Depends(get_user),
) -> Dict[str, Any]:
    """All books of exactly this genre; unknown genres yield an empty list."""
    return books_to_api(service.get_books_by_genre(body.genre, user=user))
