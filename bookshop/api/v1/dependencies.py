"""
FastAPI dependencies for dependency injection.

The application factory builds one ``ServiceContainer`` per app and stores
it on ``app.state``; these providers hand its parts to the endpoints. No
module-level singletons, so several apps (e.g. one per test) can coexist.
"""

import logging
from dataclasses import dataclass

from fastapi import Header, Request

from bookshop.config import Settings
from bookshop.domain.entities import ANONYMOUS
from bookshop.domain.ports import BookRepository
from bookshop.domain.services import CatalogCommandService, CatalogQueryService
from bookshop.infrastructure.db import SqliteBookRepository


@dataclass
class ServiceContainer:
    """Everything the endpoints need, wired once at startup."""

    settings: Settings
    repository: BookRepository
    queries: CatalogQueryService
    commands: CatalogCommandService


def build_container(settings: Settings) -> ServiceContainer:
    """Wire repository and services from resolved settings."""
    repository = SqliteBookRepository(
        settings.db_path,
        timeout=settings.db_timeout,
        logger=logging.getLogger("bookshop.store"),
    )
    return ServiceContainer(
        settings=settings,
        repository=repository,
        queries=CatalogQueryService(repository, logger=logging.getLogger("bookshop.service")),
        commands=CatalogCommandService(repository, logger=logging.getLogger("bookshop.service")),
    )


def get_container(request: Request) -> ServiceContainer:
    """Provide the container of the running application."""
    return request.app.state.container


def get_query_service(request: Request) -> CatalogQueryService:
    """Provide the Query Layer."""
    return get_container(request).queries


def get_command_service(request: Request) -> CatalogCommandService:
    """Provide the Command Layer."""
    return get_container(request).commands


def get_user(x_user: str | None = Header(default=None)) -> str:
    """
    Caller identity for the audit fields.

    Authentication happens in front of the service; a trusted proxy may
    forward the authenticated user in ``X-User``.
    """
    if x_user is None or not x_user.strip():
        return ANONYMOUS
    return x_user.strip()
