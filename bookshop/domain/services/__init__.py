"""
Domain services package.

Services orchestrate the catalog use cases. They depend only on domain
entities, value objects and port protocols, never on concrete adapters.
"""

from .catalog_command_service import CatalogCommandService, require_title
from .catalog_query_service import CatalogQueryService

__all__ = [
    "CatalogCommandService",
    "CatalogQueryService",
    "require_title",
]
