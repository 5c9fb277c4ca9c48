"""
Load initial catalog data from CSV.

Headers use the external (camelCase) field names:

    title,author,genre,price,stock,description,publishedAt

Empty cells are treated as missing values. Rows are written through the
generic create path, so schema constraints apply to seed data as well.
"""

import csv
import logging
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional

from bookshop.domain.errors import ValidationError
from bookshop.domain.ports import BookRepository
from bookshop.domain.services import CatalogCommandService

logger = logging.getLogger(__name__)

_CSV_FIELDS = {
    "title": "title",
    "author": "author",
    "genre": "genre",
    "price": "price",
    "stock": "stock",
    "description": "description",
    "publishedAt": "published_at",
}


def _parse_cell(field_name: str, raw: str, line: int) -> Any:
    try:
        if field_name == "price":
            return Decimal(raw)
        if field_name == "stock":
            return int(raw)
        if field_name == "published_at":
            return date.fromisoformat(raw)
    except (ValueError, ArithmeticError) as e:
        raise ValidationError(
            f"Invalid {field_name} '{raw}' on line {line}", field=field_name
        ) from e
    return raw


def read_books_csv(path: Path) -> List[Dict[str, Any]]:
    """
    Parse a seed CSV into writable book field mappings.

    Raises:
        ValidationError: On unknown columns or unparsable cells
        FileNotFoundError: If the file does not exist
    """
    rows: List[Dict[str, Any]] = []
    with open(path, newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        unknown = set(reader.fieldnames or ()) - set(_CSV_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown columns in {path}: {', '.join(sorted(unknown))}")

        for line, record in enumerate(reader, start=2):
            data: Dict[str, Any] = {}
            for header, raw in record.items():
                if header is None:
                    raise ValidationError(f"Too many cells on line {line} of {path}")
                if raw is None or raw == "":
                    continue
                field_name = _CSV_FIELDS[header]
                data[field_name] = _parse_cell(field_name, raw, line)
            rows.append(data)

    return rows


def seed_books(
    commands: CatalogCommandService,
    path: Path,
    repository: Optional[BookRepository] = None,
) -> int:
    """
    Import the books in ``path``.

    Args:
        commands: Command service used for the inserts
        path: CSV file
        repository: When given, the import is skipped unless the store is empty

    Returns:
        Number of books created
    """
    if repository is not None and repository.count() > 0:
        logger.info("Store already holds books, skipping seed from %s", path)
        return 0

    rows = read_books_csv(path)
    for data in rows:
        commands.create(data)

    logger.info("Seeded %d book(s) from %s", len(rows), path)
    return len(rows)
