#!/usr/bin/env python3
"""
Book Seeding Script.

Imports books from a CSV file into the catalog through the generic create
path, so schema constraints apply to every row.

Usage:
    python -m scripts.seed_books --csv data/books.csv
    python -m scripts.seed_books --csv data/books.csv --db data/bookshop.db --if-empty
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from bookshop.config import Settings
from bookshop.domain.errors import BookshopError
from bookshop.domain.services import CatalogCommandService
from bookshop.infrastructure.db import SqliteBookRepository
from bookshop.infrastructure.seed import seed_books

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def main(csv_path: Path, db_path: Optional[Path] = None, if_empty: bool = False) -> int:
    """
    Main entry point for the seeding script.

    Args:
        csv_path: CSV file with a header row
        db_path: SQLite file; the configured one if omitted
        if_empty: Only import when the store holds no books

    Returns:
        Number of books imported
    """
    settings = Settings()
    db_path = db_path or settings.db_path
    logger.info(f"Seeding {db_path} from {csv_path}")

    repository = SqliteBookRepository(db_path, timeout=settings.db_timeout)
    commands = CatalogCommandService(repository)

    try:
        imported = seed_books(commands, csv_path, repository=repository if if_empty else None)
    except (BookshopError, FileNotFoundError) as e:
        logger.error(f"Seeding failed: {e}")
        sys.exit(1)

    logger.info(f"Catalog now holds {repository.count()} book(s)")
    return imported


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Import books from a CSV file")
    parser.add_argument(
        "--csv", "-c",
        type=Path,
        required=True,
        help="CSV file (title,author,genre,price,stock,description,publishedAt)"
    )
    parser.add_argument(
        "--db", "-d",
        type=Path,
        default=None,
        help="SQLite database file (default: from BOOKSHOP_DB_PATH / profile)"
    )
    parser.add_argument(
        "--if-empty",
        action="store_true",
        help="Skip the import when the catalog already holds books"
    )

    args = parser.parse_args()
    main(args.csv, args.db, args.if_empty)
