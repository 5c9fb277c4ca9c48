"""
SQLite implementation of the BookRepository port (the Record Store).

The adapter persists Book entities to a single ``books`` table. Prices are
stored as integer cents so comparisons and sorting are exact, dates and
timestamps as ISO-8601 text. Every operation opens its own short-lived
connection, so the repository can be shared across request threads.
"""

import logging
import sqlite3
from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Iterator, List, Optional, Sequence, Tuple
from uuid import UUID

from bookshop.domain.entities import Book, MAX_LENGTHS, TEXT_FIELDS, normalize_price
from bookshop.domain.errors import StoreError, ValidationError
from bookshop.domain.ports import BookRepository
from bookshop.domain.value_objects import BookFilter, Predicate, SortKey

_COLUMNS = {
    "id": "id",
    "title": "title",
    "author": "author",
    "genre": "genre",
    "price": "price_cents",
    "stock": "stock",
    "description": "description",
    "published_at": "published_at",
    "created_at": "created_at",
    "created_by": "created_by",
    "modified_at": "modified_at",
    "modified_by": "modified_by",
}

_SQL_OPERATORS = {
    "eq": "=",
    "ne": "!=",
    "gt": ">",
    "ge": ">=",
    "lt": "<",
    "le": "<=",
}

_INTEGER_MIN = -(2**63)
_INTEGER_MAX = 2**63 - 1


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SqliteBookRepository(BookRepository):
    """
    SQLite-backed Record Store.

    Schema constraints (title NOT NULL, text length limits) are declared on
    the table as well, so rows written by other tools are held to them too.
    """

    def __init__(
        self,
        db_path: Path,
        timeout: float = 5.0,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        """
        Initialize the repository and create the schema if needed.

        Args:
            db_path: SQLite database file; parent directories are created
            timeout: Seconds to wait on a locked database
            logger: Logger for this adapter; the module logger if omitted
        """
        self._db_path = Path(db_path)
        self._timeout = timeout
        self._logger = logger or logging.getLogger(__name__)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Open a connection with row factory; always closed on exit."""
        conn = sqlite3.connect(str(self._db_path), timeout=self._timeout)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def _init_schema(self) -> None:
        """Create the books table if it doesn't exist."""
        checks = ",\n".join(
            f"CHECK ({name} IS NULL OR length({name}) <= {limit})"
            for name, limit in MAX_LENGTHS.items()
        )
        try:
            with self._connect() as conn, conn:
                conn.execute(f"""
                CREATE TABLE IF NOT EXISTS books (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    author TEXT,
                    genre TEXT,
                    price_cents INTEGER,
                    stock INTEGER NOT NULL DEFAULT 0,
                    description TEXT,
                    published_at TEXT,
                    created_at TEXT NOT NULL,
                    created_by TEXT NOT NULL,
                    modified_at TEXT NOT NULL,
                    modified_by TEXT NOT NULL,
                    {checks}
                )
                """)
                conn.execute("CREATE INDEX IF NOT EXISTS idx_books_genre ON books(genre)")
        except sqlite3.Error as e:
            raise StoreError(f"Could not initialize database at {self._db_path}: {e}") from e

        self._logger.debug("Book store ready at %s", self._db_path)

    # ------------------------------------------------------------------
    # Row mapping
    # ------------------------------------------------------------------

    @staticmethod
    def _to_db_value(field_name: str, value: Any) -> Any:
        """Convert a domain value to its stored representation."""
        if value is None:
            return None
        if field_name == "id":
            return str(value)
        if field_name == "price":
            return int(normalize_price(value).scaleb(2))
        if isinstance(value, (date, datetime)):
            return value.isoformat()
        return value

    def _book_to_row(self, book: Book) -> dict:
        """Convert a Book entity to a database row dict."""
        return {
            column: self._to_db_value(field_name, getattr(book, field_name))
            for field_name, column in _COLUMNS.items()
        }

    def _row_to_book(self, row: sqlite3.Row) -> Book:
        """Convert a database row to a Book entity."""
        cents = row["price_cents"]
        published = row["published_at"]

        return Book(
            id=UUID(row["id"]),
            title=row["title"],
            author=row["author"],
            genre=row["genre"],
            price=Decimal(cents).scaleb(-2) if cents is not None else None,
            stock=row["stock"],
            description=row["description"],
            published_at=date.fromisoformat(published) if published else None,
            created_at=datetime.fromisoformat(row["created_at"]),
            created_by=row["created_by"],
            modified_at=datetime.fromisoformat(row["modified_at"]),
            modified_by=row["modified_by"],
        )

    # ------------------------------------------------------------------
    # Query building
    # ------------------------------------------------------------------

    def _predicate_sql(self, predicate: Predicate) -> Tuple[str, List[Any]]:
        column = _COLUMNS[predicate.field]

        if predicate.op == "contains":
            return f"instr({column}, ?) > 0", [predicate.value]

        if predicate.value is None:
            return (f"{column} IS NULL" if predicate.op == "eq" else f"{column} IS NOT NULL"), []

        if predicate.field == "price":
            value = self._price_literal(predicate.value)
        else:
            value = self._to_db_value(predicate.field, predicate.value)
            if isinstance(value, int) and not _INTEGER_MIN <= value <= _INTEGER_MAX:
                value = float(value)
        return f"{column} {_SQL_OPERATORS[predicate.op]} ?", [value]

    @staticmethod
    def _price_literal(value: Any) -> Any:
        """
        Scale a price comparison literal to cents without rounding it.

        Literals that are not whole cents, or do not fit an SQLite INTEGER,
        are bound as REAL; SQLite compares them numerically with the stored
        integer cents.
        """
        cents = Decimal(value).scaleb(2)
        if cents == cents.to_integral_value() and _INTEGER_MIN <= cents <= _INTEGER_MAX:
            return int(cents)
        return float(cents)

    def _where(
        self, book_filter: Optional[BookFilter], search: Optional[str]
    ) -> Tuple[str, List[Any]]:
        clauses: List[str] = []
        params: List[Any] = []

        if book_filter is not None:
            for predicate in book_filter.predicates:
                clause, values = self._predicate_sql(predicate)
                clauses.append(clause)
                params.extend(values)

        if search:
            pattern = f"%{_escape_like(search)}%"
            clauses.append(
                "(" + " OR ".join(f"{name} LIKE ? ESCAPE '\\'" for name in TEXT_FIELDS) + ")"
            )
            params.extend([pattern] * len(TEXT_FIELDS))

        if not clauses:
            return "", params
        return " WHERE " + " AND ".join(clauses), params

    @staticmethod
    def _order_by(order_by: Sequence[SortKey]) -> str:
        terms = [
            f"{_COLUMNS[key.field]} {'DESC' if key.descending else 'ASC'}"
            for key in order_by
            if key.field != "id"
        ]
        id_desc = any(key.field == "id" and key.descending for key in order_by)
        terms.append("id DESC" if id_desc else "id ASC")
        return " ORDER BY " + ", ".join(terms)

    # ------------------------------------------------------------------
    # Port operations
    # ------------------------------------------------------------------

    def insert(self, book: Book) -> UUID:
        """Persist a new book in its own transaction."""
        row = self._book_to_row(book)
        columns = ", ".join(row)
        placeholders = ", ".join(f":{name}" for name in row)

        try:
            with self._connect() as conn, conn:
                conn.execute(f"INSERT INTO books ({columns}) VALUES ({placeholders})", row)
        except sqlite3.IntegrityError as e:
            raise ValidationError(f"Book violates catalog constraints: {e}") from e
        except (sqlite3.Error, OverflowError) as e:
            raise StoreError(f"Database error while inserting book: {e}") from e

        return book.id

    def get_by_id(self, book_id: UUID) -> Optional[Book]:
        """Retrieve a book by its id."""
        try:
            with self._connect() as conn:
                row = conn.execute(
                    "SELECT * FROM books WHERE id = ?", (str(book_id),)
                ).fetchone()
        except (sqlite3.Error, OverflowError) as e:
            raise StoreError(f"Database error while reading book: {e}") from e

        if row is None:
            return None
        return self._row_to_book(row)

    def query(
        self,
        book_filter: Optional[BookFilter] = None,
        order_by: Sequence[SortKey] = (),
        offset: int = 0,
        limit: Optional[int] = None,
        search: Optional[str] = None,
    ) -> Iterator[Book]:
        """Retrieve matching books in stable order."""
        where, params = self._where(book_filter, search)
        sql = "SELECT * FROM books" + where + self._order_by(order_by)

        if limit is not None or offset:
            sql += " LIMIT ? OFFSET ?"
            params.extend([-1 if limit is None else limit, offset])

        try:
            with self._connect() as conn:
                rows = conn.execute(sql, params).fetchall()
        except (sqlite3.Error, OverflowError) as e:
            raise StoreError(f"Database error while querying books: {e}") from e

        return (self._row_to_book(row) for row in rows)

    def count(
        self,
        book_filter: Optional[BookFilter] = None,
        search: Optional[str] = None,
    ) -> int:
        """Count matching books."""
        where, params = self._where(book_filter, search)
        try:
            with self._connect() as conn:
                result = conn.execute("SELECT COUNT(*) AS cnt FROM books" + where, params).fetchone()
        except (sqlite3.Error, OverflowError) as e:
            raise StoreError(f"Database error while counting books: {e}") from e
        return result["cnt"]

    def update(self, book: Book) -> bool:
        """Overwrite the stored fields of an existing book."""
        row = self._book_to_row(book)
        assignments = ", ".join(
            f"{column} = :{column}"
            for column in row
            if column not in ("id", "created_at", "created_by")
        )

        try:
            with self._connect() as conn, conn:
                cursor = conn.execute(f"UPDATE books SET {assignments} WHERE id = :id", row)
        except sqlite3.IntegrityError as e:
            raise ValidationError(f"Book violates catalog constraints: {e}") from e
        except (sqlite3.Error, OverflowError) as e:
            raise StoreError(f"Database error while updating book: {e}") from e

        return cursor.rowcount > 0

    def delete(self, book_id: UUID) -> bool:
        """Delete a book from the catalog. Returns True if deleted."""
        try:
            with self._connect() as conn, conn:
                cursor = conn.execute("DELETE FROM books WHERE id = ?", (str(book_id),))
        except (sqlite3.Error, OverflowError) as e:
            raise StoreError(f"Database error while deleting book: {e}") from e

        return cursor.rowcount > 0
