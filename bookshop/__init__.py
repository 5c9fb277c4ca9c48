"""
Bookshop catalog service.

One entity (Books) with generic CRUD plus two custom operations,
``createBook`` and ``getBooksByGenre``, served over HTTP by FastAPI and
stored in SQLite.
"""

__version__ = "1.0.0"
