"""Version 1 of the bookshop catalog API."""
