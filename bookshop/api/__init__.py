"""HTTP gateway of the bookshop service."""
