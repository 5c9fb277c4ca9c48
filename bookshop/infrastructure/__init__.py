"""Infrastructure adapters: Record Store and seed loading."""
