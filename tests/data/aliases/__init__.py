"""Domain types registered by an alias package scan."""
