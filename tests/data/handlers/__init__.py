"""Type handlers discovered by package scanning."""
