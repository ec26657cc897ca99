"""Mapper types discovered by package scanning."""
