"""Cache capacities and read sizes - no circular dependencies."""

from __future__ import annotations

PARSE_CACHE_SIZE = 1000
RESOLVE_CACHE_SIZE = 500
ESCAPE_CACHE_SIZE = 500

SHEBANG_READ_BYTES = 150
"""Bytes sniffed from the head of a resolved file when looking for ``#!``."""
