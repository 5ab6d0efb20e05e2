"""Project-wide constants."""

from __future__ import annotations

# PostgreSQL schema holding every runsheet table.
DB_SCHEMA = "runsheet"
