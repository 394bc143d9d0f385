"""SQLite compilation shim for PostgreSQL JSONB.

Lets `Base.metadata.create_all()` succeed when tests substitute an in-memory
SQLite database. JSONB operators are not emulated.

Usage: Imported for side-effects by billia.db.models.
"""
from __future__ import annotations

from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.compiler import compiles


@compiles(JSONB, "sqlite")
def _compile_jsonb_sqlite(element, compiler, **kw):  # pragma: no cover - trivial
    return "JSON"
