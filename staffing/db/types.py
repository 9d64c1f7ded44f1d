"""Portable column types."""

from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite for tests/dev)
JsonType = JSON().with_variant(JSONB(), "postgresql")
