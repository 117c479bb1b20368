"""SQLAlchemy table definitions - dialect-agnostic (works with SQLite and PostgreSQL)."""

from sqlalchemy import Column, MetaData, String, Table, Text

from gallery.domain.catalog.model.record import ReviewStatus

# Metadata object for all tables
metadata = MetaData()


def catalog_table(name: str) -> Table:
    """Catalog table under a configurable name (one row per accepted object)."""
    if name in metadata.tables:
        return metadata.tables[name]
    return Table(
        name,
        metadata,
        Column("id", String, primary_key=True),  # Object key
        Column("caption", Text, nullable=True),
        Column("date", String, nullable=True),
        Column("name", String, nullable=True),
        Column("status", String(16), nullable=False, default=ReviewStatus.PENDING.value),
        Column("review_date", String, nullable=True),
        Column("reason", Text, nullable=True),
    )
