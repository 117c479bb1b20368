"""Catalog handlers."""

from gallery.domain.catalog.handler.update_metadata import UpdateMetadata

__all__ = ["UpdateMetadata"]
