"""Ingestion handlers."""

from gallery.domain.ingestion.handler.validate_upload import ValidateUpload

__all__ = ["ValidateUpload"]
