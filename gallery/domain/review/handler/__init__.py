"""Review handlers."""

from gallery.domain.review.handler.update_status import UpdateStatus

__all__ = ["UpdateStatus"]
