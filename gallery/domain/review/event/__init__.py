from gallery.domain.review.event.status_changed import StatusChanged

__all__ = ["StatusChanged"]
