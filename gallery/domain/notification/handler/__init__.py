"""Notification handlers."""

from gallery.domain.notification.handler.notify_owner import NotifyOwner

__all__ = ["NotifyOwner"]
