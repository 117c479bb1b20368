from gallery.application.di import create_container
from gallery.application.pipeline import Pipeline
from gallery.application.topology import wire_subscriptions

__all__ = ["Pipeline", "create_container", "wire_subscriptions"]
