from gallery.infrastructure.event.di import EventProvider, HandlerProvider
from gallery.infrastructure.event.worker import Worker, WorkerPool

__all__ = ["EventProvider", "HandlerProvider", "Worker", "WorkerPool"]
