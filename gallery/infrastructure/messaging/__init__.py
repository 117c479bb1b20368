from gallery.infrastructure.messaging.bus import MessageBus, Subscription
from gallery.infrastructure.messaging.di import MessagingProvider, Queues
from gallery.infrastructure.messaging.filter import FilterPolicy
from gallery.infrastructure.messaging.queue import MessageQueue

__all__ = ["FilterPolicy", "MessageBus", "MessageQueue", "MessagingProvider", "Queues", "Subscription"]
