"""Custom Dishka scopes for the gallery pipeline."""

from dishka import BaseScope, new_scope


class Scope(BaseScope):  # type: ignore[misc]  # BaseScope is designed to be subclassed
    """Dependency injection scopes.

    Hierarchy: APP -> UOW

    - APP: Application lifetime (bus, queues, stores, clients)
    - UOW: Unit of Work (one message or batch handled by a consumer)
    """

    APP = new_scope("APP")
    UOW = new_scope("UOW")
