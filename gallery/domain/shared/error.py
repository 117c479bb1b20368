"""Error hierarchy for the gallery pipeline.

Error layers:
- GalleryError: Base class for all gallery errors
- DomainError: Business rule violations, rejected input (4xx equivalents)
- InfrastructureError: Store, bus, and mail failures (5xx equivalents)

Every error class declares whether it is ``recoverable``. A recoverable error
raised from a handler leaves the message unacknowledged so the delivery source
redelivers it (and eventually dead-letters it). A terminal error will never
succeed on retry, so workers acknowledge the message and log the failure.
"""

from typing import ClassVar


class GalleryError(Exception):
    """Base class for all gallery errors."""

    recoverable: ClassVar[bool] = True

    def __init__(self, message: str, code: str | None = None) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(message)


# =============================================================================
# Domain Errors
# =============================================================================


class DomainError(GalleryError):
    """Base class for domain/business errors."""

    recoverable = False


class ValidationError(DomainError):
    """Uploaded object failed ingestion validation.

    Recoverable on purpose: the message must be redelivered until the queue
    routes it to the dead-letter path, where the object is cleaned up.
    """

    recoverable = True

    def __init__(self, message: str, key: str | None = None, container: str | None = None) -> None:
        super().__init__(message)
        self.key = key
        self.container = container


class InvalidStatus(DomainError):
    """A status update addressed a record with a status outside the allow-list."""

    def __init__(self, status: object) -> None:
        super().__init__(f"Invalid status: {status}")
        self.status = status


class InvalidMessage(DomainError):
    """Message was addressed to a consumer but its content is unusable."""


class NotFoundError(DomainError):
    """Referenced catalog record does not exist."""


class RecoveryFailure(DomainError):
    """Object location could not be recovered from a dead-letter entry."""


# =============================================================================
# Infrastructure Errors
# =============================================================================


class InfrastructureError(GalleryError):
    """Base class for infrastructure/system errors."""


class StorageUnavailableError(InfrastructureError):
    """Catalog or object store is unavailable."""


class ExternalServiceError(InfrastructureError):
    """External collaborator (mail provider, broker) failed."""


class DownstreamDispatchFailure(InfrastructureError):
    """A secondary dispatch (mail, compensating delete) failed.

    Always isolated: logged by the component that caught it, never re-raised.
    """

    recoverable = False


class ConfigurationError(InfrastructureError):
    """System misconfiguration detected."""

    recoverable = False


def is_recoverable(error: BaseException) -> bool:
    """Whether redelivering the message that raised ``error`` could succeed.

    Errors outside the hierarchy (driver errors, timeouts) are treated as
    transient.
    """
    if isinstance(error, GalleryError):
        return error.recoverable
    return True
