"""Base service exceptions.

These exceptions are raised by the service layer and propagate to the
write paths (message handlers, CLI) that decide whether to retry or abort.
"""


class ServiceError(Exception):
    """Base service exception."""

    pass


class NotFoundError(ServiceError):
    """Resource not found."""

    pass


class ValidationError(ServiceError):
    """Validation error."""

    pass
