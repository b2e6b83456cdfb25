class ServiceError(Exception):
    """Base exception for service-level errors."""


class ValidationError(ServiceError):
    """Missing or malformed request fields."""


class NotFoundError(ServiceError):
    pass


class UpstreamError(ServiceError):
    """The row store or the object store failed; the message is safe to show."""
