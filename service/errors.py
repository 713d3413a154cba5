"""Error types shared by the repository, service and API layers."""


class ServiceError(Exception):
    """Base class for errors raised by the service and repository layers."""


class ValidationError(ServiceError):
    """A required value is missing or invalid."""


class ConflictError(ServiceError):
    """A unique value (id or email) is already taken."""


class NotFoundError(ServiceError):
    """The requested record does not exist."""


class StoreError(ServiceError):
    """Unclassified failure reported by the document store."""


class ConfigurationError(ServiceError, ValueError):
    """Required configuration is missing."""
