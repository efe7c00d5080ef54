"""Domain exceptions."""


class RepositoryError(Exception):
    """Base exception for the document repository."""

    pass


class ValidationError(RepositoryError):
    """Validation failed for input data."""

    pass


class OperationCancelled(RepositoryError):
    """Cooperative cancellation was requested mid-operation."""

    pass
