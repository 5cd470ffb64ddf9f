"""Domain errors raised by services and mapped to HTTP responses in app.main."""


class AppError(Exception):
    """Base class for errors that carry an HTTP status."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(AppError):
    """The requested record does not exist."""

    status_code = 404


class FetchError(AppError):
    """Reading from a backing service failed."""

    status_code = 502


class MutationError(AppError):
    """A write did not take effect."""

    status_code = 400


class StorageError(MutationError):
    """An object storage operation failed."""
