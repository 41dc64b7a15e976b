"""Error types raised by the visitor log and mapped to JSON responses."""


class VisitorLogError(Exception):
    """Base error carrying the HTTP status and the message shown to clients."""

    status_code: int = 500
    default_message: str = 'Internal error'

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(VisitorLogError):
    """A capture payload is missing a required field."""

    status_code = 400
    default_message = 'Missing data'


class StorageError(VisitorLogError):
    """Reading, appending to or rewriting the log file failed."""

    status_code = 500
    default_message = 'Failed to read data'


class NotFoundError(VisitorLogError):
    """No route matches the request."""

    status_code = 404
    default_message = 'API not found'
