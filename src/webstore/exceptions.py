"""Webstore exceptions.

Each error carries the HTTP status it maps to. ``plain`` selects a
``text/plain`` body instead of ``{"error": message}`` for routes whose
contract answers in plain text.
"""


class WebstoreError(Exception):
    """Base class for errors rendered as HTTP responses."""

    status_code = 500

    def __init__(self, message: str, plain: bool = False) -> None:
        self.message = message
        self.plain = plain
        super().__init__(message)


class ValidationError(WebstoreError):
    """Raised when a request body or path parameter is missing or invalid."""

    status_code = 400


class InvalidIdError(ValidationError):
    """Raised when an identifier does not parse as a storage id."""

    def __init__(self, record_id: str) -> None:
        self.record_id = record_id
        super().__init__(f"Invalid id: {record_id!r}")


class NotFoundError(WebstoreError):
    """Raised when an operation targets a record that does not exist."""

    status_code = 404


class StorageError(WebstoreError):
    """Raised when the document store cannot be reached or a query fails."""

    def __init__(self, message: str = "Storage operation failed", plain: bool = False) -> None:
        super().__init__(message, plain=plain)
