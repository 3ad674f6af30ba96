"""
Exceptions raised by the preview service.

Every ``PreviewError`` carries a client-safe message and the HTTP status it
maps to; the app renders them as ``{"error": message}``.
"""


class PreviewError(Exception):
    """Base class for errors that are reported to the client."""

    status_code: int = 500
    message: str = "internal server error"

    def __init__(self, message: str | None = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ContentRequiredError(PreviewError):
    """Raised when an upload has no content field or an empty one."""

    status_code = 400
    message = "content required"


class ContentTooLargeError(PreviewError):
    """Raised when an upload exceeds the configured size limit."""

    status_code = 413
    message = "content too large"


class InvalidPreviewIdError(PreviewError):
    """Raised when the identifier segment of a path is empty."""

    status_code = 400
    message = "invalid preview id"


class PreviewNotFoundError(PreviewError):
    """Raised when the store has no entry for an identifier."""

    status_code = 404
    message = "not found"


class CorruptRecordError(PreviewError):
    """Raised when a stored value is not a valid record where one is required."""

    status_code = 500
    message = "corrupt data"


class StoreError(Exception):
    """Raised when the key-value store cannot complete a request."""
    pass
