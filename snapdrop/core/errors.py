class SnapDropError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500
    message = "Internal server error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class NotFound(SnapDropError):
    """Key or file absent, already consumed, or expired.

    The three cases are deliberately indistinguishable to the caller.
    """

    status_code = 404
    message = "Paste not found"


class KeyExhaustion(SnapDropError):
    status_code = 503
    message = "Failed to generate unique key. Please try again."


class ValidationError(SnapDropError):
    status_code = 400
    message = "Invalid request"


class PayloadTooLarge(SnapDropError):
    status_code = 413
    message = "Payload too large"


class CollaboratorError(SnapDropError):
    """Failure of the database or blob store. Never retried by the gateway."""

    status_code = 500
    message = "Internal server error"


class BlobNotFound(CollaboratorError):
    """The blob is gone, usually removed by a concurrent delete or sweep."""

    message = "Blob not found"
