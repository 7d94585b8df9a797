"""Error types raised by the redirect core and mapped to HTTP responses.

Every error carries a machine-readable ``kind`` and a human-readable
``message``. The HTTP layer turns them into
``{"success": false, "error": message, "kind": kind}`` with ``status_code``.
"""

from qrlocal.enums import ErrorKind

__all__ = [
    "RedirectError",
    "InvalidURL",
    "InvalidKeyFormat",
    "DuplicateKey",
    "NotFound",
    "AllocationExhausted",
    "StoreFailure",
    "QRRenderError",
]


class RedirectError(Exception):
    kind: ErrorKind = ErrorKind.STORE_FAILURE
    status_code: int = 500
    default_message: str = "Internal error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict[str, object]:
        return {"success": False, "error": self.message, "kind": self.kind.value}


class InvalidURL(RedirectError):
    kind = ErrorKind.INVALID_URL
    status_code = 400
    default_message = "Invalid URL format"


class InvalidKeyFormat(RedirectError):
    kind = ErrorKind.INVALID_KEY_FORMAT
    status_code = 400
    default_message = "Custom key must contain only base32 characters (A-Z, 2-7)"


class DuplicateKey(RedirectError):
    kind = ErrorKind.DUPLICATE_KEY
    status_code = 409
    default_message = "Custom key already exists. Choose a different key."


class NotFound(RedirectError):
    kind = ErrorKind.NOT_FOUND
    status_code = 404
    default_message = "Redirect not found"


class AllocationExhausted(RedirectError):
    """No free identifier was found within the configured attempts.

    Points at an identifier space that is too small for the load
    (``MAX_ID_LENGTH`` too low), not at a transient condition.
    """

    kind = ErrorKind.ALLOCATION_EXHAUSTED
    status_code = 500
    default_message = "Unable to generate unique ID"


class StoreFailure(RedirectError):
    kind = ErrorKind.STORE_FAILURE
    status_code = 500
    default_message = "Database error"


class QRRenderError(RedirectError):
    kind = ErrorKind.QR_RENDER_FAILURE
    status_code = 500
    default_message = "Failed to generate QR code"
