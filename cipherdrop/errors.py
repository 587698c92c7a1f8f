"""Exception types raised by the storage and access-control core.

Absent rows are not errors: lookups return ``None``. The exceptions below
cover the cases a caller has to tell apart.
"""


class CipherDropError(Exception):
    """Base class for every error raised by cipherdrop."""

    message = "Unexpected error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class NotFoundError(CipherDropError):
    message = "Resource not found"


class SharedLinkNotFound(NotFoundError):
    # Same message for unknown, expired and foreign links.
    message = "Shared link not found or has expired"


class ConflictError(CipherDropError):
    message = "A user with this email already exists"


class ValidationFailure(CipherDropError):
    message = "Invalid input"


class InvalidPageError(ValidationFailure):
    message = "Page must be >= 1 and limit must be between 1 and 50"


class BackendUnavailableError(CipherDropError):
    message = "Storage backend unavailable"


class TransactionFailure(CipherDropError):
    message = "Transaction aborted, no changes were saved"


class AccessDenied(CipherDropError):
    message = "Incorrect password for this shared link"


class AuthenticationError(CipherDropError):
    message = "Authentication token is invalid or expired"
