"""Keygate exception hierarchy.

Every error carries the HTTP status the API boundary answers with.
"""


class KeygateError(Exception):
    """Base exception for all Keygate errors."""

    status_code = 500

    def __init__(self, message: str = "", code: str = "KEYGATE_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(KeygateError):
    """Raised when a request is missing fields or carries malformed values."""

    status_code = 400

    def __init__(self, message: str = "invalid data format"):
        super().__init__(message, code="INVALID_REQUEST")


class AuthError(KeygateError):
    """Raised when the admin credential is missing or wrong."""

    status_code = 401

    def __init__(self, message: str = "insufficient permissions"):
        super().__init__(message, code="UNAUTHORIZED")


class ConflictError(KeygateError):
    """Raised when inserting a key that already exists."""

    def __init__(self, message: str = "key already exists"):
        super().__init__(message, code="KEY_EXISTS")


class GenerationExhaustedError(KeygateError):
    """Raised when no unique key was found within the attempt budget."""

    def __init__(self, message: str = "could not generate a unique key"):
        super().__init__(message, code="GENERATION_FAILED")


class StoreError(KeygateError):
    """Raised when the storage backend is unreachable or a query fails.

    The message stays generic; details go to the log.
    """

    def __init__(self, message: str = "server error"):
        super().__init__(message, code="STORE_ERROR")
