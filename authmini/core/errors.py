"""Error taxonomy shared by the services and the HTTP boundary."""

from enum import Enum


class ErrorKind(str, Enum):
    """Expected, recoverable failure kinds. The API maps each to one status code."""

    VALIDATION = "validation"
    DUPLICATE_EMAIL = "duplicate_email"
    INVALID_CREDENTIALS = "invalid_credentials"
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"


# HTTP status per kind; compared by kind, never by message text.
STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.DUPLICATE_EMAIL: 400,
    ErrorKind.INVALID_CREDENTIALS: 401,
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
}

DEFAULT_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.VALIDATION: "Invalid request.",
    ErrorKind.DUPLICATE_EMAIL: "Registration failed: account already exists.",
    ErrorKind.INVALID_CREDENTIALS: "Invalid credentials or account disabled.",
    ErrorKind.UNAUTHENTICATED: "Not authenticated",
    ErrorKind.FORBIDDEN: "Admin access required",
    ErrorKind.NOT_FOUND: "Not found",
}


class AuthMiniError(Exception):
    """Raised by services for expected failures; carries an ErrorKind and a safe message."""

    def __init__(self, kind: ErrorKind, message: str | None = None) -> None:
        self.kind = kind
        self.message = message or DEFAULT_MESSAGES[kind]
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return STATUS_BY_KIND[self.kind]

    def __repr__(self) -> str:
        return f"AuthMiniError(kind={self.kind.value!r}, message={self.message!r})"


def validation_error(message: str) -> AuthMiniError:
    return AuthMiniError(ErrorKind.VALIDATION, message)


def duplicate_email() -> AuthMiniError:
    return AuthMiniError(ErrorKind.DUPLICATE_EMAIL)


def invalid_credentials() -> AuthMiniError:
    return AuthMiniError(ErrorKind.INVALID_CREDENTIALS)


def unauthenticated(message: str | None = None) -> AuthMiniError:
    return AuthMiniError(ErrorKind.UNAUTHENTICATED, message)


def forbidden(message: str | None = None) -> AuthMiniError:
    return AuthMiniError(ErrorKind.FORBIDDEN, message)


def not_found(user_id: int) -> AuthMiniError:
    return AuthMiniError(ErrorKind.NOT_FOUND, f"User with ID {user_id} not found")


class InvalidToken(Exception):
    """Raised by the token codec for any unusable token (malformed, bad signature, expired)."""


class InfrastructureError(Exception):
    """Raised when the store fails unexpectedly (connection loss, driver error)."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)
