"""
Domain exceptions - Semantic error types for the token workflows.

This module defines domain-specific exceptions that communicate
business rule violations without leaking infrastructure details.

Workflow errors carry an ErrorKind. Callers (the HTTP layer, tests)
branch on ``error.kind`` rather than on message text, and every
workflow step re-maps component failures (DecryptionError,
InvalidTokenError) to the coarse kind appropriate to that step.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Coarse error taxonomy exposed to callers."""

    CONFLICT = "conflict"
    UNAUTHENTICATED = "unauthenticated"
    NOT_FOUND = "not_found"
    INVALID_ARGUMENT = "invalid_argument"
    INTERNAL = "internal"


class AuthError(Exception):
    """Base class for workflow errors."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class Conflict(AuthError):
    """Username or email already belongs to a user."""

    kind = ErrorKind.CONFLICT

    def __init__(self, *conflicts: str) -> None:
        super().__init__(", ".join(conflicts))
        self.conflicts = list(conflicts)


class Unauthenticated(AuthError):
    """Bad, expired or wrong-type token, bad credentials, or bad code."""

    kind = ErrorKind.UNAUTHENTICATED


class NotFound(AuthError):
    """Lookup miss where revealing it is not security-sensitive."""

    kind = ErrorKind.NOT_FOUND


class InvalidArgument(AuthError):
    """Malformed input that survived to this layer."""

    kind = ErrorKind.INVALID_ARGUMENT


class ConfigurationError(AuthError):
    """Missing or malformed key material. Fatal, never retried."""

    kind = ErrorKind.INTERNAL


class DecryptionError(Exception):
    """Ciphertext blob is malformed, truncated, or fails authentication."""

    pass


class InvalidTokenError(Exception):
    """Token signature invalid, expired, or malformed."""

    pass


class TokenTypeMismatch(InvalidTokenError):
    """Token is valid but was minted for a different workflow step."""

    pass
