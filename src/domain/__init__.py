"""
Domain layer - Pure business logic with zero framework imports.

This package contains the token lifecycle (CipherBox, TokenCodec) and
the multi-step account workflows built on it: ghost registration,
sessions, password reset, email verification and user administration.
It defines its own port interfaces for infrastructure abstraction,
ensuring true hexagonal architecture decoupling.
"""

from .config import AuthConfig, derive_encryption_key
from .crypto import CipherBox
from .email_verification import EmailVerificationWorkflow
from .exceptions import (
    AuthError,
    ConfigurationError,
    Conflict,
    DecryptionError,
    ErrorKind,
    InvalidArgument,
    InvalidTokenError,
    NotFound,
    TokenTypeMismatch,
    Unauthenticated,
)
from .password_reset import PasswordResetWorkflow
from .ports import (
    ConsumedTokenStore,
    Notifier,
    PendingRegistration,
    PendingRegistrationRepository,
    Session,
    TokenType,
    User,
    UserRepository,
)
from .registration import RegistrationStarted, RegistrationWorkflow
from .sessions import SessionWorkflow
from .tokens import TokenClaims, TokenCodec
from .users import UserAdministration, UserPage

__all__ = [
    "AuthConfig",
    "AuthError",
    "CipherBox",
    "ConfigurationError",
    "Conflict",
    "ConsumedTokenStore",
    "DecryptionError",
    "EmailVerificationWorkflow",
    "ErrorKind",
    "InvalidArgument",
    "InvalidTokenError",
    "NotFound",
    "Notifier",
    "PasswordResetWorkflow",
    "PendingRegistration",
    "PendingRegistrationRepository",
    "RegistrationStarted",
    "RegistrationWorkflow",
    "Session",
    "SessionWorkflow",
    "TokenClaims",
    "TokenCodec",
    "TokenType",
    "TokenTypeMismatch",
    "Unauthenticated",
    "User",
    "UserAdministration",
    "UserPage",
    "UserRepository",
    "derive_encryption_key",
]
