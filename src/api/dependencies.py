"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
domain workflows and infrastructure adapters into routes.
"""

from functools import lru_cache

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from psycopg_pool import ConnectionPool

from src.adapters.repository.postgres import (
    PostgresConsumedTokenStore,
    PostgresPendingRegistrationRepository,
    PostgresUserRepository,
)
from src.adapters.smtp.background import BackgroundNotifier
from src.adapters.smtp.console import ConsoleNotifier
from src.config.settings import build_auth_config, get_settings
from src.domain.config import AuthConfig
from src.domain.crypto import CipherBox
from src.domain.email_verification import EmailVerificationWorkflow
from src.domain.exceptions import Unauthenticated
from src.domain.password_reset import PasswordResetWorkflow
from src.domain.ports import User
from src.domain.registration import RegistrationWorkflow
from src.domain.sessions import SessionWorkflow
from src.domain.tokens import TokenCodec
from src.domain.users import UserAdministration

# Module-level singleton - deliveries run on the notifier's own thread pool
_notifier = BackgroundNotifier(ConsoleNotifier())


@lru_cache
def get_auth_config() -> AuthConfig:
    """
    Build the immutable auth configuration once per process.

    Raises:
        ConfigurationError: If key material is missing or malformed
    """
    return build_auth_config(get_settings())


@lru_cache
def get_token_codec() -> TokenCodec:
    return TokenCodec(get_auth_config())


@lru_cache
def get_cipher_box() -> CipherBox:
    return CipherBox(get_auth_config())


def get_notifier() -> BackgroundNotifier:
    """Get background notifier (singleton)."""
    return _notifier


def get_pool(request: Request) -> ConnectionPool:
    """
    Get connection pool from app state.

    The pool is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.pool


def get_user_repository(request: Request) -> PostgresUserRepository:
    """Create user repository with connection pool from app state."""
    return PostgresUserRepository(get_pool(request))


def build_token_ledger(pool: ConnectionPool) -> PostgresConsumedTokenStore | None:
    """Consume-once ledger, only when single-use tokens are enabled."""
    if not get_auth_config().single_use_tokens:
        return None
    return PostgresConsumedTokenStore(pool)


def build_registration_workflow(pool: ConnectionPool) -> RegistrationWorkflow:
    """Wire the registration workflow against a connection pool."""
    return RegistrationWorkflow(
        users=PostgresUserRepository(pool),
        pending=PostgresPendingRegistrationRepository(pool),
        notifier=get_notifier(),
        codec=get_token_codec(),
        cipher=get_cipher_box(),
        config=get_auth_config(),
        token_ledger=build_token_ledger(pool),
    )


def get_registration_workflow(request: Request) -> RegistrationWorkflow:
    return build_registration_workflow(get_pool(request))


def get_session_workflow(request: Request) -> SessionWorkflow:
    return SessionWorkflow(users=get_user_repository(request), codec=get_token_codec())


def get_password_reset_workflow(request: Request) -> PasswordResetWorkflow:
    pool = get_pool(request)
    return PasswordResetWorkflow(
        users=PostgresUserRepository(pool),
        notifier=get_notifier(),
        codec=get_token_codec(),
        cipher=get_cipher_box(),
        config=get_auth_config(),
        token_ledger=build_token_ledger(pool),
    )


def get_email_verification_workflow(request: Request) -> EmailVerificationWorkflow:
    pool = get_pool(request)
    return EmailVerificationWorkflow(
        users=PostgresUserRepository(pool),
        notifier=get_notifier(),
        codec=get_token_codec(),
        config=get_auth_config(),
        token_ledger=build_token_ledger(pool),
    )


def get_user_administration(request: Request) -> UserAdministration:
    return UserAdministration(users=get_user_repository(request), config=get_auth_config())


# Bearer security scheme for OpenAPI documentation. Missing credentials
# are reported by get_current_user so every auth failure is a 401.
http_bearer = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(http_bearer),
    sessions: SessionWorkflow = Depends(get_session_workflow),
) -> User:
    """
    Resolve the user behind the ``Authorization: Bearer`` access token.

    Raises:
        Unauthenticated: Missing header, bad/expired/wrong-type token,
            or deleted user
    """
    if credentials is None:
        raise Unauthenticated("Invalid auth metadata")
    return sessions.authenticate(credentials.credentials)
