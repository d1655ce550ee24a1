"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- An AuthConfig with test secrets (fast bcrypt cost)
- TokenCodec and CipherBox bound to it
- In-memory repositories and a mock notifier
- Fully wired domain workflows
"""

from datetime import timedelta
from unittest.mock import Mock

import pytest

from src.domain.config import AuthConfig
from src.domain.crypto import CipherBox
from src.domain.email_verification import EmailVerificationWorkflow
from src.domain.passwords import hash_password
from src.domain.password_reset import PasswordResetWorkflow
from src.domain.ports import User
from src.domain.registration import RegistrationWorkflow
from src.domain.sessions import SessionWorkflow
from src.domain.tokens import TokenCodec
from src.domain.users import UserAdministration
from tests.fakes import (
    InMemoryConsumedTokenStore,
    InMemoryPendingRegistrationRepository,
    InMemoryUserRepository,
)

SIGNING_SECRET = "test-signing-secret-0123456789abcdef"
ENCRYPTION_SECRET = "test-encryption-secret-0123456789abcdef"
TEST_BCRYPT_COST = 4


def make_auth_config(**overrides: object) -> AuthConfig:
    """Build a test AuthConfig; keyword arguments override defaults."""
    options: dict[str, object] = {
        "access_token_ttl": timedelta(hours=1),
        "refresh_token_ttl": timedelta(days=7),
        "bcrypt_cost": TEST_BCRYPT_COST,
    }
    options.update(overrides)
    return AuthConfig.from_secrets(SIGNING_SECRET, ENCRYPTION_SECRET, **options)


@pytest.fixture
def auth_config() -> AuthConfig:
    return make_auth_config()


@pytest.fixture
def codec(auth_config: AuthConfig) -> TokenCodec:
    return TokenCodec(auth_config)


@pytest.fixture
def cipher(auth_config: AuthConfig) -> CipherBox:
    return CipherBox(auth_config)


@pytest.fixture
def users() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture
def pending() -> InMemoryPendingRegistrationRepository:
    return InMemoryPendingRegistrationRepository()


@pytest.fixture
def ledger() -> InMemoryConsumedTokenStore:
    return InMemoryConsumedTokenStore()


@pytest.fixture
def notifier() -> Mock:
    return Mock()


@pytest.fixture
def registration(
    users: InMemoryUserRepository,
    pending: InMemoryPendingRegistrationRepository,
    notifier: Mock,
    codec: TokenCodec,
    cipher: CipherBox,
    auth_config: AuthConfig,
) -> RegistrationWorkflow:
    return RegistrationWorkflow(
        users=users,
        pending=pending,
        notifier=notifier,
        codec=codec,
        cipher=cipher,
        config=auth_config,
    )


@pytest.fixture
def sessions(users: InMemoryUserRepository, codec: TokenCodec) -> SessionWorkflow:
    return SessionWorkflow(users=users, codec=codec)


@pytest.fixture
def password_reset(
    users: InMemoryUserRepository,
    notifier: Mock,
    codec: TokenCodec,
    cipher: CipherBox,
    auth_config: AuthConfig,
) -> PasswordResetWorkflow:
    return PasswordResetWorkflow(
        users=users, notifier=notifier, codec=codec, cipher=cipher, config=auth_config
    )


@pytest.fixture
def email_verification(
    users: InMemoryUserRepository,
    notifier: Mock,
    codec: TokenCodec,
    auth_config: AuthConfig,
) -> EmailVerificationWorkflow:
    return EmailVerificationWorkflow(
        users=users, notifier=notifier, codec=codec, config=auth_config
    )


@pytest.fixture
def admin(users: InMemoryUserRepository, auth_config: AuthConfig) -> UserAdministration:
    return UserAdministration(users=users, config=auth_config)


@pytest.fixture
def alice(users: InMemoryUserRepository) -> User:
    """A confirmed user: alice / a@x.com / secret1."""
    return users.create("alice", "a@x.com", hash_password("secret1", rounds=TEST_BCRYPT_COST))
