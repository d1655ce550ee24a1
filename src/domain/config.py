"""
Auth configuration - Immutable process-wide secret material.

Built once at process start (see src.config.settings.build_auth_config)
and injected into TokenCodec and CipherBox. Components never read the
environment themselves.
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import assert_never

from .exceptions import ConfigurationError
from .ports import TokenType

ENCRYPTION_KEY_BYTES = 32
MIN_SIGNING_KEY_BYTES = 32


def derive_encryption_key(secret: str | None) -> bytes:
    """
    Turn an operator-provided secret into a 32-byte AES-256 key.

    Longer secrets are truncated to their first 32 UTF-8 bytes.

    Raises:
        ConfigurationError: If the secret is missing or shorter than 32 bytes
    """
    raw = (secret or "").strip().encode("utf-8")
    if not raw:
        raise ConfigurationError("Encryption key not found")
    if len(raw) < ENCRYPTION_KEY_BYTES:
        raise ConfigurationError(
            f"Encryption key must be at least {ENCRYPTION_KEY_BYTES} bytes"
        )
    return raw[:ENCRYPTION_KEY_BYTES]


@dataclass(frozen=True)
class AuthConfig:
    """Signing key, encryption key and token lifetimes."""

    signing_key: str
    encryption_key: bytes
    access_token_ttl: timedelta
    refresh_token_ttl: timedelta
    verification_token_ttl: timedelta = timedelta(minutes=2)
    email_verify_token_ttl: timedelta = timedelta(days=2)
    algorithm: str = "HS256"
    bcrypt_cost: int = 10
    single_use_tokens: bool = False

    def __post_init__(self) -> None:
        if len(self.signing_key.encode("utf-8")) < MIN_SIGNING_KEY_BYTES:
            raise ConfigurationError(
                f"JWT secret must be at least {MIN_SIGNING_KEY_BYTES} bytes"
            )
        if len(self.encryption_key) != ENCRYPTION_KEY_BYTES:
            raise ConfigurationError(
                f"Encryption key must be exactly {ENCRYPTION_KEY_BYTES} bytes"
            )

    @classmethod
    def from_secrets(
        cls, signing_secret: str | None, encryption_secret: str | None, **kwargs: object
    ) -> "AuthConfig":
        """Build a config from raw secrets, deriving the encryption key."""
        if not (signing_secret or "").strip():
            raise ConfigurationError("JWT secret not found")
        return cls(
            signing_key=signing_secret.strip(),
            encryption_key=derive_encryption_key(encryption_secret),
            **kwargs,
        )

    def ttl_for(self, token_type: TokenType) -> timedelta:
        """Default lifetime for each token type."""
        if token_type is TokenType.ACCESS_TOKEN:
            return self.access_token_ttl
        elif token_type is TokenType.REFRESH_TOKEN:
            return self.refresh_token_ttl
        elif token_type is TokenType.REGISTER_TOKEN:
            return self.verification_token_ttl
        elif token_type is TokenType.PASSWORD_VERIFY:
            return self.verification_token_ttl
        elif token_type is TokenType.PASSWORD_RESET:
            return self.verification_token_ttl
        elif token_type is TokenType.EMAIL_VERIFY:
            return self.email_verify_token_ttl
        else:
            assert_never(token_type)

    def is_single_use(self, token_type: TokenType) -> bool:
        """Whether the consume-once ledger applies to this token type."""
        if not self.single_use_tokens:
            return False
        if token_type is TokenType.ACCESS_TOKEN:
            return False
        elif token_type is TokenType.REFRESH_TOKEN:
            return False
        elif token_type is TokenType.REGISTER_TOKEN:
            return True
        elif token_type is TokenType.PASSWORD_VERIFY:
            return True
        elif token_type is TokenType.PASSWORD_RESET:
            return True
        elif token_type is TokenType.EMAIL_VERIFY:
            return True
        else:
            assert_never(token_type)
