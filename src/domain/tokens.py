"""
TokenCodec - Signed, time-boxed, typed claim sets.

Tokens are HS256 JWTs (three base64url segments) carrying:

- sub:  User or PendingRegistration id
- type: TokenType discriminator
- iat / exp: issue and expiry timestamps (seconds)
- jti:  random token id, used by the optional consume-once ledger
- any embedded fields (plain or CipherBox ciphertext)

Signature validity alone never authorizes a step: consumers call
``TokenClaims.require()`` with the type they expect.
"""

import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from .config import AuthConfig
from .exceptions import InvalidTokenError, TokenTypeMismatch
from .ports import ConsumedTokenStore, Session, TokenType

logger = logging.getLogger(__name__)

RESERVED_CLAIMS = frozenset({"sub", "type", "iat", "exp", "jti"})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class TokenClaims:
    """Decoded and signature-checked token contents."""

    subject: str
    token_type: TokenType
    issued_at: datetime
    expires_at: datetime
    token_id: str
    fields: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "TokenClaims":
        try:
            token_type = TokenType(payload["type"])
        except ValueError as e:
            raise InvalidTokenError("Unknown token type") from e
        return cls(
            subject=payload["sub"],
            token_type=token_type,
            issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            token_id=payload["jti"],
            fields={k: v for k, v in payload.items() if k not in RESERVED_CLAIMS},
        )

    def require(self, expected: TokenType) -> "TokenClaims":
        """
        Check the token was minted for the step consuming it.

        Raises:
            TokenTypeMismatch: If the type differs from ``expected``
        """
        if self.token_type is not expected:
            raise TokenTypeMismatch(
                f"Expected {expected.value} token, got {self.token_type.value}"
            )
        return self

    def field_str(self, name: str) -> str:
        """
        Return an embedded string field.

        Raises:
            InvalidTokenError: If the field is missing or not a string
        """
        value = self.fields.get(name)
        if not isinstance(value, str):
            raise InvalidTokenError(f"Token is missing field {name!r}")
        return value


class TokenCodec:
    """Issue and verify typed tokens with the configured signing key."""

    def __init__(
        self, config: AuthConfig, clock: Callable[[], datetime] = _utcnow
    ) -> None:
        self._config = config
        self._clock = clock

    def issue(
        self,
        subject: str,
        token_type: TokenType,
        extra_claims: dict[str, Any] | None = None,
        ttl: timedelta | None = None,
    ) -> str:
        """
        Sign a token for ``subject``.

        Args:
            subject: User or PendingRegistration id
            token_type: Discriminator restricting the token to one step
            extra_claims: Embedded fields; reserved claim names are ignored
            ttl: Lifetime; defaults to the configured TTL for the type

        Returns:
            Encoded JWT string
        """
        if ttl is None:
            ttl = self._config.ttl_for(token_type)
        now = self._clock()
        payload: dict[str, Any] = {
            k: v for k, v in (extra_claims or {}).items() if k not in RESERVED_CLAIMS
        }
        payload.update(
            sub=str(subject),
            type=token_type.value,
            iat=int(now.timestamp()),
            exp=int((now + ttl).timestamp()),
            jti=uuid.uuid4().hex,
        )
        return jwt.encode(payload, self._config.signing_key, algorithm=self._config.algorithm)

    def verify(self, token: str) -> TokenClaims:
        """
        Check signature and expiry, then decode the claims.

        Raises:
            InvalidTokenError: Bad signature, expired, malformed,
                missing claims, or unknown type
        """
        if not token or not isinstance(token, str):
            raise InvalidTokenError("Empty token")
        try:
            payload = jwt.decode(
                token.strip(),
                self._config.signing_key,
                algorithms=[self._config.algorithm],
                options={"require": ["sub", "type", "iat", "exp", "jti"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise InvalidTokenError("Token expired") from e
        except jwt.PyJWTError as e:
            logger.debug("Token rejected: %s", e)
            raise InvalidTokenError("Token invalid") from e
        return TokenClaims.from_payload(payload)

    def issue_session(self, subject: str, user_summary: dict[str, str]) -> Session:
        """Mint an access + refresh pair carrying a public-safe user summary."""
        claims = {"user": user_summary}
        return Session(
            access_token=self.issue(subject, TokenType.ACCESS_TOKEN, claims),
            refresh_token=self.issue(subject, TokenType.REFRESH_TOKEN, claims),
        )


def consume_once(
    claims: TokenClaims, ledger: ConsumedTokenStore | None, config: AuthConfig
) -> bool:
    """
    Apply the consume-once ledger when single-use tokens are enabled.

    Returns:
        False only if the ledger is active for this token type and the
        token id was already consumed
    """
    if ledger is None or not config.is_single_use(claims.token_type):
        return True
    return ledger.consume(claims.token_id, claims.expires_at)
