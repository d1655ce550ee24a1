"""
Password hashing - bcrypt with a configurable cost factor.

bcrypt only looks at the first 72 bytes of its input, and current
bcrypt releases reject longer inputs, so passwords are truncated to 72
bytes before hashing and before comparison.
"""

import bcrypt

MAX_PASSWORD_BYTES = 72

# Pre-computed hash compared against when a login names an unknown user,
# so the missing-user path costs the same bcrypt round as a bad password.
_DUMMY_BCRYPT_HASH = bcrypt.hashpw(b"dummy_password_for_timing_safety", bcrypt.gensalt(10)).decode()


def _pwd_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:MAX_PASSWORD_BYTES]


def hash_password(password: str, rounds: int = 10) -> str:
    """Hash a password with bcrypt (cost factor >= 10)."""
    return bcrypt.hashpw(_pwd_bytes(password), bcrypt.gensalt(rounds=rounds)).decode()


def verify_password(password: str, password_hash: str | None) -> bool:
    """
    Compare a password against a stored hash in constant time.

    A missing hash is compared against a dummy hash and always fails.
    """
    if not password_hash:
        bcrypt.checkpw(_pwd_bytes(password), _DUMMY_BCRYPT_HASH.encode())
        return False
    try:
        return bcrypt.checkpw(_pwd_bytes(password), password_hash.encode())
    except ValueError:
        return False
