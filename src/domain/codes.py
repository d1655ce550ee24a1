"""
Verification code generation.

Codes are single-use in intent: a code is only ever compared against
the ciphertext copy embedded in the token minted alongside it.
"""

import secrets

CODE_LENGTH = 6


def generate_verification_code(length: int = CODE_LENGTH) -> str:
    """
    Generate a cryptographically secure numeric verification code.

    Each digit is drawn uniformly with the secrets module, so every
    value 000000-999999 is equally likely. Returns a string to preserve
    leading zeros.
    """
    return "".join(secrets.choice("0123456789") for _ in range(length))


def codes_match(expected: str, supplied: str) -> bool:
    """Constant-time comparison of two codes."""
    return secrets.compare_digest(expected.encode(), supplied.encode())
