"""
CipherBox - Authenticated encryption of short strings.

Embedded token fields (username, email, password hash, verification
code) travel inside signed tokens as ciphertext so the client can hold
intermediate workflow state without being able to read it.

Blob layout (base64-encoded as one string):

    nonce (12 bytes) || auth tag (16 bytes) || ciphertext

AES-256-GCM with a fresh random nonce per call. ``AESGCM.encrypt``
returns ``ciphertext || tag``; the tag is moved in front of the
ciphertext to keep the layout above.
"""

import base64
import binascii
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .config import AuthConfig
from .exceptions import DecryptionError

NONCE_BYTES = 12
TAG_BYTES = 16
MIN_BLOB_BYTES = NONCE_BYTES + TAG_BYTES


class CipherBox:
    """AES-256-GCM encrypt/decrypt bound to the configured key."""

    def __init__(self, config: AuthConfig) -> None:
        self._aead = AESGCM(config.encryption_key)

    def encrypt(self, plaintext: str) -> str:
        nonce = os.urandom(NONCE_BYTES)
        sealed = self._aead.encrypt(nonce, plaintext.encode("utf-8"), None)
        ciphertext, tag = sealed[:-TAG_BYTES], sealed[-TAG_BYTES:]
        return base64.b64encode(nonce + tag + ciphertext).decode("ascii")

    def decrypt(self, blob: str) -> str:
        """
        Decrypt a blob produced by encrypt().

        Raises:
            DecryptionError: Malformed base64, blob shorter than 28 bytes,
                tampered ciphertext, wrong key, or non-UTF-8 plaintext
        """
        if not isinstance(blob, str):
            raise DecryptionError("Ciphertext must be a string")
        try:
            raw = base64.b64decode(blob.encode("ascii"), validate=True)
        except (binascii.Error, UnicodeEncodeError) as e:
            raise DecryptionError("Ciphertext is not valid base64") from e

        if len(raw) < MIN_BLOB_BYTES:
            raise DecryptionError("Ciphertext is truncated")

        nonce = raw[:NONCE_BYTES]
        tag = raw[NONCE_BYTES:MIN_BLOB_BYTES]
        ciphertext = raw[MIN_BLOB_BYTES:]
        try:
            plaintext = self._aead.decrypt(nonce, ciphertext + tag, None)
        except InvalidTag as e:
            raise DecryptionError("Ciphertext failed authentication") from e

        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecryptionError("Plaintext is not valid UTF-8") from e
