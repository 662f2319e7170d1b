"""
Envelope encryption for custodial private keys.

AES-256-GCM keyed by the process master key. Each call draws a fresh random
16-byte IV; the 16-byte GCM tag is stored beside the ciphertext. All three
parts are hex-encoded for storage.

Security Note:
    Never log plaintext, ciphertext or the master key.
"""
import os
from dataclasses import dataclass

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .errors import ConfigurationError, IntegrityError

KEY_LENGTH = 32  # AES-256
IV_SIZE = 16
TAG_SIZE = 16


@dataclass(frozen=True)
class Envelope:
    """Encrypted private key as stored: hex ciphertext, IV and auth tag."""
    ciphertext: str
    iv: str
    auth_tag: str


class CipherService:
    """Encrypts and decrypts key material with a single master key."""

    def __init__(self, master_key: bytes):
        if not isinstance(master_key, bytes) or len(master_key) != KEY_LENGTH:
            raise ConfigurationError(f"Master key must be exactly {KEY_LENGTH} bytes")
        self._aead = AESGCM(master_key)

    def __repr__(self):
        return '<CipherService aes-256-gcm>'

    def encrypt(self, plaintext: str) -> Envelope:
        iv = os.urandom(IV_SIZE)
        sealed = self._aead.encrypt(iv, plaintext.encode('utf-8'), None)
        # AESGCM appends the tag to the ciphertext.
        return Envelope(
            ciphertext=sealed[:-TAG_SIZE].hex(),
            iv=iv.hex(),
            auth_tag=sealed[-TAG_SIZE:].hex(),
        )

    def decrypt(self, envelope: Envelope) -> str:
        """Return the plaintext of ``envelope``.

        Raises:
            IntegrityError: If the envelope is malformed or fails authentication
                (tampered data, wrong master key or corrupted IV).
        """
        try:
            ciphertext = bytes.fromhex(envelope.ciphertext)
            iv = bytes.fromhex(envelope.iv)
            tag = bytes.fromhex(envelope.auth_tag)
        except (TypeError, ValueError):
            raise IntegrityError('envelope is not valid hex') from None
        if len(iv) != IV_SIZE or len(tag) != TAG_SIZE:
            raise IntegrityError('envelope has wrong IV or tag length')

        try:
            plaintext = self._aead.decrypt(iv, ciphertext + tag, None)
        except InvalidTag:
            raise IntegrityError('authentication tag mismatch') from None
        return plaintext.decode('utf-8')
