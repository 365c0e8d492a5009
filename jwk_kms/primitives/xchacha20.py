# xchacha20.py

from typing import Any, Dict

from Crypto.Cipher import ChaCha20

from jwk_kms.errors import InvalidNonceLength
from jwk_kms.primitives.oct import OctKey


NONCE_LENGTH = 24


class XChaCha20(OctKey):
    """XChaCha20 stream cipher with a 24-byte extended nonce. Unauthenticated."""

    key_lengths = (256,)

    @classmethod
    def _cipher(cls, key: Dict[str, Any], nonce: bytes):
        raw_key = cls._key_bytes(key)
        if len(nonce) != NONCE_LENGTH:
            raise InvalidNonceLength(f"XChaCha20 nonce must be {NONCE_LENGTH} bytes, got {len(nonce)}")
        return ChaCha20.new(key=raw_key, nonce=bytes(nonce))

    @classmethod
    def encrypt(cls, key: Dict[str, Any], nonce: bytes, data: bytes) -> bytes:
        return cls._cipher(key, nonce).encrypt(bytes(data))

    @classmethod
    def decrypt(cls, key: Dict[str, Any], nonce: bytes, data: bytes) -> bytes:
        return cls._cipher(key, nonce).decrypt(bytes(data))
