# xchacha20_poly1305.py

from typing import Any, Dict, Optional

from Crypto.Cipher import ChaCha20_Poly1305

from jwk_kms.errors import InvalidNonceLength, InvalidTag
from jwk_kms.primitives.oct import OctKey


NONCE_LENGTH = 24
POLY1305_TAG_LENGTH = 16


class XChaCha20Poly1305(OctKey):
    """XChaCha20-Poly1305 AEAD. encrypt() returns ciphertext || 16-byte tag."""

    key_lengths = (256,)

    @classmethod
    def _cipher(cls, key: Dict[str, Any], nonce: bytes, additional_data: Optional[bytes]):
        raw_key = cls._key_bytes(key)
        if len(nonce) != NONCE_LENGTH:
            raise InvalidNonceLength(f"XChaCha20-Poly1305 nonce must be {NONCE_LENGTH} bytes, got {len(nonce)}")
        cipher = ChaCha20_Poly1305.new(key=raw_key, nonce=bytes(nonce))
        if additional_data:
            cipher.update(bytes(additional_data))
        return cipher

    @classmethod
    def encrypt(cls, key: Dict[str, Any], nonce: bytes, data: bytes,
                additional_data: Optional[bytes] = None) -> bytes:
        ciphertext, tag = cls._cipher(key, nonce, additional_data).encrypt_and_digest(bytes(data))
        return ciphertext + tag

    @classmethod
    def decrypt(cls, key: Dict[str, Any], nonce: bytes, data: bytes,
                additional_data: Optional[bytes] = None) -> bytes:
        cipher = cls._cipher(key, nonce, additional_data)
        data = bytes(data)
        if len(data) < POLY1305_TAG_LENGTH:
            raise InvalidTag("Ciphertext is shorter than the Poly1305 tag")
        ciphertext, tag = data[:-POLY1305_TAG_LENGTH], data[-POLY1305_TAG_LENGTH:]
        try:
            # pycryptodome compares tags through a keyed hash, not byte by byte
            return cipher.decrypt_and_verify(ciphertext, tag)
        except ValueError as e:
            raise InvalidTag("XChaCha20-Poly1305 authentication failed") from e
