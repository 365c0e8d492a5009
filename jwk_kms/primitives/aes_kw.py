# aes_kw.py

from typing import Any, Dict

from cryptography.hazmat.primitives.keywrap import InvalidUnwrap, aes_key_unwrap, aes_key_wrap

from jwk_kms.errors import InvalidKeyLength, InvalidTag
from jwk_kms.primitives.oct import OctKey


class AesKw(OctKey):
    """AES key wrap (RFC 3394). Keys in and out are oct JWKs."""

    key_lengths = (128, 192, 256)

    @classmethod
    def wrap_key(cls, data_key: Dict[str, Any], encryption_key: Dict[str, Any]) -> bytes:
        wrapping_key = cls._key_bytes(encryption_key)
        raw = cls.private_key_to_bytes(private_key=data_key)
        if len(raw) < 16 or len(raw) % 8:
            raise InvalidKeyLength("Wrapped key must be at least 16 bytes and a multiple of 8 bytes")
        return aes_key_wrap(wrapping_key, raw)

    @classmethod
    def unwrap_key(cls, wrapped_key_bytes: bytes, wrapped_key_algorithm: str,
                   decryption_key: Dict[str, Any]) -> Dict[str, Any]:
        unwrapping_key = cls._key_bytes(decryption_key)
        try:
            raw = aes_key_unwrap(unwrapping_key, bytes(wrapped_key_bytes))
        except InvalidUnwrap as e:
            raise InvalidTag("AES-KW integrity check failed") from e
        except ValueError as e:
            raise InvalidKeyLength(str(e)) from e
        unwrapped = cls.bytes_to_private_key(private_key_bytes=raw)
        unwrapped["alg"] = wrapped_key_algorithm
        return unwrapped
