# oct.py
#
# Symmetric ("oct") JWK helpers shared by the cipher primitives.

import os
from typing import Any, Dict, Iterable

from jwk_kms import jwk as jwk_model
from jwk_kms.errors import InvalidKeyLength, InvalidKeyType
from jwk_kms.utils.convert import b64url, b64url_decode


class OctKey:
    """Mixin for primitives keyed by a symmetric JWK {"kty": "oct", "k": ...}."""

    key_lengths: Iterable[int] = (128, 192, 256)

    @classmethod
    def generate_key(cls, length: int = 256) -> Dict[str, Any]:
        if length not in cls.key_lengths:
            raise InvalidKeyLength(f"{cls.__name__} key length must be one of {list(cls.key_lengths)} bits, got {length}")
        return cls.bytes_to_private_key(private_key_bytes=os.urandom(length // 8))

    @classmethod
    def bytes_to_private_key(cls, private_key_bytes: bytes) -> Dict[str, Any]:
        private_key = {"kty": "oct", "k": b64url(bytes(private_key_bytes))}
        private_key["kid"] = jwk_model.compute_jwk_thumbprint(private_key)
        return private_key

    @classmethod
    def private_key_to_bytes(cls, private_key: Dict[str, Any]) -> bytes:
        if not jwk_model.is_oct_jwk(private_key):
            raise InvalidKeyType("Expected a symmetric (oct) JWK")
        return b64url_decode(private_key["k"])

    @classmethod
    def _key_bytes(cls, key: Dict[str, Any]) -> bytes:
        """Extract and size-check the raw key at an operation's entry point."""
        raw = cls.private_key_to_bytes(private_key=key)
        if len(raw) * 8 not in cls.key_lengths:
            raise InvalidKeyLength(f"{cls.__name__} key length must be one of {list(cls.key_lengths)} bits, got {len(raw) * 8}")
        return raw
