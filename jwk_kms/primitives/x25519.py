# x25519.py

from typing import Any, Dict

from cryptography.hazmat.primitives.asymmetric.x25519 import X25519PrivateKey, X25519PublicKey
from cryptography.hazmat.primitives.serialization import Encoding, NoEncryption, PrivateFormat, PublicFormat

from jwk_kms import jwk as jwk_model
from jwk_kms.errors import InvalidKeyLength, InvalidPublicKey, SameKeyPairError
from jwk_kms.utils.convert import b64url, b64url_decode


KEY_LENGTH = 32


def _raw_public(public_key: X25519PublicKey) -> bytes:
    return public_key.public_bytes(Encoding.Raw, PublicFormat.Raw)


class X25519:
    """Montgomery-form key agreement (RFC 7748). No signatures."""

    crv = "X25519"

    @classmethod
    def generate_key(cls) -> Dict[str, Any]:
        raw = X25519PrivateKey.generate().private_bytes(Encoding.Raw, PrivateFormat.Raw, NoEncryption())
        return cls.bytes_to_private_key(private_key_bytes=raw)

    @classmethod
    def bytes_to_private_key(cls, private_key_bytes: bytes) -> Dict[str, Any]:
        if len(private_key_bytes) != KEY_LENGTH:
            raise InvalidKeyLength(f"X25519 private key must be {KEY_LENGTH} bytes, got {len(private_key_bytes)}")
        public_raw = _raw_public(X25519PrivateKey.from_private_bytes(bytes(private_key_bytes)).public_key())
        private_key = {"kty": "OKP", "crv": cls.crv, "d": b64url(bytes(private_key_bytes)), "x": b64url(public_raw)}
        private_key["kid"] = jwk_model.compute_jwk_thumbprint(private_key)
        return private_key

    @classmethod
    def private_key_to_bytes(cls, private_key: Dict[str, Any]) -> bytes:
        jwk_model.require_private_key(private_key, "OKP", cls.crv)
        return b64url_decode(private_key["d"])

    @classmethod
    def bytes_to_public_key(cls, public_key_bytes: bytes) -> Dict[str, Any]:
        if len(public_key_bytes) != KEY_LENGTH:
            raise InvalidKeyLength(f"X25519 public key must be {KEY_LENGTH} bytes, got {len(public_key_bytes)}")
        public_key = {"kty": "OKP", "crv": cls.crv, "x": b64url(bytes(public_key_bytes))}
        public_key["kid"] = jwk_model.compute_jwk_thumbprint(public_key)
        return public_key

    @classmethod
    def public_key_to_bytes(cls, public_key: Dict[str, Any]) -> bytes:
        jwk_model.require_public_key(public_key, "OKP", cls.crv)
        return b64url_decode(public_key["x"])

    @classmethod
    def compute_public_key(cls, key: Dict[str, Any]) -> Dict[str, Any]:
        jwk_model.require_private_key(key, "OKP", cls.crv)
        private_object = X25519PrivateKey.from_private_bytes(b64url_decode(key["d"]))
        public_key = {"kty": "OKP", "crv": cls.crv, "x": b64url(_raw_public(private_object.public_key()))}
        if "alg" in key:
            public_key["alg"] = key["alg"]
        public_key["kid"] = key.get("kid") or jwk_model.compute_jwk_thumbprint(public_key)
        return public_key

    @classmethod
    def get_public_key(cls, key: Dict[str, Any]) -> Dict[str, Any]:
        jwk_model.require_private_key(key, "OKP", cls.crv)
        return cls.compute_public_key(key=key)

    @classmethod
    def shared_secret(cls, private_key_a: Dict[str, Any], public_key_b: Dict[str, Any]) -> bytes:
        jwk_model.require_private_key(private_key_a, "OKP", cls.crv)
        jwk_model.require_public_key(public_key_b, "OKP", cls.crv)
        private_object = X25519PrivateKey.from_private_bytes(b64url_decode(private_key_a["d"]))
        peer_raw = b64url_decode(public_key_b["x"])
        if _raw_public(private_object.public_key()) == peer_raw:
            raise SameKeyPairError("Key agreement between a key and its own public key is not allowed")
        try:
            return private_object.exchange(X25519PublicKey.from_public_bytes(peer_raw))
        except ValueError as e:
            # all-zero output: the peer sent a low-order point
            raise InvalidPublicKey("X25519 public key is a low-order point") from e

    @classmethod
    def validate_private_key(cls, private_key_bytes: bytes) -> bool:
        return isinstance(private_key_bytes, (bytes, bytearray)) and len(private_key_bytes) == KEY_LENGTH

    @classmethod
    def validate_public_key(cls, public_key_bytes: bytes) -> bool:
        return isinstance(public_key_bytes, (bytes, bytearray)) and len(public_key_bytes) == KEY_LENGTH
