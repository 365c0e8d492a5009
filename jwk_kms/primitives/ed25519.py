# ed25519.py

import logging
from typing import Any, Dict

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey, Ed25519PublicKey
from cryptography.hazmat.primitives.serialization import Encoding, NoEncryption, PrivateFormat, PublicFormat
from nacl import bindings as sodium
from nacl import exceptions as sodium_exceptions

from jwk_kms import jwk as jwk_model
from jwk_kms.errors import InvalidKeyLength, InvalidPublicKey, InvalidSignatureEncoding
from jwk_kms.primitives.x25519 import X25519
from jwk_kms.utils.convert import b64url, b64url_decode


KEY_LENGTH = 32
SIGNATURE_LENGTH = 64


def _raw_public(private_object: Ed25519PrivateKey) -> bytes:
    return private_object.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)


class Ed25519:
    """EdDSA over edwards25519 (RFC 8032). Messages are signed as-is, no pre-hash."""

    crv = "Ed25519"
    alg = "EdDSA"

    @classmethod
    def generate_key(cls) -> Dict[str, Any]:
        seed = Ed25519PrivateKey.generate().private_bytes(Encoding.Raw, PrivateFormat.Raw, NoEncryption())
        return cls.bytes_to_private_key(private_key_bytes=seed)

    @classmethod
    def bytes_to_private_key(cls, private_key_bytes: bytes) -> Dict[str, Any]:
        if len(private_key_bytes) != KEY_LENGTH:
            raise InvalidKeyLength(f"Ed25519 private key must be {KEY_LENGTH} bytes, got {len(private_key_bytes)}")
        public_raw = _raw_public(Ed25519PrivateKey.from_private_bytes(bytes(private_key_bytes)))
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
            raise InvalidKeyLength(f"Ed25519 public key must be {KEY_LENGTH} bytes, got {len(public_key_bytes)}")
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
        private_object = Ed25519PrivateKey.from_private_bytes(b64url_decode(key["d"]))
        public_key = {"kty": "OKP", "crv": cls.crv, "x": b64url(_raw_public(private_object))}
        if "alg" in key:
            public_key["alg"] = key["alg"]
        public_key["kid"] = key.get("kid") or jwk_model.compute_jwk_thumbprint(public_key)
        return public_key

    @classmethod
    def get_public_key(cls, key: Dict[str, Any]) -> Dict[str, Any]:
        jwk_model.require_private_key(key, "OKP", cls.crv)
        return cls.compute_public_key(key=key)

    @classmethod
    def sign(cls, key: Dict[str, Any], data: bytes) -> bytes:
        jwk_model.require_private_key(key, "OKP", cls.crv)
        return Ed25519PrivateKey.from_private_bytes(b64url_decode(key["d"])).sign(bytes(data))

    @classmethod
    def verify(cls, key: Dict[str, Any], signature: bytes, data: bytes) -> bool:
        jwk_model.require_public_key(key, "OKP", cls.crv)
        if len(signature) != SIGNATURE_LENGTH:
            raise InvalidSignatureEncoding(f"Ed25519 signature must be {SIGNATURE_LENGTH} bytes, got {len(signature)}")
        public_object = Ed25519PublicKey.from_public_bytes(b64url_decode(key["x"]))
        try:
            public_object.verify(bytes(signature), bytes(data))
        except InvalidSignature:
            return False
        return True

    # --- conversion to X25519 ---
    @classmethod
    def convert_private_key_to_x25519(cls, private_key: Dict[str, Any]) -> Dict[str, Any]:
        jwk_model.require_private_key(private_key, "OKP", cls.crv)
        seed = b64url_decode(private_key["d"])
        # libsodium expects the 64-byte secret key: seed || public key
        secret_key = seed + b64url_decode(private_key["x"])
        x25519_private = sodium.crypto_sign_ed25519_sk_to_curve25519(secret_key)
        return X25519.bytes_to_private_key(private_key_bytes=x25519_private)

    @classmethod
    def convert_public_key_to_x25519(cls, public_key: Dict[str, Any]) -> Dict[str, Any]:
        jwk_model.require_public_key(public_key, "OKP", cls.crv)
        public_raw = b64url_decode(public_key["x"])
        if not cls.validate_public_key(public_key_bytes=public_raw):
            raise InvalidPublicKey("Invalid public key")
        try:
            x25519_public = sodium.crypto_sign_ed25519_pk_to_curve25519(public_raw)
        except sodium_exceptions.CryptoError as e:
            logging.warning("Ed25519 to X25519 conversion failed: %s", str(e))
            raise InvalidPublicKey("Invalid public key") from e
        return X25519.bytes_to_public_key(public_key_bytes=x25519_public)

    # --- validation ---
    @classmethod
    def validate_private_key(cls, private_key_bytes: bytes) -> bool:
        return isinstance(private_key_bytes, (bytes, bytearray)) and len(private_key_bytes) == KEY_LENGTH

    @classmethod
    def validate_public_key(cls, public_key_bytes: bytes) -> bool:
        if not isinstance(public_key_bytes, (bytes, bytearray)) or len(public_key_bytes) != KEY_LENGTH:
            return False
        return bool(sodium.crypto_core_ed25519_is_valid_point(bytes(public_key_bytes)))
