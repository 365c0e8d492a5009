# weierstrass.py
#
# Shared implementation for the short-Weierstrass curves (secp256k1, P-256).
# Subclasses only bind the curve parameters.

import logging
from typing import Any, Dict, NamedTuple

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import decode_dss_signature, encode_dss_signature
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from jwk_kms import jwk as jwk_model
from jwk_kms.errors import (
    InvalidKeyLength,
    InvalidPoint,
    InvalidSignatureEncoding,
    SameKeyPairError,
)
from jwk_kms.utils.convert import b64url, b64url_decode, int_from_bytes, int_to_fixed


SCALAR_LENGTH = 32
COMPRESSED_POINT_LENGTH = 33
UNCOMPRESSED_POINT_LENGTH = 65

_ASN1_SEQUENCE = 0x30
_ASN1_INTEGER = 0x02


class CurvePoint(NamedTuple):
    x: bytes
    y: bytes


class _DerCursor:
    """Reads definite-length DER elements from a byte string, one at a time."""

    def __init__(self, data: bytes, start: int = 0, end: int = None):
        self.data = data
        self.pos = start
        self.end = len(data) if end is None else end

    def at_end(self) -> bool:
        return self.pos == self.end

    def _read_byte(self) -> int:
        if self.pos >= self.end:
            raise InvalidSignatureEncoding("DER signature is truncated")
        b = self.data[self.pos]
        self.pos += 1
        return b

    def read_tag(self, expected: int) -> None:
        tag = self._read_byte()
        if tag != expected:
            raise InvalidSignatureEncoding(f"Unexpected DER tag 0x{tag:02x}, expected 0x{expected:02x}")

    def read_length(self) -> int:
        first = self._read_byte()
        if first < 0x80:
            length = first
        elif first == 0x81:
            length = self._read_byte()
            if length < 0x80:
                raise InvalidSignatureEncoding("DER length is not minimally encoded")
        else:
            # an ECDSA signature over a 256-bit curve never needs more than one length byte
            raise InvalidSignatureEncoding("Unsupported DER length encoding")
        if length > self.end - self.pos:
            raise InvalidSignatureEncoding("DER length exceeds available bytes")
        return length

    def read_bytes(self, length: int) -> bytes:
        if length > self.end - self.pos:
            raise InvalidSignatureEncoding("DER signature is truncated")
        chunk = self.data[self.pos:self.pos + length]
        self.pos += length
        return chunk

    def read_unsigned_integer(self, width: int) -> bytes:
        """Read an INTEGER, strip its sign padding and left-pad it to `width` bytes."""
        self.read_tag(_ASN1_INTEGER)
        length = self.read_length()
        if length == 0:
            raise InvalidSignatureEncoding("DER integer has zero length")
        value = self.read_bytes(length)
        if value[0] & 0x80:
            raise InvalidSignatureEncoding("DER integer is negative")
        if length > 1 and value[0] == 0x00:
            if not value[1] & 0x80:
                raise InvalidSignatureEncoding("DER integer has superfluous leading zero")
            value = value[1:]
        if len(value) > width:
            raise InvalidSignatureEncoding("DER integer is wider than the curve order")
        return value.rjust(width, b"\x00")


class WeierstrassCurve:
    """ECDSA / ECDH over a short-Weierstrass curve, keys as JWK dicts."""

    curve: ec.EllipticCurve = None
    crv: str = None
    alg: str = None
    order: int = None

    # --- internal conversions ---
    @classmethod
    def _private_key_object(cls, private_key: Dict[str, Any]) -> ec.EllipticCurvePrivateKey:
        d = int_from_bytes(b64url_decode(private_key["d"]))
        try:
            return ec.derive_private_key(d, cls.curve)
        except ValueError as e:
            raise InvalidKeyLength(f"{cls.crv} private scalar is out of range") from e

    @classmethod
    def _public_key_object(cls, public_key: Dict[str, Any]) -> ec.EllipticCurvePublicKey:
        encoded = b"\x04" + b64url_decode(public_key["x"]) + b64url_decode(public_key["y"])
        return cls._load_point(encoded)

    @classmethod
    def _load_point(cls, encoded: bytes) -> ec.EllipticCurvePublicKey:
        if len(encoded) not in (COMPRESSED_POINT_LENGTH, UNCOMPRESSED_POINT_LENGTH):
            raise InvalidPoint(f"{cls.crv} point must be {COMPRESSED_POINT_LENGTH} or {UNCOMPRESSED_POINT_LENGTH} bytes, got {len(encoded)}")
        try:
            return ec.EllipticCurvePublicKey.from_encoded_point(cls.curve, encoded)
        except ValueError as e:
            raise InvalidPoint(f"Invalid {cls.crv} point") from e

    @classmethod
    def _jwk_from_public_object(cls, public_key: ec.EllipticCurvePublicKey) -> Dict[str, Any]:
        numbers = public_key.public_numbers()
        return {
            "kty": "EC",
            "crv": cls.crv,
            "x": b64url(int_to_fixed(numbers.x, SCALAR_LENGTH)),
            "y": b64url(int_to_fixed(numbers.y, SCALAR_LENGTH)),
        }

    # --- key generation and encodings ---
    @classmethod
    def generate_key(cls) -> Dict[str, Any]:
        private_value = ec.generate_private_key(cls.curve).private_numbers().private_value
        return cls.bytes_to_private_key(private_key_bytes=int_to_fixed(private_value, SCALAR_LENGTH))

    @classmethod
    def bytes_to_private_key(cls, private_key_bytes: bytes) -> Dict[str, Any]:
        if len(private_key_bytes) != SCALAR_LENGTH:
            raise InvalidKeyLength(f"{cls.crv} private key must be {SCALAR_LENGTH} bytes, got {len(private_key_bytes)}")
        try:
            key = ec.derive_private_key(int_from_bytes(private_key_bytes), cls.curve)
        except ValueError as e:
            raise InvalidKeyLength(f"{cls.crv} private scalar is out of range") from e
        private_key = cls._jwk_from_public_object(key.public_key())
        private_key["d"] = b64url(bytes(private_key_bytes))
        private_key["kid"] = jwk_model.compute_jwk_thumbprint(private_key)
        return private_key

    @classmethod
    def private_key_to_bytes(cls, private_key: Dict[str, Any]) -> bytes:
        jwk_model.require_private_key(private_key, "EC", cls.crv)
        return b64url_decode(private_key["d"])

    @classmethod
    def bytes_to_public_key(cls, public_key_bytes: bytes) -> Dict[str, Any]:
        point = cls.get_curve_point(key_bytes=public_key_bytes)
        public_key = {"kty": "EC", "crv": cls.crv, "x": b64url(point.x), "y": b64url(point.y)}
        public_key["kid"] = jwk_model.compute_jwk_thumbprint(public_key)
        return public_key

    @classmethod
    def public_key_to_bytes(cls, public_key: Dict[str, Any]) -> bytes:
        """Uncompressed SEC1 encoding: 0x04 || x || y."""
        jwk_model.require_public_key(public_key, "EC", cls.crv)
        return b"\x04" + b64url_decode(public_key["x"]) + b64url_decode(public_key["y"])

    @classmethod
    def compute_public_key(cls, key: Dict[str, Any]) -> Dict[str, Any]:
        jwk_model.require_private_key(key, "EC", cls.crv)
        public_key = cls._jwk_from_public_object(cls._private_key_object(key).public_key())
        if "alg" in key:
            public_key["alg"] = key["alg"]
        public_key["kid"] = key.get("kid") or jwk_model.compute_jwk_thumbprint(public_key)
        return public_key

    @classmethod
    def get_public_key(cls, key: Dict[str, Any]) -> Dict[str, Any]:
        """Like compute_public_key, but refuses public keys and keys of another curve."""
        jwk_model.require_private_key(key, "EC", cls.crv)
        return cls.compute_public_key(key=key)

    # --- point encodings ---
    @classmethod
    def get_curve_point(cls, key_bytes: bytes) -> CurvePoint:
        numbers = cls._load_point(bytes(key_bytes)).public_numbers()
        return CurvePoint(int_to_fixed(numbers.x, SCALAR_LENGTH), int_to_fixed(numbers.y, SCALAR_LENGTH))

    @classmethod
    def compress_public_key(cls, public_key_bytes: bytes) -> bytes:
        if len(public_key_bytes) != UNCOMPRESSED_POINT_LENGTH:
            raise InvalidPoint(f"Uncompressed {cls.crv} point must be {UNCOMPRESSED_POINT_LENGTH} bytes")
        return cls._load_point(bytes(public_key_bytes)).public_bytes(Encoding.X962, PublicFormat.CompressedPoint)

    @classmethod
    def decompress_public_key(cls, public_key_bytes: bytes) -> bytes:
        if len(public_key_bytes) != COMPRESSED_POINT_LENGTH:
            raise InvalidPoint(f"Compressed {cls.crv} point must be {COMPRESSED_POINT_LENGTH} bytes")
        return cls._load_point(bytes(public_key_bytes)).public_bytes(Encoding.X962, PublicFormat.UncompressedPoint)

    # --- key agreement ---
    @classmethod
    def shared_secret(cls, private_key_a: Dict[str, Any], public_key_b: Dict[str, Any]) -> bytes:
        """ECDH; returns the 32-byte x-coordinate of the shared point."""
        jwk_model.require_private_key(private_key_a, "EC", cls.crv)
        jwk_model.require_public_key(public_key_b, "EC", cls.crv)
        private_object = cls._private_key_object(private_key_a)
        own_public = private_object.public_key().public_bytes(Encoding.X962, PublicFormat.UncompressedPoint)
        if own_public == cls.public_key_to_bytes(public_key=public_key_b):
            raise SameKeyPairError("Key agreement between a key and its own public key is not allowed")
        return private_object.exchange(ec.ECDH(), cls._public_key_object(public_key_b))

    # --- signatures ---
    @classmethod
    def _check_compact(cls, signature: bytes) -> None:
        if len(signature) != 2 * SCALAR_LENGTH:
            raise InvalidSignatureEncoding(f"Compact signature must be {2 * SCALAR_LENGTH} bytes, got {len(signature)}")

    @classmethod
    def sign(cls, key: Dict[str, Any], data: bytes) -> bytes:
        """ECDSA over SHA-256(data), returned as a low-S compact r || s."""
        jwk_model.require_private_key(key, "EC", cls.crv)
        der = cls._private_key_object(key).sign(bytes(data), ec.ECDSA(hashes.SHA256()))
        r, s = decode_dss_signature(der)
        signature = int_to_fixed(r, SCALAR_LENGTH) + int_to_fixed(s, SCALAR_LENGTH)
        return cls.adjust_signature_to_low_s(signature=signature)

    @classmethod
    def verify(cls, key: Dict[str, Any], signature: bytes, data: bytes) -> bool:
        """Accepts both low-S and high-S signatures."""
        jwk_model.require_public_key(key, "EC", cls.crv)
        cls._check_compact(signature)
        public_object = cls._public_key_object(key)
        r = int_from_bytes(signature[:SCALAR_LENGTH])
        s = int_from_bytes(signature[SCALAR_LENGTH:])
        if not (0 < r < cls.order and 0 < s < cls.order):
            return False
        try:
            public_object.verify(encode_dss_signature(r, s), bytes(data), ec.ECDSA(hashes.SHA256()))
        except InvalidSignature:
            return False
        return True

    @classmethod
    def adjust_signature_to_low_s(cls, signature: bytes) -> bytes:
        cls._check_compact(signature)
        s = int_from_bytes(signature[SCALAR_LENGTH:])
        if s > cls.order // 2:
            s = cls.order - s
            return bytes(signature[:SCALAR_LENGTH]) + int_to_fixed(s, SCALAR_LENGTH)
        return bytes(signature)

    @classmethod
    def convert_der_to_compact_signature(cls, der_signature: bytes) -> bytes:
        der_signature = bytes(der_signature)
        cursor = _DerCursor(der_signature)
        cursor.read_tag(_ASN1_SEQUENCE)
        length = cursor.read_length()
        if cursor.pos + length != len(der_signature):
            raise InvalidSignatureEncoding("DER sequence length does not match signature length")
        body = _DerCursor(der_signature, cursor.pos, cursor.pos + length)
        r = body.read_unsigned_integer(SCALAR_LENGTH)
        s = body.read_unsigned_integer(SCALAR_LENGTH)
        if not body.at_end():
            logging.warning("DER signature has %d unexpected trailing byte(s)", body.end - body.pos)
            raise InvalidSignatureEncoding("Trailing bytes after DER integers")
        return r + s

    # --- validation ---
    @classmethod
    def validate_private_key(cls, private_key_bytes: bytes) -> bool:
        if not isinstance(private_key_bytes, (bytes, bytearray)) or len(private_key_bytes) != SCALAR_LENGTH:
            return False
        return 0 < int_from_bytes(private_key_bytes) < cls.order

    @classmethod
    def validate_public_key(cls, public_key_bytes: bytes) -> bool:
        if not isinstance(public_key_bytes, (bytes, bytearray)):
            return False
        try:
            cls._load_point(bytes(public_key_bytes))
        except InvalidPoint:
            return False
        return True
