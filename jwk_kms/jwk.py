# jwk.py
#
# JWK data model: thumbprints, key URIs and the single shape check every
# operation runs before touching key material.

import hashlib
import binascii
from typing import Any, Dict, NamedTuple, Optional

from jwk_kms.errors import InvalidKeyType
from jwk_kms.utils.convert import b64url, b64url_decode, canonical_json


KEY_URI_PREFIX_JWK = "urn:jwk:"

EC_CURVES = ("secp256k1", "P-256")
OKP_CURVES = ("Ed25519", "X25519")

# RFC 7638 required members per key type
_THUMBPRINT_MEMBERS = {
    "EC": ("crv", "kty", "x", "y"),
    "OKP": ("crv", "kty", "x"),
    "oct": ("k", "kty"),
}

_FIELD_LENGTH = 32


class KeyShape(NamedTuple):
    """Result of classifying a JWK once at an operation's entry point."""
    kty: str
    crv: Optional[str]
    is_private: bool


def compute_jwk_thumbprint(jwk: Dict[str, Any]) -> str:
    """RFC 7638 thumbprint: SHA-256 over the sorted required members, base64url."""
    kty = jwk.get("kty")
    members = _THUMBPRINT_MEMBERS.get(kty)
    if members is None:
        raise InvalidKeyType(f"Unsupported key type for thumbprint: {kty}")
    missing = [m for m in members if m not in jwk]
    if missing:
        raise InvalidKeyType(f"JWK is missing required member(s): {', '.join(missing)}")
    normalized = {m: jwk[m] for m in members}
    return b64url(hashlib.sha256(canonical_json(normalized)).digest())


def get_key_uri(jwk: Dict[str, Any]) -> str:
    return KEY_URI_PREFIX_JWK + compute_jwk_thumbprint(jwk)


def _decoded_length(value) -> Optional[int]:
    if not isinstance(value, str):
        return None
    try:
        return len(b64url_decode(value))
    except (binascii.Error, ValueError):
        return None


def classify_key(jwk: Any) -> KeyShape:
    """Check the JWK is structurally valid and report its type, curve and privacy.

    Raises InvalidKeyType for anything that is not a usable EC, OKP or oct key.
    """
    if not isinstance(jwk, dict):
        raise InvalidKeyType("Key must be a JWK dictionary")
    kty = jwk.get("kty")

    if kty == "oct":
        if _decoded_length(jwk.get("k")) in (None, 0):
            raise InvalidKeyType("Symmetric JWK requires a non-empty 'k'")
        return KeyShape("oct", None, True)

    if kty == "EC":
        crv = jwk.get("crv")
        if crv not in EC_CURVES:
            raise InvalidKeyType(f"Unsupported EC curve: {crv}")
        coordinates = ("x", "y")
    elif kty == "OKP":
        crv = jwk.get("crv")
        if crv not in OKP_CURVES:
            raise InvalidKeyType(f"Unsupported OKP curve: {crv}")
        coordinates = ("x",)
    else:
        raise InvalidKeyType(f"Unsupported key type: {kty}")

    for name in coordinates:
        if _decoded_length(jwk.get(name)) != _FIELD_LENGTH:
            raise InvalidKeyType(f"{crv} JWK member '{name}' must encode {_FIELD_LENGTH} bytes")
    is_private = "d" in jwk
    if is_private and _decoded_length(jwk["d"]) != _FIELD_LENGTH:
        raise InvalidKeyType(f"{crv} JWK member 'd' must encode {_FIELD_LENGTH} bytes")
    return KeyShape(kty, crv, is_private)


def _shape_or_none(jwk: Any) -> Optional[KeyShape]:
    try:
        return classify_key(jwk)
    except InvalidKeyType:
        return None


# --- boolean guards ---
def is_oct_jwk(jwk: Any) -> bool:
    shape = _shape_or_none(jwk)
    return shape is not None and shape.kty == "oct"


def is_private_jwk(jwk: Any) -> bool:
    shape = _shape_or_none(jwk)
    return shape is not None and shape.kty != "oct" and shape.is_private


# --- entry-point checks ---
def require_private_key(jwk: Any, kty: str, crv: str) -> KeyShape:
    shape = classify_key(jwk)
    if shape.kty != kty or shape.crv != crv or not shape.is_private:
        raise InvalidKeyType(f"Expected a {kty} {crv} private key")
    return shape


def require_public_key(jwk: Any, kty: str, crv: str) -> KeyShape:
    """Accepts a public key, or a private key whose public members are used."""
    shape = classify_key(jwk)
    if shape.kty != kty or shape.crv != crv:
        raise InvalidKeyType(f"Expected a {kty} {crv} public key")
    return shape
