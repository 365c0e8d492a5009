# algorithms.py
#
# Algorithm wrappers and the closed set of algorithms a key manager can use.
# Each wrapper checks the key's kty/crv before handing it to a primitive.

from enum import Enum
from typing import Any, Dict, Optional, Tuple, Type

from jwk_kms import jwk as jwk_model
from jwk_kms.errors import InvalidKeyType, UnsupportedAlgorithm, UnsupportedCurve
from jwk_kms.primitives.ed25519 import Ed25519
from jwk_kms.primitives.secp256k1 import Secp256k1
from jwk_kms.primitives.secp256r1 import Secp256r1
from jwk_kms.primitives.sha256 import Sha256
from jwk_kms.primitives.weierstrass import WeierstrassCurve


class EcdsaAlgorithm:
    """ES256K / ES256 signatures on one short-Weierstrass curve."""

    def __init__(self, curve: Type[WeierstrassCurve]):
        self.curve = curve
        self.alg = curve.alg
        self.crv = curve.crv

    def _check(self, key: Dict[str, Any], private: bool) -> None:
        shape = jwk_model.classify_key(key)
        if shape.kty != "EC" or shape.crv != self.crv:
            raise InvalidKeyType(f"{self.alg} requires an EC {self.crv} key, got {shape.kty} {shape.crv}")
        if private and not shape.is_private:
            raise InvalidKeyType(f"{self.alg} requires a private key")
        if key.get("alg") not in (None, self.alg):
            raise InvalidKeyType(f"Key is bound to {key['alg']}, not {self.alg}")

    def generate_key(self) -> Dict[str, Any]:
        private_key = self.curve.generate_key()
        private_key["alg"] = self.alg
        return private_key

    def compute_public_key(self, key: Dict[str, Any]) -> Dict[str, Any]:
        self._check(key, private=True)
        public_key = self.curve.compute_public_key(key=key)
        public_key["alg"] = self.alg
        return public_key

    def get_public_key(self, key: Dict[str, Any]) -> Dict[str, Any]:
        self._check(key, private=True)
        public_key = self.curve.get_public_key(key=key)
        public_key["alg"] = self.alg
        return public_key

    def sign(self, key: Dict[str, Any], data: bytes) -> bytes:
        self._check(key, private=True)
        return self.curve.sign(key=key, data=data)

    def verify(self, key: Dict[str, Any], signature: bytes, data: bytes) -> bool:
        self._check(key, private=False)
        return self.curve.verify(key=key, signature=signature, data=data)


class EdDsaAlgorithm:
    """EdDSA over Ed25519."""

    alg = "EdDSA"
    crv = "Ed25519"

    def _check(self, key: Dict[str, Any], private: bool) -> None:
        shape = jwk_model.classify_key(key)
        if shape.kty != "OKP" or shape.crv != self.crv:
            raise InvalidKeyType(f"EdDSA requires an OKP Ed25519 key, got {shape.kty} {shape.crv}")
        if private and not shape.is_private:
            raise InvalidKeyType("EdDSA requires a private key")

    def generate_key(self) -> Dict[str, Any]:
        private_key = Ed25519.generate_key()
        private_key["alg"] = self.alg
        return private_key

    def compute_public_key(self, key: Dict[str, Any]) -> Dict[str, Any]:
        self._check(key, private=True)
        public_key = Ed25519.compute_public_key(key=key)
        public_key["alg"] = self.alg
        return public_key

    def get_public_key(self, key: Dict[str, Any]) -> Dict[str, Any]:
        self._check(key, private=True)
        public_key = Ed25519.get_public_key(key=key)
        public_key["alg"] = self.alg
        return public_key

    def sign(self, key: Dict[str, Any], data: bytes) -> bytes:
        self._check(key, private=True)
        return Ed25519.sign(key=key, data=data)

    def verify(self, key: Dict[str, Any], signature: bytes, data: bytes) -> bool:
        self._check(key, private=False)
        return Ed25519.verify(key=key, signature=signature, data=data)

    def convert_private_key_to_x25519(self, key: Dict[str, Any]) -> Dict[str, Any]:
        self._check(key, private=True)
        return Ed25519.convert_private_key_to_x25519(private_key=key)

    def convert_public_key_to_x25519(self, key: Dict[str, Any]) -> Dict[str, Any]:
        self._check(key, private=False)
        return Ed25519.convert_public_key_to_x25519(public_key=key)


class Sha2Algorithm:

    def __init__(self, name: str = "SHA-256"):
        if name != "SHA-256":
            raise UnsupportedAlgorithm(f"Unsupported digest algorithm: {name}")
        self.name = name

    def digest(self, data: bytes) -> bytes:
        return Sha256.digest(data=data)


class SupportedAlgorithm(Enum):
    """Every algorithm a LocalKmsCrypto can dispatch to, with its accepted names."""

    ED25519 = ("Ed25519", ("Ed25519", "EdDSA"))
    SECP256K1 = ("secp256k1", ("ES256K", "secp256k1"))
    SECP256R1 = ("secp256r1", ("ES256", "secp256r1", "P-256"))
    SHA_256 = ("SHA-256", ("SHA-256",))

    def __init__(self, label: str, names: Tuple[str, ...]):
        self.label = label
        self.names = names

    @property
    def is_signing(self) -> bool:
        return self is not SupportedAlgorithm.SHA_256

    def create(self):
        """Build the wrapper instance for this algorithm."""
        if self is SupportedAlgorithm.ED25519:
            return EdDsaAlgorithm()
        if self is SupportedAlgorithm.SECP256K1:
            return EcdsaAlgorithm(Secp256k1)
        if self is SupportedAlgorithm.SECP256R1:
            return EcdsaAlgorithm(Secp256r1)
        if self is SupportedAlgorithm.SHA_256:
            return Sha2Algorithm("SHA-256")
        raise UnsupportedAlgorithm(f"No implementation for {self.label}")

    @classmethod
    def from_name(cls, name: str) -> "SupportedAlgorithm":
        for member in cls:
            if name in member.names:
                return member
        raise UnsupportedAlgorithm(f"Algorithm not supported: {name}")

    @classmethod
    def for_key(cls, key: Dict[str, Any]) -> "SupportedAlgorithm":
        """Resolve from the key's 'alg' if set, else from its 'crv'."""
        alg: Optional[str] = key.get("alg") if isinstance(key, dict) else None
        if alg:
            return cls.from_name(alg)
        crv = key.get("crv") if isinstance(key, dict) else None
        for member in cls:
            if member.is_signing and crv in member.names:
                return member
        raise UnsupportedCurve(f"Curve not supported: {crv}")


def algorithm_instances() -> Dict[SupportedAlgorithm, Any]:
    """One fresh instance of every supported algorithm."""
    return {member: member.create() for member in SupportedAlgorithm}

