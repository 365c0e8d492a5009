# key_manager.py
#
# LocalKmsCrypto: key custody in a KeyStore, keys addressed by urn:jwk: URIs.

import copy
import logging
from typing import Any, Dict, Optional

from jwk_kms import jwk as jwk_model
from jwk_kms.algorithms import SupportedAlgorithm, algorithm_instances
from jwk_kms.errors import (
    InvalidKeyProvided,
    KeyNotFound,
    MissingRequiredProperty,
    UnsupportedAlgorithm,
)
from jwk_kms.key_store import KeyStore, MemoryKeyStore
from jwk_kms.utils.log import log_key_event


class LocalKmsCrypto:
    """Generates, stores and uses private keys held in a local KeyStore.

    One instance of every supported algorithm is built when the manager is
    created and reused for every call.
    """

    def __init__(self, key_store: Optional[KeyStore] = None, audit_dir: Optional[str] = None):
        self.key_store = key_store if key_store is not None else MemoryKeyStore()
        self.audit_dir = audit_dir
        self._algorithms = algorithm_instances()

    def _audit(self, key_uri: str, event_type: str, algorithm: Optional[str] = None, **details) -> None:
        if self.audit_dir:
            log_key_event(key_uri, event_type, algorithm=algorithm, details=details, base_dir=self.audit_dir)

    def _signing_algorithm(self, member: SupportedAlgorithm):
        if not member.is_signing:
            raise UnsupportedAlgorithm(f"{member.label} is not a key algorithm")
        return self._algorithms[member]

    def _get_private_key(self, key_uri: str) -> Dict[str, Any]:
        private_key = self.key_store.get(key_uri)
        if private_key is None:
            raise KeyNotFound(f"Key not found: {key_uri}")
        return private_key

    # --- key lifecycle ---
    def generate_key(self, algorithm: str) -> str:
        member = SupportedAlgorithm.from_name(algorithm)
        private_key = self._signing_algorithm(member).generate_key()
        if not private_key.get("kid"):
            raise MissingRequiredProperty("Generated key is missing the 'kid' property")

        key_uri = self.get_key_uri(key=private_key)
        self.key_store.set(key_uri, private_key)
        logging.info("Generated %s key %s", member.label, key_uri)
        self._audit(key_uri, "generate_key", member.label)
        return key_uri

    def import_key(self, key: Dict[str, Any]) -> str:
        if not jwk_model.is_private_jwk(key):
            raise InvalidKeyProvided("Only private JWKs with valid members can be imported")

        private_key = copy.deepcopy(key)
        if not private_key.get("kid"):
            private_key["kid"] = jwk_model.compute_jwk_thumbprint(private_key)

        key_uri = self.get_key_uri(key=private_key)
        self.key_store.set(key_uri, private_key)
        logging.info("Imported %s key %s", private_key.get("crv"), key_uri)
        self._audit(key_uri, "import_key", private_key.get("alg") or private_key.get("crv"))
        return key_uri

    def export_key(self, key_uri: str) -> Dict[str, Any]:
        private_key = self._get_private_key(key_uri)
        logging.warning("Private key exported: %s", key_uri)
        self._audit(key_uri, "export_key", private_key.get("alg") or private_key.get("crv"))
        return private_key

    def get_public_key(self, key_uri: str) -> Dict[str, Any]:
        private_key = self._get_private_key(key_uri)
        member = SupportedAlgorithm.for_key(private_key)
        return self._signing_algorithm(member).get_public_key(key=private_key)

    def get_key_uri(self, key: Dict[str, Any]) -> str:
        return jwk_model.get_key_uri(key)

    # --- key use ---
    def sign(self, key_uri: str, data: bytes) -> bytes:
        private_key = self._get_private_key(key_uri)
        member = SupportedAlgorithm.for_key(private_key)
        signature = self._signing_algorithm(member).sign(key=private_key, data=data)
        self._audit(key_uri, "sign", member.label, data_length=len(data))
        return signature

    def verify(self, key: Dict[str, Any], signature: bytes, data: bytes) -> bool:
        member = SupportedAlgorithm.for_key(key)
        return self._signing_algorithm(member).verify(key=key, signature=signature, data=data)

    def digest(self, algorithm: str, data: bytes) -> bytes:
        member = SupportedAlgorithm.from_name(algorithm)
        if member.is_signing:
            raise UnsupportedAlgorithm(f"{algorithm} is not a digest algorithm")
        return self._algorithms[member].digest(data=data)
