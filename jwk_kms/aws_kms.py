# aws_kms.py
#
# AwsKmsCrypto: same API as LocalKmsCrypto, keys live in AWS KMS and are
# addressed through aliases derived from their urn:jwk: URIs.

import logging
import re
from enum import Enum
from typing import Any, Dict, Optional, Type

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.serialization import load_der_public_key

from jwk_kms import jwk as jwk_model
from jwk_kms.algorithms import EcdsaAlgorithm, Sha2Algorithm
from jwk_kms.env import DEFAULT_REGION, currentMode
from jwk_kms.errors import (
    CryptoError,
    InvalidKeyType,
    MissingRequiredProperty,
    RemoteKmsError,
    UnsupportedAlgorithm,
    UnsupportedCurve,
    UnsupportedOperation,
)
from jwk_kms.primitives.secp256k1 import Secp256k1
from jwk_kms.primitives.secp256r1 import Secp256r1
from jwk_kms.primitives.weierstrass import SCALAR_LENGTH, WeierstrassCurve
from jwk_kms.utils.convert import b64url, int_to_fixed
from jwk_kms.utils.log import log_key_event


REGION = DEFAULT_REGION
KEY_USAGE = "SIGN_VERIFY"
SIGNING_ALGORITHM = "ECDSA_SHA_256"
ALIAS_PREFIX = "alias/urn-jwk-"
PENDING_WINDOW_DAYS = 7


class AwsKeySpec(Enum):
    """KMS key specs this manager can create, keyed by JOSE algorithm."""

    ES256K = ("ECC_SECG_P256K1", Secp256k1)
    ES256 = ("ECC_NIST_P256", Secp256r1)

    def __init__(self, key_spec: str, curve: Type[WeierstrassCurve]):
        self.key_spec = key_spec
        self.curve = curve

    @classmethod
    def from_algorithm(cls, algorithm: str) -> "AwsKeySpec":
        for member in cls:
            if algorithm in (member.name, member.curve.crv, type(member.curve.curve).__name__.lower()):
                return member
        raise UnsupportedAlgorithm(f"Algorithm not supported by AWS KMS: {algorithm}")

    @classmethod
    def from_key_spec(cls, key_spec: str) -> "AwsKeySpec":
        for member in cls:
            if member.key_spec == key_spec:
                return member
        raise UnsupportedAlgorithm(f"Unsupported KeySpec: {key_spec}")

    @classmethod
    def for_key(cls, key: Dict[str, Any]) -> "AwsKeySpec":
        if key.get("alg"):
            return cls.from_algorithm(key["alg"])
        for member in cls:
            if key.get("crv") == member.curve.crv:
                return member
        raise UnsupportedCurve(f"Curve not supported by AWS KMS: {key.get('crv')}")


def key_uri_to_alias(key_uri: str) -> str:
    """urn:jwk:<thumbprint> -> alias/urn-jwk-<thumbprint>. Other identifiers pass through."""
    if key_uri.startswith(jwk_model.KEY_URI_PREFIX_JWK):
        return ALIAS_PREFIX + key_uri[len(jwk_model.KEY_URI_PREFIX_JWK):]
    return key_uri


def alias_to_key_uri(alias: str) -> str:
    if alias.startswith(ALIAS_PREFIX):
        return jwk_model.KEY_URI_PREFIX_JWK + alias[len(ALIAS_PREFIX):]
    return alias


def sanitize_tag_value(value: str) -> str:
    # Allow only valid AWS tag characters: [\p{L}\p{Z}\p{N}_.:/=+\-@]
    return re.sub(r"[^\w\s\.:\/=\+\-@]", "_", value)


class AwsKmsCrypto:
    """Keys are created inside AWS KMS and never leave it.

    Signing pre-hashes locally and asks KMS to sign the digest; KMS returns DER
    which is converted to a low-S compact signature. Verification is local.
    """

    def __init__(self, kms_client=None, boto3_session=None, region_name=REGION,
                 tag_keys: bool = True, audit_dir: Optional[str] = None):
        if kms_client is None:
            session = boto3_session or boto3.Session(region_name=region_name)
            kms_client = session.client("kms", region_name=region_name)
        self.kms = kms_client
        self.tag_keys = tag_keys
        self.audit_dir = audit_dir
        self._algorithms = {member: EcdsaAlgorithm(member.curve) for member in AwsKeySpec}
        self._sha256 = Sha2Algorithm("SHA-256")

    def _call(self, operation: str, **params) -> Dict[str, Any]:
        try:
            return getattr(self.kms, operation)(**params)
        except (ClientError, BotoCoreError) as e:
            logging.warning("KMS %s error: %s", operation, str(e))
            raise RemoteKmsError(f"AWS KMS {operation} failed: {e}") from e

    def _audit(self, key_uri: str, event_type: str, algorithm: Optional[str] = None, **details) -> None:
        if self.audit_dir:
            log_key_event(key_uri, event_type, algorithm=algorithm, details=details, base_dir=self.audit_dir)

    def _discard_key(self, key_id: str) -> None:
        # a key without its alias cannot be addressed, schedule it for deletion
        try:
            self.kms.schedule_key_deletion(KeyId=key_id, PendingWindowInDays=PENDING_WINDOW_DAYS)
            logging.warning("Scheduled deletion of unaliased KMS key: %s", key_id)
        except (ClientError, BotoCoreError) as e:
            logging.warning("Failed to schedule deletion of KMS key %s: %s", key_id, str(e))

    # --- key lifecycle ---
    def generate_key(self, algorithm: str) -> str:
        spec = AwsKeySpec.from_algorithm(algorithm)
        resp = self._call("create_key", KeySpec=spec.key_spec, KeyUsage=KEY_USAGE)
        key_id = resp.get("KeyMetadata", {}).get("KeyId")
        if not key_id:
            raise MissingRequiredProperty("create_key response has no KeyId")
        logging.info("Created KMS key id: %s", key_id)

        try:
            public_key = self.get_public_key(key_uri=key_id)
            key_uri = self.get_key_uri(key=public_key)
            alias_name = key_uri_to_alias(key_uri)
            self._call("create_alias", AliasName=alias_name, TargetKeyId=key_id)
        except CryptoError:
            self._discard_key(key_id)
            raise
        logging.info("Created alias: %s", alias_name)

        if self.tag_keys:
            try:
                self.kms.tag_resource(
                    KeyId=key_id,
                    Tags=[{"TagKey": "key_uri", "TagValue": sanitize_tag_value(key_uri)}]
                )
            except (ClientError, BotoCoreError) as e:
                logging.warning("Warning: failed tagging key: %s", str(e))

        self._audit(key_uri, "generate_key", spec.name, aws_key_id=key_id)
        return key_uri

    def import_key(self, key: Dict[str, Any]) -> str:
        raise UnsupportedOperation("AWS KMS keys are created inside KMS; importing private keys is not supported")

    def export_key(self, key_uri: str) -> Dict[str, Any]:
        raise UnsupportedOperation("AWS KMS private keys cannot be exported")

    def get_public_key(self, key_uri: str) -> Dict[str, Any]:
        resp = self._call("get_public_key", KeyId=key_uri_to_alias(key_uri))
        der = resp.get("PublicKey")
        if not der:
            raise MissingRequiredProperty("get_public_key response has no PublicKey")
        spec = AwsKeySpec.from_key_spec(resp.get("KeySpec"))

        public_object = load_der_public_key(der)
        if not isinstance(public_object, ec.EllipticCurvePublicKey):
            raise InvalidKeyType("KMS public key is not EC")
        if not isinstance(public_object.curve, type(spec.curve.curve)):
            raise InvalidKeyType(f"KMS public key curve {public_object.curve.name} does not match {spec.key_spec}")

        numbers = public_object.public_numbers()
        public_key = {
            "kty": "EC",
            "crv": spec.curve.crv,
            "x": b64url(int_to_fixed(numbers.x, SCALAR_LENGTH)),
            "y": b64url(int_to_fixed(numbers.y, SCALAR_LENGTH)),
            "alg": spec.name,
        }
        public_key["kid"] = jwk_model.compute_jwk_thumbprint(public_key)
        return public_key

    def get_key_uri(self, key: Dict[str, Any]) -> str:
        return jwk_model.get_key_uri(key)

    # --- key use ---
    def sign(self, key_uri: str, data: bytes) -> bytes:
        key_id = key_uri_to_alias(key_uri)
        metadata = self._call("describe_key", KeyId=key_id).get("KeyMetadata", {})
        spec = AwsKeySpec.from_key_spec(metadata.get("KeySpec"))

        # KMS caps raw messages at 4096 bytes, so sign the digest instead
        digest = self._sha256.digest(data=data)
        resp = self._call(
            "sign",
            KeyId=key_id,
            Message=digest,
            MessageType="DIGEST",
            SigningAlgorithm=SIGNING_ALGORITHM,
        )
        der_signature = resp.get("Signature")
        if not der_signature:
            raise MissingRequiredProperty("sign response has no Signature")

        compact = spec.curve.convert_der_to_compact_signature(der_signature=der_signature)
        self._audit(alias_to_key_uri(key_id), "sign", spec.name, data_length=len(data))
        return spec.curve.adjust_signature_to_low_s(signature=compact)

    def verify(self, key: Dict[str, Any], signature: bytes, data: bytes) -> bool:
        spec = AwsKeySpec.for_key(key)
        return self._algorithms[spec].verify(key=key, signature=signature, data=data)

    def digest(self, algorithm: str, data: bytes) -> bytes:
        if algorithm != self._sha256.name:
            raise UnsupportedAlgorithm(f"Unsupported digest algorithm: {algorithm}")
        return self._sha256.digest(data=data)


def kms_init(myenv, keys_file=None) -> AwsKmsCrypto:
    mode = currentMode(myenv, keys_file=keys_file)

    if mode.myenv == "local" and mode.role_arn:
        base_sess = boto3.Session(profile_name=mode.aws_profile, region_name=mode.region)

        # assume the application role using the SAME session
        sts = base_sess.client("sts")
        resp = sts.assume_role(
            RoleArn=mode.role_arn,
            RoleSessionName="jwk-kms-session",
        )
        c = resp["Credentials"]
        assumed_sess = boto3.Session(
            aws_access_key_id=c["AccessKeyId"],
            aws_secret_access_key=c["SecretAccessKey"],
            aws_session_token=c["SessionToken"],
            region_name=mode.region,
        )
        return AwsKmsCrypto(boto3_session=assumed_sess, region_name=mode.region, audit_dir=mode.audit_dir)
    if mode.myenv == "local":
        session = boto3.Session(profile_name=mode.aws_profile, region_name=mode.region)
        return AwsKmsCrypto(boto3_session=session, region_name=mode.region, audit_dir=mode.audit_dir)
    return AwsKmsCrypto(region_name=mode.region, audit_dir=mode.audit_dir)
