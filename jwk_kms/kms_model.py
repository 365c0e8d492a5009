# kms_model.py
#
# Persistent key store: private JWKs are kept AES-GCM encrypted in a SQL table.

import base64
import json
import logging
import os
from datetime import datetime
from typing import Any, Dict, List, Optional

from cryptography.exceptions import InvalidTag as _CryptographyInvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from sqlalchemy import Column, DateTime, Integer, String, Text, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from jwk_kms.errors import InvalidKeyLength, InvalidTag
from jwk_kms.key_store import KeyStore


Base = declarative_base()


class StoredKey(Base):
    __tablename__ = "stored_key"
    id = Column(Integer, primary_key=True)
    key_uri = Column(String(128), unique=True, nullable=False, index=True)
    key_data = Column(Text, nullable=False)
    kty = Column(String(16))
    created_at = Column(DateTime, default=datetime.now)


def encrypt_bytes(key: bytes, plaintext: bytes, aad: Optional[bytes] = None) -> str:
    """
    AES-GCM with a random 12-byte nonce. Returns base64(nonce || ciphertext).
    """
    nonce = os.urandom(12)
    ct = AESGCM(key).encrypt(nonce, plaintext, aad)
    return base64.b64encode(nonce + ct).decode()


def decrypt_bytes(key: bytes, blob_b64: str, aad: Optional[bytes] = None) -> bytes:
    """
    blob = base64(nonce || ciphertext)
    """
    blob = base64.b64decode(blob_b64)
    nonce, ct = blob[:12], blob[12:]
    try:
        return AESGCM(key).decrypt(nonce, ct, aad)
    except _CryptographyInvalidTag as e:
        raise InvalidTag("Stored key cannot be decrypted (wrong store key?)") from e


def encrypt_json(key: bytes, data: Dict[str, Any], aad: Optional[bytes] = None) -> str:
    return encrypt_bytes(key, json.dumps(data, separators=(",", ":")).encode(), aad)


def decrypt_json(key: bytes, blob_b64: str, aad: Optional[bytes] = None) -> Dict[str, Any]:
    return json.loads(decrypt_bytes(key, blob_b64, aad).decode())


class SqlKeyStore(KeyStore):
    """KeyStore on any SQLAlchemy database. The key URI is bound as AAD to its row."""

    def __init__(self, database_url: str, encryption_key: bytes, engine=None):
        if len(encryption_key) not in (16, 24, 32):
            raise InvalidKeyLength("Key store encryption key must be 16, 24 or 32 bytes")
        self._encryption_key = encryption_key
        self.engine = engine or create_engine(database_url)
        Base.metadata.create_all(self.engine)
        self._session = sessionmaker(bind=self.engine)

    def get(self, uri: str) -> Optional[Dict[str, Any]]:
        with self._session() as session:
            row = session.query(StoredKey).filter_by(key_uri=uri).first()
            if row is None:
                return None
            return decrypt_json(self._encryption_key, row.key_data, aad=uri.encode())

    def set(self, uri: str, jwk: Dict[str, Any]) -> None:
        blob = encrypt_json(self._encryption_key, jwk, aad=uri.encode())
        with self._session() as session:
            row = session.query(StoredKey).filter_by(key_uri=uri).first()
            if row is None:
                session.add(StoredKey(key_uri=uri, key_data=blob, kty=jwk.get("kty")))
            else:
                row.key_data = blob
                row.kty = jwk.get("kty")
            session.commit()
        logging.info("Stored key %s", uri)

    def delete(self, uri: str) -> None:
        with self._session() as session:
            session.query(StoredKey).filter_by(key_uri=uri).delete()
            session.commit()

    def list(self) -> List[str]:
        with self._session() as session:
            return [row.key_uri for row in session.query(StoredKey.key_uri).order_by(StoredKey.id)]
