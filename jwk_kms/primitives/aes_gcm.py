# aes_gcm.py

from typing import Any, Dict, Optional

from cryptography.exceptions import InvalidTag as _CryptographyInvalidTag
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from jwk_kms.errors import InvalidIvLength, InvalidTag, InvalidTagLength
from jwk_kms.primitives.oct import OctKey


IV_LENGTH = 12
AES_GCM_TAG_LENGTHS = (96, 104, 112, 120, 128)


class AesGcm(OctKey):
    """AES-GCM with a 96-bit IV. The tag is appended to the ciphertext."""

    key_lengths = (128, 192, 256)

    @classmethod
    def _validate(cls, iv: bytes, tag_length: int) -> None:
        if len(iv) != IV_LENGTH:
            raise InvalidIvLength(f"AES-GCM IV must be {IV_LENGTH} bytes, got {len(iv)}")
        if tag_length not in AES_GCM_TAG_LENGTHS:
            raise InvalidTagLength(f"AES-GCM tag length must be one of {list(AES_GCM_TAG_LENGTHS)}, got {tag_length}")

    @classmethod
    def encrypt(cls, key: Dict[str, Any], iv: bytes, data: bytes, tag_length: int = 128,
                additional_data: Optional[bytes] = None) -> bytes:
        raw_key = cls._key_bytes(key)
        cls._validate(iv, tag_length)
        encryptor = Cipher(algorithms.AES(raw_key), modes.GCM(bytes(iv))).encryptor()
        if additional_data:
            encryptor.authenticate_additional_data(bytes(additional_data))
        ciphertext = encryptor.update(bytes(data)) + encryptor.finalize()
        return ciphertext + encryptor.tag[:tag_length // 8]

    @classmethod
    def decrypt(cls, key: Dict[str, Any], iv: bytes, data: bytes, tag_length: int = 128,
                additional_data: Optional[bytes] = None) -> bytes:
        raw_key = cls._key_bytes(key)
        cls._validate(iv, tag_length)
        tag_bytes = tag_length // 8
        data = bytes(data)
        if len(data) < tag_bytes:
            raise InvalidTag("Ciphertext is shorter than the authentication tag")
        ciphertext, tag = data[:-tag_bytes], data[-tag_bytes:]
        decryptor = Cipher(
            algorithms.AES(raw_key),
            modes.GCM(bytes(iv), tag, min_tag_length=tag_bytes),
        ).decryptor()
        if additional_data:
            decryptor.authenticate_additional_data(bytes(additional_data))
        try:
            return decryptor.update(ciphertext) + decryptor.finalize()
        except _CryptographyInvalidTag as e:
            raise InvalidTag("AES-GCM authentication failed") from e
