# hkdf.py

from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from jwk_kms.primitives.pbkdf2 import check_bit_length, hash_algorithm
from jwk_kms.utils.convert import to_bytes


class Hkdf:
    """RFC 5869 extract-and-expand."""

    @classmethod
    def derive_key(cls, hash: str, base_key, length: int, salt=b"", info=b"") -> bytes:
        kdf = HKDF(algorithm=hash_algorithm(hash), length=check_bit_length(length),
                   salt=to_bytes(salt) or None, info=to_bytes(info))
        return kdf.derive(to_bytes(base_key))
