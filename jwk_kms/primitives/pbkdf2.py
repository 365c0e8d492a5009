# pbkdf2.py

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from jwk_kms.errors import UnsupportedAlgorithm
from jwk_kms.utils.convert import to_bytes


HASH_ALGORITHMS = {
    "SHA-256": hashes.SHA256,
    "SHA-384": hashes.SHA384,
    "SHA-512": hashes.SHA512,
}


def hash_algorithm(name: str) -> hashes.HashAlgorithm:
    try:
        return HASH_ALGORITHMS[name]()
    except KeyError:
        raise UnsupportedAlgorithm(f"Unsupported hash algorithm: {name}") from None


def check_bit_length(length: int) -> int:
    """Returns the length in bytes for a positive bit length that is a multiple of 8."""
    if not isinstance(length, int) or length <= 0 or length % 8:
        raise ValueError(f"Derived key length must be a positive multiple of 8 bits, got {length}")
    return length // 8


class Pbkdf2:

    @classmethod
    def derive_key(cls, hash: str, password, salt, iterations: int, length: int) -> bytes:
        """PBKDF2-HMAC; `length` is in bits."""
        algorithm = hash_algorithm(hash)
        if not isinstance(iterations, int) or iterations <= 0:
            raise ValueError(f"PBKDF2 iterations must be a positive integer, got {iterations}")
        kdf = PBKDF2HMAC(algorithm=algorithm, length=check_bit_length(length),
                         salt=to_bytes(salt), iterations=iterations)
        return kdf.derive(to_bytes(password))
