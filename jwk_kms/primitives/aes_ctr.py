# aes_ctr.py

from typing import Any, Dict

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from jwk_kms.errors import InvalidCounterBitLength, InvalidCounterLength
from jwk_kms.primitives.oct import OctKey
from jwk_kms.utils.convert import int_from_bytes, int_to_fixed


BLOCK_LENGTH = 16
COUNTER_LENGTH = 16


class AesCtr(OctKey):
    """AES in counter mode.

    `counter` is the 16-byte initial counter block. Only its rightmost `length`
    bits are incremented (and wrap around); the remaining bits are a fixed nonce.
    Encryption and decryption are the same operation.
    """

    key_lengths = (128, 192, 256)

    @classmethod
    def _validate(cls, counter: bytes, length: int) -> None:
        if len(counter) != COUNTER_LENGTH:
            raise InvalidCounterLength(f"AES-CTR counter must be {COUNTER_LENGTH} bytes, got {len(counter)}")
        if not isinstance(length, int) or not 1 <= length <= 128:
            raise InvalidCounterBitLength(f"AES-CTR counter length must be between 1 and 128 bits, got {length}")

    @classmethod
    def _keystream(cls, raw_key: bytes, counter: bytes, length: int, size: int) -> bytes:
        block_count = -(-size // BLOCK_LENGTH)
        if block_count > 2 ** length:
            raise InvalidCounterBitLength(f"Data needs {block_count} blocks, more than a {length}-bit counter allows")
        counter_mask = (1 << length) - 1
        initial = int_from_bytes(counter)
        nonce = initial & ~counter_mask
        start = initial & counter_mask
        blocks = b"".join(
            int_to_fixed(nonce | ((start + i) & counter_mask), BLOCK_LENGTH) for i in range(block_count)
        )
        encryptor = Cipher(algorithms.AES(raw_key), modes.ECB()).encryptor()
        return (encryptor.update(blocks) + encryptor.finalize())[:size]

    @classmethod
    def encrypt(cls, key: Dict[str, Any], counter: bytes, data: bytes, length: int) -> bytes:
        raw_key = cls._key_bytes(key)
        cls._validate(counter, length)
        data = bytes(data)
        if not data:
            return b""
        stream = cls._keystream(raw_key, bytes(counter), length, len(data))
        return int_to_fixed(int_from_bytes(data) ^ int_from_bytes(stream), len(data))

    @classmethod
    def decrypt(cls, key: Dict[str, Any], counter: bytes, data: bytes, length: int) -> bytes:
        return cls.encrypt(key=key, counter=counter, data=data, length=length)
