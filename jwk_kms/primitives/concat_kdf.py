# concat_kdf.py
#
# Concat KDF as profiled for ECDH-ES in RFC 7518 section 4.6, SHA-256 only.

import hashlib
import struct
from typing import Any, Dict

from jwk_kms.errors import MultiRoundNotSupported
from jwk_kms.primitives.pbkdf2 import check_bit_length
from jwk_kms.utils.convert import to_bytes


HASH_LENGTH = 256


def _length_prefixed(value) -> bytes:
    data = b"" if value is None else to_bytes(value)
    return struct.pack(">I", len(data)) + data


def _fixed_length_number(value) -> bytes:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"suppPubInfo must be a number, got {type(value).__name__}")
    if not 0 <= value < 2 ** 32:
        raise ValueError(f"suppPubInfo must fit in 32 unsigned bits, got {value}")
    return struct.pack(">I", value)


def compute_other_info(fixed_info: Dict[str, Any]) -> bytes:
    """AlgorithmID || PartyUInfo || PartyVInfo || SuppPubInfo [|| SuppPrivInfo]."""
    other_info = (
        _length_prefixed(fixed_info.get("algorithm_id"))
        + _length_prefixed(fixed_info.get("party_u_info"))
        + _length_prefixed(fixed_info.get("party_v_info"))
        + _fixed_length_number(fixed_info.get("supp_pub_info"))
    )
    if fixed_info.get("supp_priv_info") is not None:
        other_info += _length_prefixed(fixed_info["supp_priv_info"])
    return other_info


class ConcatKdf:

    @classmethod
    def derive_key(cls, shared_secret: bytes, key_data_len: int, fixed_info: Dict[str, Any]) -> bytes:
        """Single-round derivation; `key_data_len` is in bits and may not exceed 256."""
        out_length = check_bit_length(key_data_len)
        rounds = -(-key_data_len // HASH_LENGTH)
        if rounds != 1:
            raise MultiRoundNotSupported(f"Concat KDF needs {rounds} rounds; only single-round derivation is supported")
        digest = hashlib.sha256(
            struct.pack(">I", 1) + bytes(shared_secret) + compute_other_info(fixed_info)
        ).digest()
        return digest[:out_length]
