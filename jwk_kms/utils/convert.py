# convert.py

import base64
import json
from typing import Any, Dict


# --- base64url helpers (no padding) ---
def b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64url_decode(data: str) -> bytes:
    if isinstance(data, bytes):
        data = data.decode("ascii")
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


def canonical_json(obj: Dict[str, Any]) -> bytes:
    """Compact JSON with sorted members, UTF-8 encoded."""
    return json.dumps(obj, separators=(",", ":"), sort_keys=True, ensure_ascii=False).encode("utf-8")


def int_to_fixed(n: int, length: int) -> bytes:
    return n.to_bytes(length, byteorder="big")


def int_from_bytes(data: bytes) -> int:
    return int.from_bytes(data, byteorder="big")


def to_bytes(value) -> bytes:
    """Accepts bytes-like input or a str (UTF-8 encoded)."""
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)
