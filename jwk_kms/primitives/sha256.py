# sha256.py

import hashlib


class Sha256:

    @classmethod
    def digest(cls, data: bytes) -> bytes:
        return hashlib.sha256(bytes(data)).digest()
