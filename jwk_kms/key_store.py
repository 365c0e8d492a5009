# key_store.py

import copy
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


class KeyStore(ABC):
    """Mapping from key URI to JWK. Implementations must be read-after-write consistent per URI."""

    @abstractmethod
    def get(self, uri: str) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    def set(self, uri: str, jwk: Dict[str, Any]) -> None:
        ...

    @abstractmethod
    def delete(self, uri: str) -> None:
        ...

    @abstractmethod
    def list(self) -> List[str]:
        ...


class MemoryKeyStore(KeyStore):
    """In-process store. Keys are copied in and out."""

    def __init__(self):
        self._keys: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def get(self, uri: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            jwk = self._keys.get(uri)
            return copy.deepcopy(jwk) if jwk is not None else None

    def set(self, uri: str, jwk: Dict[str, Any]) -> None:
        with self._lock:
            self._keys[uri] = copy.deepcopy(jwk)

    def delete(self, uri: str) -> None:
        with self._lock:
            self._keys.pop(uri, None)

    def list(self) -> List[str]:
        with self._lock:
            return list(self._keys)
