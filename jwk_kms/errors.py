# errors.py
#
# Exceptions raised by the key layer. Each one also derives from the matching
# built-in so callers catching ValueError / TypeError / LookupError still work.


class CryptoError(Exception):
    """Base class for every error raised by jwk_kms."""


# --- malformed binary input ---
class InvalidKeyLength(CryptoError, ValueError):
    pass


class InvalidPoint(CryptoError, ValueError):
    pass


class InvalidPublicKey(CryptoError, ValueError):
    pass


class InvalidSignatureEncoding(CryptoError, ValueError):
    pass


# --- key shape ---
class InvalidKeyType(CryptoError, TypeError):
    pass


class InvalidKeyProvided(CryptoError, TypeError):
    pass


class MissingRequiredProperty(CryptoError, ValueError):
    pass


# --- dispatch ---
class UnsupportedAlgorithm(CryptoError, ValueError):
    pass


class UnsupportedCurve(CryptoError, ValueError):
    pass


class UnsupportedOperation(CryptoError):
    pass


# --- primitives ---
class SameKeyPairError(CryptoError, ValueError):
    pass


class InvalidTag(CryptoError, ValueError):
    """AEAD authentication failure."""


class InvalidIvLength(CryptoError, ValueError):
    pass


class InvalidNonceLength(CryptoError, ValueError):
    pass


class InvalidTagLength(CryptoError, ValueError):
    pass


class InvalidCounterLength(CryptoError, ValueError):
    pass


class InvalidCounterBitLength(CryptoError, ValueError):
    pass


class MultiRoundNotSupported(CryptoError, ValueError):
    pass


# --- key store / remote KMS ---
class KeyNotFound(CryptoError, LookupError):
    pass


class RemoteKmsError(CryptoError):
    """Failure reported by the remote KMS. The original exception is chained."""
