import pytest

from jwk_kms.errors import InvalidKeyLength, InvalidKeyType, InvalidPublicKey, InvalidSignatureEncoding
from jwk_kms.primitives.ed25519 import Ed25519
from jwk_kms.primitives.secp256k1 import Secp256k1
from jwk_kms.primitives.x25519 import X25519
from jwk_kms.utils.convert import b64url


# RFC 8032 section 7.1, test 1
SECRET = bytes.fromhex("9d61b19deffd5a60ba844af492ec2cc44449c5697b326919703bac031cae7f60")
PUBLIC = bytes.fromhex("d75a980182b10ab7d54bfed3c964073a0ee172f3daa62325af021a68f707511a")
EMPTY_MESSAGE_SIGNATURE = bytes.fromhex(
    "e5564300c360ac729086e2cc806e828a84877f1eb8e5d974d873e065224901555"
    "fb8821590a33bacc61e39701cf9b46bd25bf5f0595bbe24655141438e7a100b"
)


@pytest.fixture
def private_key():
    return Ed25519.bytes_to_private_key(private_key_bytes=SECRET)


def test_bytes_to_private_key_derives_public(private_key):
    assert private_key["x"] == b64url(PUBLIC)
    assert private_key["kty"] == "OKP" and private_key["crv"] == "Ed25519"
    assert Ed25519.private_key_to_bytes(private_key=private_key) == SECRET


def test_rfc8032_signature(private_key):
    assert Ed25519.sign(key=private_key, data=b"") == EMPTY_MESSAGE_SIGNATURE
    public_key = Ed25519.bytes_to_public_key(public_key_bytes=PUBLIC)
    assert Ed25519.verify(key=public_key, signature=EMPTY_MESSAGE_SIGNATURE, data=b"")


def test_public_key_round_trip():
    public_key = Ed25519.compute_public_key(key=Ed25519.generate_key())
    raw = Ed25519.public_key_to_bytes(public_key=public_key)
    assert Ed25519.bytes_to_public_key(public_key_bytes=raw) == public_key


def test_wrong_lengths():
    with pytest.raises(InvalidKeyLength):
        Ed25519.bytes_to_private_key(private_key_bytes=b"\x00" * 31)
    with pytest.raises(InvalidKeyLength):
        Ed25519.bytes_to_public_key(public_key_bytes=b"\x00" * 33)


def test_verify_false_on_mutation(private_key):
    public_key = Ed25519.compute_public_key(key=private_key)
    signature = Ed25519.sign(key=private_key, data=b"payload")
    assert Ed25519.verify(key=public_key, signature=signature, data=b"payload")
    assert not Ed25519.verify(key=public_key, signature=signature, data=b"payloae")
    mutated = bytes([signature[0] ^ 1]) + signature[1:]
    assert not Ed25519.verify(key=public_key, signature=mutated, data=b"payload")
    with pytest.raises(InvalidSignatureEncoding):
        Ed25519.verify(key=public_key, signature=signature[:-1], data=b"payload")


def test_get_public_key_guards(private_key):
    public_key = Ed25519.get_public_key(key=private_key)
    with pytest.raises(InvalidKeyType):
        Ed25519.get_public_key(key=public_key)
    with pytest.raises(InvalidKeyType):
        Ed25519.get_public_key(key=Secp256k1.generate_key())
    with pytest.raises(InvalidKeyType):
        Ed25519.sign(key=X25519.generate_key(), data=b"x")


def test_convert_to_x25519_is_consistent():
    ed_private = Ed25519.generate_key()
    ed_public = Ed25519.compute_public_key(key=ed_private)
    x_private = Ed25519.convert_private_key_to_x25519(private_key=ed_private)
    x_public = Ed25519.convert_public_key_to_x25519(public_key=ed_public)
    assert x_private["crv"] == "X25519"
    assert X25519.compute_public_key(key=x_private)["x"] == x_public["x"]


def test_converted_keys_agree():
    alice, bob = Ed25519.generate_key(), Ed25519.generate_key()
    alice_x = Ed25519.convert_private_key_to_x25519(private_key=alice)
    bob_x = Ed25519.convert_private_key_to_x25519(private_key=bob)
    alice_pub = Ed25519.convert_public_key_to_x25519(public_key=Ed25519.compute_public_key(key=alice))
    bob_pub = Ed25519.convert_public_key_to_x25519(public_key=Ed25519.compute_public_key(key=bob))
    assert X25519.shared_secret(private_key_a=alice_x, public_key_b=bob_pub) == \
        X25519.shared_secret(private_key_a=bob_x, public_key_b=alice_pub)


def test_convert_public_key_rejects_invalid_point():
    # identity point, small order
    bogus = {"kty": "OKP", "crv": "Ed25519", "x": b64url(b"\x01" + b"\x00" * 31)}
    with pytest.raises(InvalidPublicKey):
        Ed25519.convert_public_key_to_x25519(public_key=bogus)


def test_validate_keys():
    assert Ed25519.validate_public_key(public_key_bytes=PUBLIC)
    assert not Ed25519.validate_public_key(public_key_bytes=b"\x01" + b"\x00" * 31)
    assert not Ed25519.validate_public_key(public_key_bytes=PUBLIC[:31])
    assert Ed25519.validate_private_key(private_key_bytes=SECRET)
    assert not Ed25519.validate_private_key(private_key_bytes=SECRET + b"\x00")
