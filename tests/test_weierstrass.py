import pytest

from jwk_kms.errors import (
    InvalidKeyLength,
    InvalidKeyType,
    InvalidPoint,
    InvalidSignatureEncoding,
    SameKeyPairError,
)
from jwk_kms.primitives.ed25519 import Ed25519
from jwk_kms.primitives.secp256k1 import Secp256k1
from jwk_kms.primitives.secp256r1 import Secp256r1
from jwk_kms.utils.convert import b64url_decode


CURVES = [Secp256k1, Secp256r1]


@pytest.fixture(params=CURVES, ids=lambda c: c.crv)
def curve(request):
    return request.param


def test_generate_key(curve):
    private_key = curve.generate_key()
    assert private_key["kty"] == "EC"
    assert private_key["crv"] == curve.crv
    assert len(b64url_decode(private_key["d"])) == 32
    assert {"x", "y", "kid"} <= set(private_key)


def test_private_key_bytes_round_trip(curve):
    private_key = curve.generate_key()
    raw = curve.private_key_to_bytes(private_key=private_key)
    assert curve.bytes_to_private_key(private_key_bytes=raw) == private_key


def test_public_key_bytes_round_trip(curve):
    public_key = curve.compute_public_key(key=curve.generate_key())
    raw = curve.public_key_to_bytes(public_key=public_key)
    assert len(raw) == 65 and raw[0] == 4
    assert curve.bytes_to_public_key(public_key_bytes=raw) == public_key


def test_bytes_to_private_key_wrong_length(curve):
    with pytest.raises(InvalidKeyLength):
        curve.bytes_to_private_key(private_key_bytes=b"\x01" * 31)


def test_compute_public_key_adds_kid_when_missing(curve):
    private_key = curve.generate_key()
    kid = private_key.pop("kid")
    public_key = curve.compute_public_key(key=private_key)
    assert "d" not in public_key
    assert public_key["kid"] == kid


def test_get_public_key_rejects_public_and_other_curves(curve):
    private_key = curve.generate_key()
    public_key = curve.get_public_key(key=private_key)
    with pytest.raises(InvalidKeyType):
        curve.get_public_key(key=public_key)
    other = Secp256r1 if curve is Secp256k1 else Secp256k1
    with pytest.raises(InvalidKeyType):
        curve.get_public_key(key=other.generate_key())
    with pytest.raises(InvalidKeyType):
        curve.get_public_key(key=Ed25519.generate_key())


def test_compression_round_trip(curve):
    uncompressed = curve.public_key_to_bytes(public_key=curve.generate_key())
    compressed = curve.compress_public_key(public_key_bytes=uncompressed)
    assert len(compressed) == 33
    assert curve.decompress_public_key(public_key_bytes=compressed) == uncompressed


@pytest.mark.parametrize("length", [0, 32, 34, 64, 66])
def test_point_encodings_reject_bad_lengths(curve, length):
    with pytest.raises(InvalidPoint):
        curve.get_curve_point(key_bytes=b"\x02" * length)
    with pytest.raises(InvalidPoint):
        curve.compress_public_key(public_key_bytes=b"\x04" * length)
    with pytest.raises(InvalidPoint):
        curve.decompress_public_key(public_key_bytes=b"\x02" * length)


def test_get_curve_point_accepts_both_encodings(curve):
    uncompressed = curve.public_key_to_bytes(public_key=curve.generate_key())
    compressed = curve.compress_public_key(public_key_bytes=uncompressed)
    point = curve.get_curve_point(key_bytes=uncompressed)
    assert point == curve.get_curve_point(key_bytes=compressed)
    assert point.x == uncompressed[1:33] and point.y == uncompressed[33:]


def test_shared_secret_is_commutative(curve):
    a, b = curve.generate_key(), curve.generate_key()
    ab = curve.shared_secret(private_key_a=a, public_key_b=curve.compute_public_key(key=b))
    ba = curve.shared_secret(private_key_a=b, public_key_b=curve.compute_public_key(key=a))
    assert ab == ba
    assert len(ab) == 32


def test_shared_secret_rejects_same_key_pair(curve):
    a = curve.generate_key()
    with pytest.raises(SameKeyPairError):
        curve.shared_secret(private_key_a=a, public_key_b=curve.compute_public_key(key=a))


def test_sign_and_verify(curve):
    private_key = curve.generate_key()
    public_key = curve.compute_public_key(key=private_key)
    data = b"\x00\x01\x02\x03\x04"
    signature = curve.sign(key=private_key, data=data)
    assert len(signature) == 64
    assert curve.verify(key=public_key, signature=signature, data=data)


def test_verify_returns_false_on_mutation(curve):
    private_key = curve.generate_key()
    public_key = curve.compute_public_key(key=private_key)
    data = b"message"
    signature = curve.sign(key=private_key, data=data)

    assert not curve.verify(key=public_key, signature=signature, data=b"messagf")
    flipped = bytearray(signature)
    flipped[10] ^= 0x01
    assert not curve.verify(key=public_key, signature=bytes(flipped), data=data)
    other_public = curve.compute_public_key(key=curve.generate_key())
    assert not curve.verify(key=other_public, signature=signature, data=data)


def test_verify_rejects_malformed_signature(curve):
    public_key = curve.compute_public_key(key=curve.generate_key())
    with pytest.raises(InvalidSignatureEncoding):
        curve.verify(key=public_key, signature=b"\x00" * 63, data=b"x")


def test_signatures_are_low_s_and_high_s_still_verifies(curve):
    private_key = curve.generate_key()
    public_key = curve.compute_public_key(key=private_key)
    data = b"low s"
    signature = curve.sign(key=private_key, data=data)
    s = int.from_bytes(signature[32:], "big")
    assert s <= curve.order // 2

    high_s = signature[:32] + (curve.order - s).to_bytes(32, "big")
    assert curve.verify(key=public_key, signature=high_s, data=data)
    low_s = curve.adjust_signature_to_low_s(signature=high_s)
    assert low_s == signature
    assert curve.adjust_signature_to_low_s(signature=low_s) == low_s


def test_validate_private_key(curve):
    assert curve.validate_private_key(private_key_bytes=curve.private_key_to_bytes(private_key=curve.generate_key()))
    assert not curve.validate_private_key(private_key_bytes=b"\x00" * 32)
    assert not curve.validate_private_key(private_key_bytes=b"\xff" * 32)
    assert not curve.validate_private_key(private_key_bytes=b"\x01" * 31)
    assert not curve.validate_private_key(private_key_bytes="not bytes")


def test_validate_public_key(curve):
    assert curve.validate_public_key(public_key_bytes=curve.public_key_to_bytes(public_key=curve.generate_key()))
    assert not curve.validate_public_key(public_key_bytes=b"\x04" + b"\x01" * 64)
    assert not curve.validate_public_key(public_key_bytes=b"\x04" * 10)


@pytest.mark.parametrize("der_hex", [
    "",
    "30",
    "3100",
    "3006020101020101ff",
    "30060201010201",
    "3006020080020101",
    "30050201010200",
    "300702020001020101",
    "3006020180020101",
    "308106020101020101",
])
def test_der_parser_rejects_malformed_input(curve, der_hex):
    with pytest.raises(InvalidSignatureEncoding):
        curve.convert_der_to_compact_signature(der_signature=bytes.fromhex(der_hex))


def test_der_parser_rejects_oversized_integer(curve):
    der = bytes.fromhex("3026022101" + "00" * 32 + "020101")
    with pytest.raises(InvalidSignatureEncoding):
        curve.convert_der_to_compact_signature(der_signature=der)


def test_der_parser_pads_short_integers(curve):
    compact = curve.convert_der_to_compact_signature(der_signature=bytes.fromhex("3006020101020102"))
    assert compact == b"\x00" * 31 + b"\x01" + b"\x00" * 31 + b"\x02"
