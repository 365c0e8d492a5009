import pytest

from jwk_kms.errors import InvalidKeyLength, InvalidTag, MultiRoundNotSupported, UnsupportedAlgorithm
from jwk_kms.primitives.aes_kw import AesKw
from jwk_kms.primitives.concat_kdf import ConcatKdf, compute_other_info
from jwk_kms.primitives.hkdf import Hkdf
from jwk_kms.primitives.pbkdf2 import Pbkdf2
from jwk_kms.primitives.sha256 import Sha256
from jwk_kms.utils.convert import b64url, b64url_decode


def test_sha256_digest():
    assert Sha256.digest(data=b"abc").hex() == \
        "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"


# --- PBKDF2 ---
def test_pbkdf2_sha256_vector():
    out = Pbkdf2.derive_key(hash="SHA-256", password=b"password", salt=b"salt", iterations=1, length=256)
    assert out.hex() == "120fb6cffcf8b32c43e7225256c4f837a86548c92ccc35480805987cb70be17b"


@pytest.mark.parametrize("hash_name,size", [("SHA-256", 32), ("SHA-384", 48), ("SHA-512", 64)])
def test_pbkdf2_hashes(hash_name, size):
    out = Pbkdf2.derive_key(hash=hash_name, password="pw", salt="salt", iterations=2, length=size * 8)
    assert len(out) == size


def test_pbkdf2_rejects_bad_input():
    with pytest.raises(UnsupportedAlgorithm):
        Pbkdf2.derive_key(hash="MD5", password=b"p", salt=b"s", iterations=1, length=128)
    for iterations in (0, -1):
        with pytest.raises(ValueError):
            Pbkdf2.derive_key(hash="SHA-256", password=b"p", salt=b"s", iterations=iterations, length=128)
    with pytest.raises(ValueError):
        Pbkdf2.derive_key(hash="SHA-256", password=b"p", salt=b"s", iterations=1, length=12)


# --- Concat KDF ---
RFC7518_FIXED_INFO = {
    "algorithm_id": "A128GCM",
    "party_u_info": "Alice",
    "party_v_info": "Bob",
    "supp_pub_info": 128,
}


def test_concat_kdf_rfc7518_example():
    out = ConcatKdf.derive_key(
        shared_secret=b64url_decode("nlbZHYFxNdNyg0KDv4QmnPsxbqPagGpI9tqneYz-kMQ"),
        key_data_len=128,
        fixed_info=RFC7518_FIXED_INFO,
    )
    assert b64url(out) == "VqqN6vgjbSBcIijNcacQGg"


def test_concat_kdf_other_info_layout():
    other_info = compute_other_info(RFC7518_FIXED_INFO)
    assert other_info == (
        b"\x00\x00\x00\x07A128GCM"
        b"\x00\x00\x00\x05Alice"
        b"\x00\x00\x00\x03Bob"
        b"\x00\x00\x00\x80"
    )
    with_priv = compute_other_info(dict(RFC7518_FIXED_INFO, supp_priv_info=b"\x01\x02"))
    assert with_priv == other_info + b"\x00\x00\x00\x02\x01\x02"


def test_concat_kdf_missing_party_info_is_empty():
    other_info = compute_other_info({"algorithm_id": "A256GCM", "supp_pub_info": 256})
    assert other_info == b"\x00\x00\x00\x07A256GCM" + b"\x00" * 8 + b"\x00\x00\x01\x00"


def test_concat_kdf_single_round_only():
    assert len(ConcatKdf.derive_key(shared_secret=bytes(32), key_data_len=256,
                                    fixed_info=dict(RFC7518_FIXED_INFO, supp_pub_info=256))) == 32
    with pytest.raises(MultiRoundNotSupported):
        ConcatKdf.derive_key(shared_secret=bytes(32), key_data_len=512,
                             fixed_info=dict(RFC7518_FIXED_INFO, supp_pub_info=512))


@pytest.mark.parametrize("supp_pub_info", ["128", None, 1.5, True])
def test_concat_kdf_supp_pub_info_must_be_a_number(supp_pub_info):
    with pytest.raises(TypeError):
        ConcatKdf.derive_key(shared_secret=bytes(32), key_data_len=128,
                             fixed_info=dict(RFC7518_FIXED_INFO, supp_pub_info=supp_pub_info))


@pytest.mark.parametrize("supp_pub_info", [-1, 2 ** 32])
def test_concat_kdf_supp_pub_info_out_of_range(supp_pub_info):
    with pytest.raises(ValueError):
        compute_other_info(dict(RFC7518_FIXED_INFO, supp_pub_info=supp_pub_info))


# --- HKDF ---
def test_hkdf_rfc5869_case_1():
    out = Hkdf.derive_key(
        hash="SHA-256",
        base_key=bytes.fromhex("0b" * 22),
        salt=bytes.fromhex("000102030405060708090a0b0c"),
        info=bytes.fromhex("f0f1f2f3f4f5f6f7f8f9"),
        length=42 * 8,
    )
    assert out.hex() == (
        "3cb25f25faacd57a90434f64d0362f2a2d2d0a90cf1a5a4c5db02d56ecc4c5bf"
        "34007208d5b887185865"
    )


def test_hkdf_unsupported_hash():
    with pytest.raises(UnsupportedAlgorithm):
        Hkdf.derive_key(hash="SHA-1", base_key=b"k", length=128)


# --- AES-KW ---
def test_aes_kw_rfc3394_vector():
    kek = AesKw.bytes_to_private_key(private_key_bytes=bytes.fromhex("000102030405060708090A0B0C0D0E0F"))
    data_key = AesKw.bytes_to_private_key(private_key_bytes=bytes.fromhex("00112233445566778899AABBCCDDEEFF"))
    wrapped = AesKw.wrap_key(data_key=data_key, encryption_key=kek)
    assert wrapped.hex().upper() == "1FA68B0A8112B447AEF34BD8FB5A7B829D3E862371D2CFE5"

    unwrapped = AesKw.unwrap_key(wrapped_key_bytes=wrapped, wrapped_key_algorithm="A128GCM", decryption_key=kek)
    assert unwrapped["k"] == data_key["k"]
    assert unwrapped["alg"] == "A128GCM"


def test_aes_kw_integrity_failure():
    kek = AesKw.generate_key(256)
    wrapped = AesKw.wrap_key(data_key=AesKw.generate_key(256), encryption_key=kek)
    with pytest.raises(InvalidTag):
        AesKw.unwrap_key(wrapped_key_bytes=wrapped, wrapped_key_algorithm="A256GCM",
                         decryption_key=AesKw.generate_key(256))


def test_aes_kw_rejects_short_data_key():
    kek = AesKw.generate_key(128)
    with pytest.raises(InvalidKeyLength):
        AesKw.wrap_key(data_key=AesKw.bytes_to_private_key(private_key_bytes=bytes(8)), encryption_key=kek)
