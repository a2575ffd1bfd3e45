import pytest
from cryptography.hazmat.primitives.asymmetric.utils import encode_dss_signature

from flowwallet.crypto import (
    EC_COMPONENT_SIZE,
    HashAlgorithm,
    InMemorySigner,
    SignatureAlgorithm,
    compute_hash,
    decode_private_key_hex,
    generate_private_key,
    pad_component,
    parse_der_signature,
)


def test_signature_algorithm_from_string():
    assert SignatureAlgorithm.from_string("ECDSA_P256") is SignatureAlgorithm.ECDSA_P256
    assert (
        SignatureAlgorithm.from_string("ECDSA_secp256k1")
        is SignatureAlgorithm.ECDSA_SECP256K1
    )
    assert SignatureAlgorithm.from_string("nope") is SignatureAlgorithm.UNKNOWN


def test_hash_algorithm_from_string_round_trip():
    for algo in HashAlgorithm:
        assert HashAlgorithm.from_string(str(algo)) is algo
    assert HashAlgorithm.from_string("MD5") is HashAlgorithm.UNKNOWN


def test_compute_hash_known_digests():
    assert compute_hash(HashAlgorithm.SHA2_256, b"").hex() == (
        "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
    )
    assert compute_hash(HashAlgorithm.SHA3_256, b"").hex() == (
        "a7ffc6f8bf1ed76651c14756a061d662f580ff4de43b49fa82d80a4b80f8434a"
    )


def test_compute_hash_lengths():
    assert len(compute_hash(HashAlgorithm.SHA3_384, b"abc")) == 48
    assert len(compute_hash(HashAlgorithm.SHA2_384, b"abc")) == 48


def test_compute_hash_unknown_raises():
    with pytest.raises(ValueError):
        compute_hash(HashAlgorithm.UNKNOWN, b"abc")


def test_decode_scalar_one_gives_generator():
    key = decode_private_key_hex(SignatureAlgorithm.ECDSA_P256, "00" * 31 + "01")
    assert key.public_key_hex() == (
        "6b17d1f2e12c4247f8bce6e563a440f277037d812deb33a0f4a13945d898c296"
        "4fe342e2fe1a7f9b8ee7eb4a7c0f9e162bce33576b315ececbb6406837bf51f5"
    )


@pytest.mark.parametrize(
    "algo", [SignatureAlgorithm.ECDSA_P256, SignatureAlgorithm.ECDSA_SECP256K1]
)
def test_private_key_hex_round_trip(algo):
    key = generate_private_key(algo)
    text = key.to_hex()
    assert len(text) == 2 * EC_COMPONENT_SIZE
    decoded = decode_private_key_hex(algo, text)
    assert decoded.to_hex() == text
    assert decoded.public_key_hex() == key.public_key_hex()
    assert decode_private_key_hex(algo, "0x" + text).to_hex() == text
    assert str(key) == "0x" + text


def test_decode_rejects_bad_input():
    with pytest.raises(ValueError):
        decode_private_key_hex(SignatureAlgorithm.ECDSA_P256, "zz")
    with pytest.raises(ValueError):
        decode_private_key_hex(SignatureAlgorithm.ECDSA_P256, "abcd")
    with pytest.raises(ValueError):
        decode_private_key_hex(SignatureAlgorithm.UNKNOWN, "00" * 31 + "01")


def test_generate_unknown_algorithm_raises():
    with pytest.raises(ValueError):
        generate_private_key(SignatureAlgorithm.UNKNOWN)


@pytest.mark.parametrize("hash_algo", [HashAlgorithm.SHA3_256, HashAlgorithm.SHA2_256])
def test_sign_and_verify(hash_algo):
    signer = InMemorySigner(generate_private_key(SignatureAlgorithm.ECDSA_P256), hash_algo)
    signature = signer.sign(b"message")
    assert len(signature) == 2 * EC_COMPONENT_SIZE
    assert signer.verify(b"message", signature)
    assert not signer.verify(b"other message", signature)
    assert not signer.verify(b"message", signature[:-1])


def test_signer_rejects_unknown_hash():
    with pytest.raises(ValueError):
        InMemorySigner(
            generate_private_key(SignatureAlgorithm.ECDSA_P256), HashAlgorithm.UNKNOWN
        )


def test_pad_component():
    assert pad_component(b"\x01\x02", 4) == b"\x00\x00\x01\x02"
    assert pad_component(b"\x01\x02", 2) == b"\x01\x02"
    with pytest.raises(ValueError):
        pad_component(b"\x01\x02\x03", 2)


def test_parse_der_signature_pads_components():
    result = parse_der_signature(encode_dss_signature(1, 2))
    assert result == bytes(31) + b"\x01" + bytes(31) + b"\x02"


def test_parse_der_signature_rejects_garbage():
    with pytest.raises(ValueError):
        parse_der_signature(b"not der")