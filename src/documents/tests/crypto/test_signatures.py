import base64
import hashlib

import pytest

from src.core.exceptions import InvalidInputError
from src.documents.crypto.algorithms import (
    KeyAlgorithm,
    MessageEncoding,
    SignatureAlgorithm,
    default_signature_algorithm,
    key_family,
    resolve_algorithm,
)
from src.documents.crypto.keys import (
    PEM_HEADER,
    generate_key_pair,
    key_algorithm_of,
    load_public_key,
    normalize_public_key,
)
from src.documents.crypto.signatures import canonical_message, decode_signature, sign_message, verify_signature

FP = hashlib.sha256(b"test-document").hexdigest()


def test_canonical_message_is_raw_digest_bytes():
    assert canonical_message(FP) == bytes.fromhex(FP)
    assert len(canonical_message(FP)) == 32


def test_legacy_encoding_signs_hex_text():
    assert canonical_message(FP, MessageEncoding.HEX_FINGERPRINT_V0) == FP.encode("utf-8")


def test_rsa_signature_round_trip(rsa_pair):
    message = canonical_message(FP)
    sig = sign_message(rsa_pair.private_key, message, "RSA-SHA256")
    assert verify_signature(sig, rsa_pair.public_key, message, "RSA-SHA256") is True


@pytest.mark.parametrize("encoding", ["der", "p1363"])
def test_ecdsa_signature_accepts_der_and_p1363(ec_pair, encoding):
    message = canonical_message(FP)
    sig = sign_message(ec_pair.private_key, message, "ECDSA-SHA256", ecdsa_encoding=encoding)
    assert verify_signature(sig, ec_pair.public_key, message, "ECDSA-SHA256") is True


def _flip_one_bit(signature: str) -> str:
    raw = bytearray(base64.b64decode(signature))
    raw[len(raw) // 2] ^= 0x01
    return base64.b64encode(bytes(raw)).decode("ascii")


@pytest.mark.parametrize(
    "pair_name, algorithm, kwargs",
    [
        ("rsa_pair", "RSA-SHA256", {}),
        ("ec_pair", "ECDSA-SHA256", {"ecdsa_encoding": "der"}),
        ("ec_pair", "ECDSA-SHA256", {"ecdsa_encoding": "p1363"}),
    ],
)
def test_single_bit_flip_breaks_the_signature(request, pair_name, algorithm, kwargs):
    pair = request.getfixturevalue(pair_name)
    message = canonical_message(FP)
    sig = sign_message(pair.private_key, message, algorithm, **kwargs)
    assert verify_signature(sig, pair.public_key, message, algorithm) is True
    assert verify_signature(_flip_one_bit(sig), pair.public_key, message, algorithm) is False


def test_signature_over_other_message_fails(rsa_pair):
    sig = sign_message(rsa_pair.private_key, canonical_message(FP), "RSA-SHA256")
    other = canonical_message(hashlib.sha256(b"other").hexdigest())
    assert verify_signature(sig, rsa_pair.public_key, other, "RSA-SHA256") is False


def test_wrong_key_fails(rsa_pair):
    stranger = generate_key_pair("RSA")
    sig = sign_message(stranger.private_key, canonical_message(FP), "RSA-SHA256")
    assert verify_signature(sig, rsa_pair.public_key, canonical_message(FP), "RSA-SHA256") is False


def test_algorithm_key_mismatch_fails_closed(rsa_pair):
    sig = sign_message(rsa_pair.private_key, canonical_message(FP), "RSA-SHA256")
    assert verify_signature(sig, rsa_pair.public_key, canonical_message(FP), "ECDSA-SHA256") is False


@pytest.mark.parametrize("signature", ["", "!!not-base64!!", None])
def test_malformed_signature_fails_closed(rsa_pair, signature):
    assert verify_signature(signature, rsa_pair.public_key, canonical_message(FP), "RSA-SHA256") is False


def test_malformed_key_fails_closed(rsa_pair):
    sig = sign_message(rsa_pair.private_key, canonical_message(FP), "RSA-SHA256")
    assert verify_signature(sig, "not a key", canonical_message(FP), "RSA-SHA256") is False


def test_hex_signatures_are_accepted(rsa_pair):
    sig = sign_message(rsa_pair.private_key, canonical_message(FP), "RSA-SHA256")
    hex_sig = base64.b64decode(sig).hex()
    assert decode_signature(hex_sig) == base64.b64decode(sig)
    assert verify_signature(hex_sig, rsa_pair.public_key, canonical_message(FP), "RSA-SHA256") is True


def test_raw_base64_key_body_is_wrapped(rsa_pair):
    body = "".join(line for line in rsa_pair.public_key.splitlines() if "-----" not in line)
    pem = normalize_public_key(body)
    assert pem.startswith(PEM_HEADER)
    assert key_algorithm_of(load_public_key(pem)) == KeyAlgorithm.RSA


def test_unparseable_key_raises():
    with pytest.raises(InvalidInputError) as exc:
        load_public_key("-----BEGIN PUBLIC KEY-----\nAAAA\n-----END PUBLIC KEY-----")
    assert exc.value.code == "INVALID_PUBLIC_KEY"


def test_generate_key_pair_rejects_unknown_algorithm():
    with pytest.raises(InvalidInputError) as exc:
        generate_key_pair("DSA")
    assert exc.value.code == "INVALID_ALGORITHM"


@pytest.mark.parametrize(
    "name,expected",
    [
        ("RSA-SHA256", SignatureAlgorithm.RSA_SHA256),
        ("rs256", SignatureAlgorithm.RSA_SHA256),
        ("ECDSA", SignatureAlgorithm.ECDSA_SHA256),
        ("ES384", SignatureAlgorithm.ECDSA_SHA384),
    ],
)
def test_resolve_algorithm_aliases(name, expected):
    assert resolve_algorithm(name) == expected


def test_resolve_algorithm_rejects_unknown():
    with pytest.raises(InvalidInputError):
        resolve_algorithm("HS256")


def test_key_family_and_defaults():
    assert key_family(SignatureAlgorithm.ECDSA_SHA384) == KeyAlgorithm.ECDSA
    assert key_family(SignatureAlgorithm.RSA_MD5) == KeyAlgorithm.RSA
    assert default_signature_algorithm("ecdsa") == SignatureAlgorithm.ECDSA_SHA256
    assert default_signature_algorithm(None) == SignatureAlgorithm.RSA_SHA256
