import hashlib

import pytest

from src.core.exceptions import InvalidInputError
from src.documents.crypto.diagnostics import candidate_messages, diagnose_signature
from src.documents.crypto.signatures import sign_message

FP = hashlib.sha256(b"test-document").hexdigest()
TS = "2024-05-01T10:00:00.000Z"


def test_candidates_cover_plain_and_timestamped_forms():
    names = [name for name, _ in candidate_messages(FP, [TS])]
    assert names[:2] == ["hex_string", "raw_bytes"]
    assert f"fingerprint|{TS}" in names
    assert f"{TS}|fingerprint" in names


def test_finds_legacy_hex_text_format(rsa_pair):
    sig = sign_message(rsa_pair.private_key, FP, "RSA-SHA256")
    report = diagnose_signature(sig, rsa_pair.public_key, FP, [TS])
    assert report.match is not None
    assert report.match.algorithm == "RSA-SHA256"
    assert report.match.encoding == "hex_string"


def test_finds_timestamped_format_with_other_hash(rsa_pair):
    sig = sign_message(rsa_pair.private_key, f"{FP}|{TS}", "RSA-SHA1")
    report = diagnose_signature(sig, rsa_pair.public_key, FP, [TS])
    assert report.match.algorithm == "RSA-SHA1"
    assert report.match.encoding == f"fingerprint|{TS}"


def test_ecdsa_keys_only_try_ecdsa(ec_pair):
    sig = sign_message(ec_pair.private_key, bytes.fromhex(FP), "ECDSA-SHA256")
    report = diagnose_signature(sig, ec_pair.public_key, FP, [TS])
    assert report.key_algorithm == "ECDSA"
    assert {a.algorithm for a in report.attempts} <= {"ECDSA-SHA256", "ECDSA-SHA384"}
    assert report.match.encoding == "raw_bytes"


def test_no_match_reports_every_attempt(rsa_pair):
    sig = sign_message(rsa_pair.private_key, b"something else", "RSA-SHA256")
    report = diagnose_signature(sig, rsa_pair.public_key, FP, [TS])
    assert report.match is None
    assert report.attempts
    assert all(not a.result for a in report.attempts)
    assert report.to_dict()["match"] is None


def test_unparseable_inputs_raise(rsa_pair):
    with pytest.raises(InvalidInputError):
        diagnose_signature("AAAA", "garbage", FP)
    with pytest.raises(InvalidInputError):
        diagnose_signature("AAAA", rsa_pair.public_key, "nope")
