"""
Diagnostic probe for client signing formats.

Tries every (hash algorithm, message encoding) pair a client could plausibly
have used and reports which one matches. Each attempt is independent: a
failure (or an exception) on one combination is recorded and the probe moves
on. This is a troubleshooting aid for integrators; production verification
goes through `signatures.verify_signature` with a single canonical pair.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Iterable

from cryptography.exceptions import InvalidSignature

from src.documents.crypto.algorithms import KeyAlgorithm, SignatureAlgorithm
from src.documents.crypto.hashing import normalize_fingerprint
from src.documents.crypto.keys import key_algorithm_of, load_public_key
from src.documents.crypto.signatures import decode_signature, verify_with_key

RSA_CANDIDATES = (SignatureAlgorithm.RSA_SHA256, SignatureAlgorithm.RSA_SHA1, SignatureAlgorithm.RSA_MD5)
ECDSA_CANDIDATES = (SignatureAlgorithm.ECDSA_SHA256, SignatureAlgorithm.ECDSA_SHA384)


@dataclass
class DiagnosticAttempt:
    algorithm: str
    encoding: str
    result: bool
    error: str | None = None

    def to_dict(self) -> dict:
        return {"algorithm": self.algorithm, "encoding": self.encoding, "result": self.result, "error": self.error}


@dataclass
class DiagnosticReport:
    key_algorithm: str
    signature_length: int
    attempts: list[DiagnosticAttempt] = field(default_factory=list)

    @property
    def match(self) -> DiagnosticAttempt | None:
        return next((a for a in self.attempts if a.result), None)

    def to_dict(self) -> dict:
        match = self.match
        return {
            "key_algorithm": self.key_algorithm,
            "signature_length": self.signature_length,
            "attempts": [a.to_dict() for a in self.attempts],
            "match": match.to_dict() if match else None,
            "recommended_fix": (
                f"Client signs with {match.algorithm} over {match.encoding}; "
                "switch it to raw fingerprint bytes to use the canonical format"
                if match
                else "Check the client-side signing code to match the server verification"
            ),
        }


def _timestamp_variants(timestamp: str) -> list[str]:
    variants = [timestamp]
    try:
        parsed = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    except ValueError:
        return variants
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    iso = parsed.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    epoch_ms = str(int(parsed.timestamp() * 1000))
    for v in (iso, epoch_ms):
        if v not in variants:
            variants.append(v)
    return variants


def _default_timestamps(now: datetime) -> list[str]:
    return [
        (now - timedelta(minutes=m)).isoformat(timespec="milliseconds").replace("+00:00", "Z")
        for m in (0, 1, 2)
    ]


def candidate_messages(fingerprint: str, timestamps: Iterable[str] = ()) -> list[tuple[str, bytes]]:
    # hex text and its UTF-8 encoding are the same bytes, so one entry covers both
    out = [
        ("hex_string", fingerprint.encode("utf-8")),
        ("raw_bytes", bytes.fromhex(fingerprint)),
    ]
    for ts in timestamps:
        for variant in _timestamp_variants(ts):
            out.append((f"fingerprint|{variant}", f"{fingerprint}|{variant}".encode("utf-8")))
            out.append((f"{variant}|fingerprint", f"{variant}|{fingerprint}".encode("utf-8")))
    return out


def diagnose_signature(signature, public_key: str, fingerprint: str, timestamps: Iterable[str] | None = None,
                       *, now: datetime | None = None) -> DiagnosticReport:
    """
    Key, signature and fingerprint must parse (InvalidInputError otherwise);
    everything after that is recorded per attempt.
    """
    fp = normalize_fingerprint(fingerprint)
    key = load_public_key(public_key)
    sig = decode_signature(signature)
    family = key_algorithm_of(key)

    ts = list(timestamps or [])
    if not ts:
        ts = _default_timestamps(now or datetime.now(timezone.utc))

    report = DiagnosticReport(key_algorithm=family.value, signature_length=len(sig))
    algorithms = ECDSA_CANDIDATES if family == KeyAlgorithm.ECDSA else RSA_CANDIDATES
    for algorithm in algorithms:
        for encoding, message in candidate_messages(fp, ts):
            try:
                verify_with_key(key, sig, message, algorithm)
                report.attempts.append(DiagnosticAttempt(algorithm.value, encoding, True))
            except InvalidSignature:
                report.attempts.append(DiagnosticAttempt(algorithm.value, encoding, False))
            except Exception as exc:
                report.attempts.append(DiagnosticAttempt(algorithm.value, encoding, False, error=str(exc) or exc.__class__.__name__))
    return report
