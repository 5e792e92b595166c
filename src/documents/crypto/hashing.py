from __future__ import annotations
import hashlib
import re

from src.core.exceptions import InvalidInputError

DEFAULT_FINGERPRINT_ALGORITHM = "sha256"

_SUPPORTED = {"sha256": 64, "sha384": 96, "sha512": 128}
_HEX_RE = re.compile(r"^[0-9a-f]+$")


def compute_fingerprint(data: bytes, algorithm: str = DEFAULT_FINGERPRINT_ALGORITHM) -> str:
    """Lower-case hex digest of the document bytes. Depends on the bytes only, never on the file name."""
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise InvalidInputError(message="Document content must be bytes", code="INVALID_DOCUMENT")
    if len(data) == 0:
        raise InvalidInputError(message="Document is empty", code="EMPTY_DOCUMENT")
    algo = (algorithm or "").lower()
    if algo not in _SUPPORTED:
        raise InvalidInputError(message=f"Unsupported fingerprint algorithm: {algorithm}", code="INVALID_ALGORITHM")
    return hashlib.new(algo, bytes(data)).hexdigest()


def normalize_fingerprint(value, algorithm: str = DEFAULT_FINGERPRINT_ALGORITHM) -> str:
    if not isinstance(value, str):
        raise InvalidInputError(message="Missing file hash", code="INVALID_FINGERPRINT")
    fp = value.strip().lower()
    expected = _SUPPORTED.get((algorithm or "").lower())
    if not fp or not _HEX_RE.match(fp) or (expected and len(fp) != expected):
        raise InvalidInputError(message="Malformed file hash", code="INVALID_FINGERPRINT")
    return fp
